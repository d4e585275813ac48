"""Errors raised while loading or validating settings."""

from __future__ import annotations


class ConfigurationError(RuntimeError):
    """A setting is present but unusable, e.g. a non-positive pool size."""


class MissingConfigurationError(ConfigurationError):
    """A required environment variable is unset or blank."""
