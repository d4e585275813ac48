"""Ports consumed by the domain layer."""

from __future__ import annotations

from .fetching import (
    CardSource,
    PermanentUpstreamError,
    SearchPage,
    TransientUpstreamError,
    UpstreamError,
)

__all__ = [
    "CardSource",
    "PermanentUpstreamError",
    "SearchPage",
    "TransientUpstreamError",
    "UpstreamError",
]
