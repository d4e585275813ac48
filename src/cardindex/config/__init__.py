"""Application configuration helpers."""

from __future__ import annotations

from .env import optional_env_var, require_env_vars
from .errors import ConfigurationError, MissingConfigurationError
from .http_resilience import CacheConfig, RateLimit, ResilienceConfig, RetryPolicy
from .logging import configure_logging
from .pokeapi import PokeApiConfig, get_pokeapi_config
from .pokemontcg import PokemonTcgConfig, get_pokemontcg_config
from .reconciliation import BackfillPolicy, EngineConfig, VerifyConfig
from .storage import StorageConfig, get_storage_config

__all__ = [
    "BackfillPolicy",
    "CacheConfig",
    "ConfigurationError",
    "EngineConfig",
    "MissingConfigurationError",
    "PokeApiConfig",
    "PokemonTcgConfig",
    "RateLimit",
    "ResilienceConfig",
    "RetryPolicy",
    "StorageConfig",
    "VerifyConfig",
    "configure_logging",
    "get_pokeapi_config",
    "get_pokemontcg_config",
    "get_storage_config",
    "optional_env_var",
    "require_env_vars",
]
