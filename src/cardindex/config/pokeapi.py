"""PokeAPI configuration values."""

from __future__ import annotations

from dataclasses import dataclass

from .http_resilience import CacheConfig, RateLimit, ResilienceConfig, RetryPolicy

DEFAULT_POKEAPI_BASE_URL = "https://pokeapi.co/api/v2/"
DEFAULT_MAX_SPECIES_ID = 1025


@dataclass(frozen=True, slots=True)
class PokeApiConfig:
    resilience: ResilienceConfig
    max_id: int = DEFAULT_MAX_SPECIES_ID
    concurrency: int = 20
    language: str = "en"


def is_species_payload(payload: object) -> bool:
    return isinstance(payload, dict) and isinstance(payload.get("id"), int)


def get_pokeapi_config(*, cache_path: str | None = None) -> PokeApiConfig:
    # Species data rarely changes, so responses are cached on disk between runs.
    backend = "sqlite" if cache_path is not None else "memory"
    resilience = ResilienceConfig(
        name="pokeapi",
        base_url=DEFAULT_POKEAPI_BASE_URL,
        ratelimit=RateLimit(max_calls=20, per_seconds=1.0),
        retry=RetryPolicy(total=4, backoff_factor=0.5),
        cache=CacheConfig(
            backend=backend,
            sqlite_path=cache_path,
            should_cache=is_species_payload,
        ),
        default_headers={"User-Agent": "cardindex/1.0"},
    )
    return PokeApiConfig(resilience=resilience)
