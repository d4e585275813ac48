"""Pokemon TCG API configuration values."""

from __future__ import annotations

from dataclasses import dataclass

from .env import optional_env_var
from .errors import ConfigurationError
from .http_resilience import RateLimit, ResilienceConfig, RetryPolicy

DEFAULT_POKEMONTCG_BASE_URL = "https://api.pokemontcg.io/v2/"
POKEMONTCG_TIMEOUT_SECONDS = 30.0
POKEMONTCG_USER_AGENT = "cardindex/1.0 (+https://github.com/)"
MAX_PAGE_SIZE = 250


@dataclass(frozen=True, slots=True)
class PokemonTcgConfig:
    """Holds search API configuration values."""

    resilience: ResilienceConfig
    api_key: str | None = None
    page_size: int = MAX_PAGE_SIZE
    max_pages: int = 140
    order_by: str | None = "set.releaseDate,number"

    def __post_init__(self) -> None:
        if not 1 <= self.page_size <= MAX_PAGE_SIZE:
            raise ConfigurationError(f"page_size must be within 1..{MAX_PAGE_SIZE}")
        if self.max_pages < 1:
            raise ConfigurationError("max_pages must be positive")


def get_pokemontcg_config(*, resilience: ResilienceConfig | None = None) -> PokemonTcgConfig:
    api_key = optional_env_var("POKEMONTCG_API_KEY")
    base_url = optional_env_var("POKEMONTCG_BASE_URL") or DEFAULT_POKEMONTCG_BASE_URL

    headers = {"Accept": "application/json", "User-Agent": POKEMONTCG_USER_AGENT}
    if api_key:
        headers["X-Api-Key"] = api_key

    return PokemonTcgConfig(
        api_key=api_key,
        resilience=resilience
        or ResilienceConfig(
            name="pokemontcg",
            base_url=base_url,
            timeout_seconds=POKEMONTCG_TIMEOUT_SECONDS,
            retry=RetryPolicy(total=6, backoff_factor=0.9),
            ratelimit=RateLimit(max_calls=8, per_seconds=1.0),
            cache=None,
            default_headers=headers,
        ),
    )
