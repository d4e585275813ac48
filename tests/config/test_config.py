from __future__ import annotations

import logging
from collections.abc import Callable
from pathlib import Path

import pytest

from cardindex.config import (
    ConfigurationError,
    EngineConfig,
    MissingConfigurationError,
    PokemonTcgConfig,
    VerifyConfig,
    configure_logging,
    get_pokemontcg_config,
    get_storage_config,
    optional_env_var,
    require_env_vars,
)
from cardindex.config.pokemontcg import DEFAULT_POKEMONTCG_BASE_URL


def test_require_env_vars_returns_values(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("EXAMPLE_VAR", "value")

    assert require_env_vars(["EXAMPLE_VAR"]) == {"EXAMPLE_VAR": "value"}


def test_require_env_vars_reports_missing_and_blank(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("MISSING_VAR", raising=False)
    monkeypatch.setenv("BLANK_VAR", "   ")

    with pytest.raises(MissingConfigurationError) as exc:
        require_env_vars(["MISSING_VAR", "BLANK_VAR"])

    assert "BLANK_VAR, MISSING_VAR" in str(exc.value)


def test_optional_env_var_treats_blank_as_unset(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("EXAMPLE_VAR", " ")
    assert optional_env_var("EXAMPLE_VAR") is None
    monkeypatch.setenv("EXAMPLE_VAR", " key ")
    assert optional_env_var("EXAMPLE_VAR") == "key"


def test_pokemontcg_config_from_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("POKEMONTCG_API_KEY", "secret")
    monkeypatch.delenv("POKEMONTCG_BASE_URL", raising=False)

    config = get_pokemontcg_config()

    assert config.api_key == "secret"
    assert config.resilience.base_url == DEFAULT_POKEMONTCG_BASE_URL
    assert config.resilience.default_headers is not None
    assert config.resilience.default_headers["X-Api-Key"] == "secret"
    assert config.resilience.ratelimit is not None


def test_pokemontcg_config_without_key(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("POKEMONTCG_API_KEY", raising=False)
    monkeypatch.setenv("POKEMONTCG_BASE_URL", "https://mirror.test/v2/")

    config = get_pokemontcg_config()

    assert config.api_key is None
    assert config.resilience.base_url == "https://mirror.test/v2/"
    assert "X-Api-Key" not in (config.resilience.default_headers or {})


def test_storage_config_defaults_and_overrides(
    monkeypatch: pytest.MonkeyPatch, tmp_path: Path
) -> None:
    monkeypatch.delenv("CARDINDEX_DATA_DIR", raising=False)
    monkeypatch.delenv("CARDINDEX_UNIVERSE_FILE", raising=False)
    defaults = get_storage_config()
    assert defaults.data_dir == Path("public/cards")
    assert defaults.universe_file == Path("data/pokedex.json")

    monkeypatch.setenv("CARDINDEX_DATA_DIR", str(tmp_path / "cards"))
    monkeypatch.setenv("CARDINDEX_UNIVERSE_FILE", str(tmp_path / "meta" / "dex.json"))
    config = get_storage_config()

    assert config.resolve_data_dir() == (tmp_path / "cards").resolve()
    assert config.http_cache_path() == (tmp_path / "meta" / "http_cache.db").resolve()
    assert (tmp_path / "meta").is_dir()


@pytest.mark.parametrize(
    "build",
    [
        lambda: EngineConfig(min_span=0),
        lambda: EngineConfig(broad_concurrency=0),
        lambda: EngineConfig(max_depth=-1),
        lambda: EngineConfig(broad_ranges=((10, 5),)),
        lambda: VerifyConfig(concurrency=0),
    ],
)
def test_invalid_tuning_is_rejected(build: Callable[[], object]) -> None:
    with pytest.raises(ConfigurationError):
        build()


def test_page_size_is_bounded() -> None:
    resilience = get_pokemontcg_config().resilience

    with pytest.raises(ConfigurationError):
        PokemonTcgConfig(resilience=resilience, page_size=251)


def test_configure_logging_reads_level_from_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    root = logging.getLogger()
    httpx_logger = logging.getLogger("httpx")
    saved = (root.level, list(root.handlers), httpx_logger.level)
    monkeypatch.setenv("CARDINDEX_LOG_LEVEL", "debug")
    try:
        configure_logging(force=True)

        assert root.level == logging.DEBUG
        assert httpx_logger.level == logging.WARNING
    finally:
        root.handlers[:] = saved[1]
        root.setLevel(saved[0])
        httpx_logger.setLevel(saved[2])
