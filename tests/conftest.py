from __future__ import annotations

import pytest

_ISOLATED_ENV = (
    "CARDINDEX_DATA_DIR",
    "CARDINDEX_UNIVERSE_FILE",
    "POKEMONTCG_API_KEY",
    "POKEMONTCG_BASE_URL",
    "GITHUB_STEP_SUMMARY",
    "CARDINDEX_LOG_LEVEL",
)


@pytest.fixture(autouse=True)
def isolated_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in _ISOLATED_ENV:
        monkeypatch.delenv(name, raising=False)
