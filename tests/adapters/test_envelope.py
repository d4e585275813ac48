from __future__ import annotations

import pytest

from cardindex.adapters.pokemontcg import EnvelopeKind, parse_upstream_envelope


def test_wrapped_envelope_carries_total_count() -> None:
    envelope = parse_upstream_envelope(
        {"data": [{"id": "a"}, 3, {"id": "b"}], "page": 1, "pageSize": 250, "totalCount": 7}
    )

    assert envelope.kind is EnvelopeKind.WRAPPED
    assert envelope.records == [{"id": "a"}, {"id": "b"}]
    assert envelope.total_count == 7


def test_cards_envelope_and_bare_array() -> None:
    cards = parse_upstream_envelope({"cards": [{"id": "a"}]})
    array = parse_upstream_envelope([{"id": "a"}, None])

    assert cards.kind is EnvelopeKind.WRAPPED
    assert cards.total_count is None
    assert array.kind is EnvelopeKind.ARRAY
    assert array.records == [{"id": "a"}]


@pytest.mark.parametrize(
    "payload",
    [None, "cards", 42, {"data": "nope"}, {"data": [], "totalCount": "many"}],
)
def test_anything_else_is_invalid(payload: object) -> None:
    envelope = parse_upstream_envelope(payload)

    assert envelope.kind is EnvelopeKind.INVALID
    assert envelope.records == []
