"""Response envelopes of the card search API."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError

type RawCard = dict[str, Any]


class SearchResponse(BaseModel):
    """Wrapped search page as returned by ``GET /cards``."""

    model_config = ConfigDict(extra="allow", populate_by_name=True)

    data: list[Any]
    page: int | None = None
    page_size: int | None = Field(default=None, alias="pageSize")
    count: int | None = None
    total_count: int | None = Field(default=None, alias="totalCount")


class EnvelopeKind(StrEnum):
    ARRAY = "array"
    WRAPPED = "wrapped"
    INVALID = "invalid"


@dataclass(slots=True, frozen=True)
class UpstreamEnvelope:
    kind: EnvelopeKind
    records: list[RawCard] = field(default_factory=list["RawCard"])
    total_count: int | None = None


def _card_dicts(items: list[Any]) -> list[RawCard]:
    return [item for item in items if isinstance(item, dict)]


def parse_upstream_envelope(payload: object) -> UpstreamEnvelope:
    """Classify a decoded JSON payload and pull out its card records.

    A bare list is an ``ARRAY`` envelope (the shape of persisted artifacts). An
    object holding a ``data`` or ``cards`` list is ``WRAPPED`` (the search API
    shape). Anything else is ``INVALID`` and carries no records.
    """

    if isinstance(payload, list):
        return UpstreamEnvelope(kind=EnvelopeKind.ARRAY, records=_card_dicts(payload))

    if isinstance(payload, dict):
        if isinstance(payload.get("data"), list):
            try:
                response = SearchResponse.model_validate(payload)
            except ValidationError:
                return UpstreamEnvelope(kind=EnvelopeKind.INVALID)
            return UpstreamEnvelope(
                kind=EnvelopeKind.WRAPPED,
                records=_card_dicts(response.data),
                total_count=response.total_count,
            )
        cards = payload.get("cards")
        if isinstance(cards, list):
            return UpstreamEnvelope(kind=EnvelopeKind.WRAPPED, records=_card_dicts(cards))

    return UpstreamEnvelope(kind=EnvelopeKind.INVALID)
