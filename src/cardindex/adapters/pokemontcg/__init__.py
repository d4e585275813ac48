"""Public interface for the Pokemon TCG search adapter."""

from __future__ import annotations

from .client import PokemonTcgClient
from .schema import EnvelopeKind, SearchResponse, UpstreamEnvelope, parse_upstream_envelope

__all__ = [
    "EnvelopeKind",
    "PokemonTcgClient",
    "SearchResponse",
    "UpstreamEnvelope",
    "parse_upstream_envelope",
]
