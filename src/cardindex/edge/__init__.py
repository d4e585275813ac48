"""HTTP edge proxy for the static artifact tree."""

from __future__ import annotations

from .app import DEFAULT_CACHE_SECONDS, create_app, dex_candidates, name_variants

__all__ = ["DEFAULT_CACHE_SECONDS", "create_app", "dex_candidates", "name_variants"]
