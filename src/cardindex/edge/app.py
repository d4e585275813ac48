"""Thin HTTP front for the artifact tree.

Only key spelling is normalized here; the payloads are served exactly as the
index writer left them.
"""

from __future__ import annotations

from typing import TYPE_CHECKING
from urllib.parse import unquote

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse, Response
from starlette.exceptions import HTTPException as StarletteHTTPException

from cardindex.adapters.filesystem import ArtifactStore
from cardindex.config.storage import INDEX_FILENAME, VERIFY_FILENAME

if TYPE_CHECKING:
    from pathlib import Path

DEFAULT_CACHE_SECONDS = 3600


def dex_candidates(raw: str) -> list[str]:
    """Filenames to try for a padded or unpadded dex id, canonical 4-digit first."""

    text = raw.strip()
    if not (text.isascii() and text.isdigit()):
        return []
    number = int(text)
    spellings = (f"{number:04d}", f"{number:03d}", str(number))
    return [f"{spelling}.json" for spelling in dict.fromkeys(spellings)]


def name_variants(raw: str) -> list[str]:
    name = raw.strip()
    straight = name.replace("’", "'")
    curly = name.replace("'", "’")
    return list(dict.fromkeys((name, straight, curly)))


def _stored_names(store: ArtifactStore) -> dict[str, Path]:
    return {unquote(path.stem).casefold(): path for path in store.iter_name_artifacts()}


def create_app(root: Path, *, cache_seconds: int = DEFAULT_CACHE_SECONDS) -> FastAPI:
    store = ArtifactStore(root)
    app = FastAPI(title="cardindex edge", docs_url=None, redoc_url=None)
    success_headers = {
        "Cache-Control": f"public, max-age={cache_seconds}",
        "Access-Control-Allow-Origin": "*",
    }

    def not_found(path: str) -> JSONResponse:
        return JSONResponse(
            {"error": "not_found", "path": path},
            status_code=404,
            headers={"Access-Control-Allow-Origin": "*"},
        )

    def serve(path: Path, request: Request) -> Response:
        if not path.is_file():
            return not_found(request.url.path)
        return Response(
            content=path.read_bytes(),
            media_type="application/json",
            headers=success_headers,
        )

    @app.exception_handler(StarletteHTTPException)
    async def http_error(request: Request, exc: StarletteHTTPException) -> Response:
        if exc.status_code == 404:
            return not_found(request.url.path)
        return JSONResponse(
            {"error": str(exc.detail)},
            status_code=exc.status_code,
            headers={"Access-Control-Allow-Origin": "*"},
        )

    @app.get("/cards/dex/{dex_id}.json")
    def get_dex(dex_id: str, request: Request) -> Response:
        for filename in dex_candidates(dex_id):
            path = store.dex_dir / filename
            if path.is_file():
                return serve(path, request)
        return not_found(request.url.path)

    @app.get("/cards/name/{name}.json")
    def get_name(name: str, request: Request) -> Response:
        for variant in name_variants(name):
            path = store.name_path(variant)
            if path.is_file():
                return serve(path, request)
        stored = _stored_names(store)
        for variant in name_variants(name):
            path = stored.get(variant.casefold())
            if path is not None:
                return serve(path, request)
        return not_found(request.url.path)

    @app.get("/cards/index.json")
    def get_index(request: Request) -> Response:
        return serve(store.root / INDEX_FILENAME, request)

    @app.get("/cards/_verify.json")
    def get_verify(request: Request) -> Response:
        return serve(store.root / VERIFY_FILENAME, request)

    return app
