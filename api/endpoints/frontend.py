# api/endpoints/frontend.py
from pathlib import Path
from typing import Optional

from fastapi import APIRouter, Request
from fastapi.responses import FileResponse
from fastapi.staticfiles import StaticFiles
from starlette.exceptions import HTTPException
from starlette.responses import Response
from starlette.types import Scope

from api.pipeline import in_namespace
from core.config import Settings
from core.exceptions import NotFoundError
from core.logging import logger

ALL_METHODS = ["GET", "HEAD", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"]
SERVED_METHODS = {"GET", "HEAD"}


async def asset_response(static: StaticFiles, scope: Scope) -> Optional[Response]:
    """The bundle file for this request, or None when there is no such file."""
    try:
        return await static.get_response(static.get_path(scope), scope)
    except HTTPException:
        return None
    except (ValueError, OSError) as e:
        # e.g. an encoded NUL in the path
        logger.debug("Unresolvable asset path", path=scope["path"], error=str(e))
        return None


def create_frontend_router(settings: Settings) -> APIRouter:
    """Catch-all router serving the frontend bundle.

    Must be included after every API route group: it matches every path and
    every method. Paths under the API prefix are never answered with the
    entry document.
    """
    root = Path(settings.frontend_dir)
    entry = root / settings.frontend_entry
    static = StaticFiles(directory=root, check_dir=False)
    router = APIRouter(tags=["frontend"])

    @router.api_route("/{full_path:path}", methods=ALL_METHODS, include_in_schema=False)
    async def serve_frontend(full_path: str, request: Request):
        path = request.url.path
        if request.method not in SERVED_METHODS or in_namespace(path, settings.api_prefix):
            raise NotFoundError(f"Cannot {request.method} {path}")

        response = await asset_response(static, request.scope)
        if response is not None:
            return response

        if not entry.is_file():
            logger.warning("Frontend entry document missing", path=str(entry))
            raise NotFoundError("Frontend bundle not found", resource="frontend")
        return FileResponse(entry, media_type="text/html")

    return router
