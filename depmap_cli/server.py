"""HTTP API exposing the dependency-mapping pipeline (Starlette + uvicorn).

Endpoints:
  GET  /health          -> {"status": "ok", "timestamp": ...}
  POST /dependency-map  -> {"success": true, "folderPath": ..., "dependencyMap": {...}}
"""

from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from typing import Any, Optional

from starlette.applications import Starlette
from starlette.concurrency import run_in_threadpool
from starlette.middleware import Middleware
from starlette.middleware.cors import CORSMiddleware
from starlette.requests import Request
from starlette.responses import JSONResponse
from starlette.routing import Route

from .config import ServerSettings
from .errors import DepmapError, FolderNotFoundError
from .orchestrator import DependencyMapper

logger = logging.getLogger(__name__)


def _error(message: str, code: str, status_code: int = 400) -> JSONResponse:
    return JSONResponse({"error": message, "code": code}, status_code=status_code)


def create_app(settings: Optional[ServerSettings] = None) -> Starlette:
    """Create the Starlette ASGI application."""
    settings = settings or ServerSettings()
    mapper = DependencyMapper(
        include_error_files=settings.include_error_files,
        match_mode=settings.match_mode,
        max_workers=settings.max_workers,
    )

    async def health(request: Request) -> JSONResponse:
        return JSONResponse({
            "status": "ok",
            "timestamp": datetime.now(timezone.utc).isoformat(),
        })

    async def dependency_map(request: Request) -> JSONResponse:
        try:
            body: Any = json.loads(await request.body())
        except (ValueError, UnicodeDecodeError):
            body = None
        if not isinstance(body, dict):
            return _error("Request body must be a JSON object", "INVALID_BODY")

        if "folderPath" not in body or body["folderPath"] is None:
            return _error("folderPath is required", "MISSING_FOLDER_PATH")
        folder_path = body["folderPath"]
        if not isinstance(folder_path, str):
            return _error("folderPath must be a string", "INVALID_FOLDER_PATH_TYPE")
        if not folder_path.strip():
            return _error("folderPath cannot be empty", "EMPTY_FOLDER_PATH")

        try:
            graph = await run_in_threadpool(mapper.graph, folder_path)
        except FolderNotFoundError:
            return _error("Folder does not exist", FolderNotFoundError.code)
        except DepmapError as exc:
            logger.warning("Dependency map for %s failed: %s", folder_path, exc)
            return _error(str(exc), exc.code)

        return JSONResponse({
            "success": True,
            "folderPath": folder_path,
            "dependencyMap": graph.to_dict(),
        })

    return Starlette(
        routes=[
            Route("/health", health, methods=["GET"]),
            Route("/dependency-map", dependency_map, methods=["POST"]),
        ],
        middleware=[
            Middleware(
                CORSMiddleware,
                allow_origins=settings.cors_origins,
                allow_methods=["GET", "POST"],
                allow_headers=["*"],
            ),
        ],
    )


def run_server(settings: Optional[ServerSettings] = None, log_level: str = "warning") -> None:
    """Serve :func:`create_app` with uvicorn until interrupted."""
    import uvicorn

    settings = settings or ServerSettings()
    uvicorn.run(create_app(settings), host=settings.host, port=settings.port, log_level=log_level)
