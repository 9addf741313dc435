"""FastAPI server exposing the wardrobe curator endpoints."""

from __future__ import annotations

import logging
import os
from typing import Optional

from fastapi import FastAPI, File, Form, Request, UploadFile
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse, Response

from curator_app.app import WardrobeCuratorApp
from curator_app.auth import resolve_auth_context
from curator_app.errors import InvalidRequest, NotFound, Unauthorized
from curator_app.logging_config import correlation_context, get_logger, log_event

LOGGER = get_logger(__name__)
REQUEST_ID_HEADER = "X-Request-ID"


def _error_response(status_code: int, error: str, details: Optional[list] = None) -> JSONResponse:
    body: dict = {"error": error}
    if details is not None:
        body["details"] = details
    return JSONResponse(status_code=status_code, content=body)


def _register_error_handlers(app: FastAPI) -> None:
    @app.exception_handler(RequestValidationError)
    async def _request_validation(_: Request, exc: RequestValidationError) -> JSONResponse:
        details = [
            {"loc": [str(part) for part in error.get("loc", ())], "msg": error.get("msg", ""), "type": error.get("type", "")}
            for error in exc.errors()
        ]
        return _error_response(400, "Invalid request", details)

    @app.exception_handler(InvalidRequest)
    async def _invalid_request(_: Request, exc: InvalidRequest) -> JSONResponse:
        return _error_response(400, exc.message, exc.details)

    @app.exception_handler(Unauthorized)
    async def _unauthorized(_: Request, __: Unauthorized) -> JSONResponse:
        return _error_response(401, "Unauthorized")

    @app.exception_handler(NotFound)
    async def _not_found(_: Request, __: NotFound) -> JSONResponse:
        return _error_response(404, "Not found")

    @app.exception_handler(Exception)
    async def _internal(request: Request, exc: Exception) -> JSONResponse:
        log_event(
            LOGGER,
            logging.ERROR,
            "request_failed",
            path=request.url.path,
            error_type=type(exc).__name__,
            exc_info=exc,
        )
        return _error_response(500, "Internal server error")


def get_app(curator: WardrobeCuratorApp | None = None) -> FastAPI:
    """Build the ASGI application around a curator instance."""

    curator = curator or WardrobeCuratorApp()
    app = FastAPI(title="Wardrobe Curator", version="0.1.0")
    app.state.curator = curator
    _register_error_handlers(app)

    @app.middleware("http")
    async def _correlation(request: Request, call_next):
        with correlation_context(request.headers.get(REQUEST_ID_HEADER)) as correlation_id:
            response = await call_next(request)
            response.headers[REQUEST_ID_HEADER] = correlation_id
            return response

    @app.get("/healthz")
    async def healthcheck() -> dict:
        """Readiness probe."""

        return {
            "status": "ok",
            "service": "wardrobe-curator",
            "environment": curator.config.environment or "local",
            "catalog_mode": curator.config.catalog_mode,
        }

    @app.post("/wardrobe/recommend")
    def recommend(payload: dict, request: Request) -> dict:
        """Recommend one outfit for a free-text request."""

        return curator.recommend(payload, resolve_auth_context(request.headers))

    @app.get("/wardrobe/items")
    def list_items(request: Request) -> dict:
        """List stored items; filters arrive as query parameters."""

        return curator.list_items(dict(request.query_params), resolve_auth_context(request.headers))

    @app.post("/wardrobe/upload", status_code=201)
    def upload(
        request: Request,
        file: Optional[UploadFile] = File(None),
        metadata: Optional[str] = Form(None),
    ) -> dict:
        """Store, describe and embed an uploaded garment image."""

        auth = resolve_auth_context(request.headers)
        if file is None:
            return curator.upload(None, "", metadata, auth=auth)
        return curator.upload(
            file.file.read(),
            file.content_type or "",
            metadata,
            auth=auth,
            filename=file.filename,
        )

    @app.get("/uploads/{name}")
    def serve_upload(name: str) -> Response:
        """Serve a stored image binary."""

        data, content_type = curator.binary_store.open(name)
        return Response(content=data, media_type=content_type)

    return app


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "server.api:get_app",
        factory=True,
        host=os.getenv("HOST", "0.0.0.0"),
        port=int(os.getenv("PORT", "8080")),
        reload=False,
    )
