from __future__ import annotations

import math
from typing import Any, Awaitable, Callable, List, Optional

from starlette.applications import Starlette
from starlette.concurrency import run_in_threadpool
from starlette.datastructures import UploadFile
from starlette.middleware.cors import CORSMiddleware
from starlette.requests import Request
from starlette.responses import JSONResponse
from starlette.routing import Route

from ..acquisition.artifacts import KIND_DOCUMENT, KIND_IMAGE, MAX_UPLOAD_BYTES, UploadedArtifact, classify_upload
from ..config import Settings
from ..domain.codes import vocabulary
from ..errors import (
    ConfigurationError,
    ExtractionFailure,
    MenuImportError,
    RateLimitExceeded,
    SuggestionFailure,
    ValidationError,
)
from ..logging import get_logger
from ..ratelimit import PARSE_MENU_SCOPE, SUGGEST_SCOPE, RateLimiter, scoped_key
from ..service import MenuImportService

LOG = get_logger("api")

UNKNOWN_CLIENT = "unknown"


def client_identifier(request: Request) -> str:
    """First ``X-Forwarded-For`` hop, else ``X-Real-IP``, else ``"unknown"``."""
    forwarded_for = request.headers.get("x-forwarded-for")
    if forwarded_for:
        return forwarded_for.split(",")[0].strip() or UNKNOWN_CLIENT
    return request.headers.get("x-real-ip") or UNKNOWN_CLIENT


def retry_after_seconds(retry_after_ms: int) -> int:
    return max(1, math.ceil(retry_after_ms / 1000))


def error_response(exc: MenuImportError) -> JSONResponse:
    if isinstance(exc, RateLimitExceeded):
        return JSONResponse(
            {"error": exc.message},
            status_code=exc.status_code,
            headers={"Retry-After": str(retry_after_seconds(exc.retry_after_ms))},
        )
    if isinstance(exc, (ValidationError, ConfigurationError)):
        return JSONResponse({"error": exc.message}, status_code=exc.status_code)
    # Extraction details stay in the logs.
    return JSONResponse({"error": exc.public_message}, status_code=exc.status_code)


async def _handle_menu_import_error(_: Request, exc: MenuImportError) -> JSONResponse:
    if exc.status_code >= 500:
        LOG.error("%s: %s", type(exc).__name__, exc.message)
    else:
        LOG.info("%s: %s", type(exc).__name__, exc.message)
    return error_response(exc)


async def _read_upload(value: Any, *, expected_kind: str) -> Optional[UploadedArtifact]:
    if not isinstance(value, UploadFile):
        return None
    data = await value.read(MAX_UPLOAD_BYTES + 1)
    if not data and not value.filename:
        # Browsers submit an empty part for an untouched file input.
        return None
    return classify_upload(data, value.content_type, filename=value.filename, expected_kind=expected_kind)


def _decode(data: bytes) -> str:
    try:
        return data.decode("utf-8")
    except UnicodeDecodeError as exc:
        raise ValidationError("Die Datei muss UTF-8-kodiert sein.") from exc


async def _read_import_text(request: Request) -> str:
    """Import body: form field ``text``, form file ``file`` or the raw body."""
    content_type = request.headers.get("content-type", "")
    if content_type.startswith(("multipart/form-data", "application/x-www-form-urlencoded")):
        async with request.form() as form:
            upload = form.get("file")
            if isinstance(upload, UploadFile):
                return _decode(await upload.read())
            text = form.get("text")
            return text if isinstance(text, str) else ""
    return _decode(await request.body())


async def _guarded(call: Callable[[], Awaitable[Any]], failure: type = ExtractionFailure) -> Any:
    """Await an AI-backed step; unexpected errors become a generic 500."""
    try:
        return await call()
    except MenuImportError:
        raise
    except Exception as exc:
        LOG.exception("Unexpected error in AI-backed request")
        raise failure(f"unexpected error: {exc}") from exc


def create_app(
    service: Optional[MenuImportService] = None,
    *,
    settings: Optional[Settings] = None,
    limiter: Optional[RateLimiter] = None,
    allow_origins: Optional[List[str]] = None,
) -> Starlette:
    """Create a Starlette app exposing the menu import endpoints."""

    svc = service or MenuImportService(settings)
    cfg = svc.settings
    rate_limiter = limiter or RateLimiter()

    async def health(_: Request) -> JSONResponse:
        return JSONResponse({"status": "ok", "model": cfg.openai_model})

    async def codes(_: Request) -> JSONResponse:
        return JSONResponse(vocabulary())

    async def parse_menu(request: Request) -> JSONResponse:
        svc.extractor  # raises ConfigurationError without an API key
        rate_limiter.enforce(
            scoped_key(PARSE_MENU_SCOPE, client_identifier(request)),
            cfg.parse_rate_limit,
            cfg.rate_window_ms,
        )
        async with request.form() as form:
            raw_text = form.get("text")
            text = raw_text if isinstance(raw_text, str) else None
            image = await _read_upload(form.get("image"), expected_kind=KIND_IMAGE)
            pdf = await _read_upload(form.get("pdf"), expected_kind=KIND_DOCUMENT)
        if image is not None and pdf is not None:
            raise ValidationError("Bitte nur ein Bild oder eine PDF-Datei hochladen.")
        artifact = image or pdf
        result = await _guarded(lambda: run_in_threadpool(svc.parse_menu, text, artifact))
        return JSONResponse(result.as_dict())

    async def suggest_allergens(request: Request) -> JSONResponse:
        svc.suggester  # raises ConfigurationError without an API key
        rate_limiter.enforce(
            scoped_key(SUGGEST_SCOPE, client_identifier(request)),
            cfg.suggest_rate_limit,
            cfg.rate_window_ms,
        )
        try:
            body = await request.json()
        except ValueError as exc:
            raise ValidationError("Ungültiger JSON-Body.") from exc
        name = body.get("productName") if isinstance(body, dict) else None
        suggestion = await _guarded(
            lambda: run_in_threadpool(svc.suggest_allergens, name if isinstance(name, str) else ""),
            SuggestionFailure,
        )
        return JSONResponse(suggestion.as_dict())

    async def import_csv(request: Request) -> JSONResponse:
        text = await _read_import_text(request)
        return JSONResponse(svc.import_csv(text).as_dict())

    async def import_paste(request: Request) -> JSONResponse:
        text = await _read_import_text(request)
        return JSONResponse(svc.import_paste(text).as_dict())

    routes = [
        Route("/api/health", health, methods=["GET"]),
        Route("/api/codes", codes, methods=["GET"]),
        Route("/api/parse-menu", parse_menu, methods=["POST"]),
        Route("/api/suggest-allergens", suggest_allergens, methods=["POST"]),
        Route("/api/import/csv", import_csv, methods=["POST"]),
        Route("/api/import/paste", import_paste, methods=["POST"]),
    ]

    app = Starlette(
        debug=False,
        routes=routes,
        exception_handlers={MenuImportError: _handle_menu_import_error},
    )

    origins = allow_origins or ["http://localhost:3000", "http://127.0.0.1:3000"]
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"] if "*" in origins else origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    return app


__all__ = ["create_app", "client_identifier", "retry_after_seconds"]
