"""FastAPI web application exposing the ColdCopy pipeline."""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator, Awaitable, Callable, Sequence
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Any

from fastapi import FastAPI, Header, Request, status as http_status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse, PlainTextResponse
from fastapi.staticfiles import StaticFiles
from starlette.responses import Response

from coldcopy.core import AppSettings, load_app_settings
from coldcopy.core.datetime_utils import serialize_datetime, utc_now
from coldcopy.core.interfaces import ColdCopyError, StageExecutor, ValidationError
from coldcopy.export import build_crm_csv
from coldcopy.intelligence import (
    BatchCoordinator,
    GenerationOrchestrator,
    OpenAIChatExecutor,
    SuggestionService,
)
from coldcopy.intelligence.suggestions import DEFAULT_SESSION

from .schemas import BatchBody, CrmBody, GenerateBody, SuggestionBody
from .security import SecurityHeaders

LOGGER = logging.getLogger(__name__)

SESSION_HEADER = "X-Session-Id"


def _flatten_validation_errors(errors: Sequence[Any]) -> dict[str, Any]:
    """Group pydantic errors into form-level and field-level messages."""
    form_errors: list[str] = []
    field_errors: dict[str, list[str]] = {}
    for error in errors:
        location = [str(part) for part in error.get("loc", ()) if part != "body"]
        message = str(error.get("msg", "Invalid value"))
        if location:
            field_errors.setdefault(".".join(location), []).append(message)
        else:
            form_errors.append(message)
    return {"formErrors": form_errors, "fieldErrors": field_errors}


def _error_response(exc: Exception, fallback_message: str) -> JSONResponse:
    """Map a pipeline failure onto an HTTP error payload."""
    if isinstance(exc, ValidationError):
        return JSONResponse(
            status_code=http_status.HTTP_400_BAD_REQUEST,
            content={"error": {"formErrors": [str(exc)], "fieldErrors": exc.field_errors}},
        )
    message = str(exc) if isinstance(exc, ColdCopyError) and str(exc) else fallback_message
    return JSONResponse(
        status_code=http_status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"error": message},
    )


def create_app(
    settings: AppSettings | None = None,
    *,
    env_file: Path | str | None = None,
    executor: StageExecutor | None = None,
    suggestion_service: SuggestionService | None = None,
) -> FastAPI:
    """Create and configure the FastAPI application.

    Settings are resolved here so that missing configuration stops startup
    with a ``ConfigurationError`` instead of failing on the first request.
    """
    app_settings = settings or load_app_settings(env_file=env_file)
    owned_executor = None
    if executor is None:
        owned_executor = OpenAIChatExecutor(app_settings.llm)
        executor = owned_executor
    owned_suggestions = None
    if suggestion_service is None:
        owned_suggestions = SuggestionService(app_settings.suggestions)
        suggestion_service = owned_suggestions

    orchestrator = GenerationOrchestrator(executor)
    batch = BatchCoordinator(
        orchestrator, max_concurrency=app_settings.batch.max_concurrency
    )
    suggestions = suggestion_service
    security_headers = SecurityHeaders()

    @asynccontextmanager
    async def lifespan(_: FastAPI) -> AsyncIterator[None]:
        LOGGER.info(
            "ColdCopy API ready (model=%s, suggestions=%s)",
            app_settings.llm.model,
            "provider" if suggestions.configured else "fallback",
        )
        yield
        if owned_executor is not None:
            await owned_executor.aclose()
        if owned_suggestions is not None:
            await owned_suggestions.aclose()

    app = FastAPI(title="ColdCopy", lifespan=lifespan)
    app.state.settings = app_settings
    app.state.orchestrator = orchestrator

    app.add_middleware(GZipMiddleware, minimum_size=1000)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=app_settings.server.cors_origins,
        allow_methods=["GET", "POST"],
        allow_headers=["*"],
    )

    @app.middleware("http")
    async def add_security_headers(
        request: Request, call_next: Callable[[Request], Awaitable[Response]]
    ) -> Response:
        return security_headers.apply(await call_next(request))

    @app.exception_handler(RequestValidationError)
    async def handle_request_validation(
        _: Request, exc: RequestValidationError
    ) -> JSONResponse:
        return JSONResponse(
            status_code=http_status.HTTP_400_BAD_REQUEST,
            content={"error": _flatten_validation_errors(exc.errors())},
        )

    @app.get("/health")
    async def health() -> dict[str, str]:
        return {"status": "ok", "timestamp": serialize_datetime(utc_now())}

    @app.post("/api/generate")
    async def generate(body: GenerateBody) -> Response:
        try:
            result = await orchestrator.generate(body.to_request())
        except Exception as exc:  # noqa: BLE001 - mapped to an HTTP error
            LOGGER.exception("/api/generate failed")
            return _error_response(
                exc, "Something went wrong while generating the email."
            )
        return JSONResponse(result.to_dict())

    @app.post("/api/batch")
    async def run_batch(body: BatchBody) -> Response:
        max_entries = app_settings.batch.max_entries
        if max_entries is not None and len(body.entries) > max_entries:
            return JSONResponse(
                status_code=http_status.HTTP_400_BAD_REQUEST,
                content={
                    "error": {
                        "formErrors": [],
                        "fieldErrors": {
                            "entries": [f"At most {max_entries} entries per batch"]
                        },
                    }
                },
            )
        results = await batch.run_batch([entry.to_request() for entry in body.entries])
        return JSONResponse({"exports": [item.to_dict() for item in results]})

    @app.post("/api/crm")
    async def crm_export(body: CrmBody) -> Response:
        csv_text = build_crm_csv(entry.to_entry() for entry in body.entries)
        return PlainTextResponse(
            csv_text,
            media_type="text/csv",
            headers={"Content-Disposition": 'attachment; filename="coldcopy.csv"'},
        )

    @app.post("/api/suggestions")
    async def suggest(
        body: SuggestionBody,
        session_id: str | None = Header(default=None, alias=SESSION_HEADER),
    ) -> dict[str, Any]:
        response = await suggestions.suggest(
            body.query,
            body.company,
            body.context,
            body.keywords,
            session_id=session_id or DEFAULT_SESSION,
        )
        return response.to_dict()

    @app.get("/api/suggestions/latest")
    async def latest_suggestions(
        session_id: str | None = Header(default=None, alias=SESSION_HEADER),
    ) -> dict[str, Any]:
        return suggestions.latest(session_id or DEFAULT_SESSION).to_dict()

    static_dir = app_settings.server.static_dir
    if static_dir is not None:
        if static_dir.is_dir():
            app.mount("/", StaticFiles(directory=str(static_dir), html=True), name="client")
        else:
            LOGGER.warning("Static client directory %s not found; skipping", static_dir)

    return app


__all__ = ["SESSION_HEADER", "create_app"]
