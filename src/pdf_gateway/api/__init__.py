from __future__ import annotations

from typing import Any, Mapping, Sequence

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from ..config import AppConfig
from ..engine import ConversionEngine
from ..errors import GatewayError, ValidationFailure
from ..logging import configure_logging
from ..settings import prepare_config
from .routers import convert, health, sessions

API_TITLE = "PDF Conversion Gateway"
API_VERSION = "0.1.0"


def create_app(
    config: AppConfig | None = None,
    engine: ConversionEngine | None = None,
    *,
    require_enabled: bool = True,
) -> FastAPI:
    config = config or prepare_config()
    if require_enabled and not config.runtime.enable_api:
        raise RuntimeError("HTTP API is disabled. Enable it via configuration or environment.")

    configure_logging(config.runtime.log_level, json_logs=config.runtime.json_logs)

    app = FastAPI(title=API_TITLE, version=API_VERSION)
    app.state.config = config
    app.state.engine = engine or ConversionEngine.from_config(config)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=list(config.api.cors_origins),
        allow_methods=["GET", "POST", "DELETE", "OPTIONS"],
        allow_headers=["*"],
        expose_headers=["Content-Disposition"],
    )

    @app.exception_handler(GatewayError)
    async def _gateway_error(_: Request, exc: GatewayError) -> JSONResponse:
        return JSONResponse(status_code=exc.status_code, content=exc.to_payload())

    @app.exception_handler(RequestValidationError)
    async def _request_shape_error(_: Request, exc: RequestValidationError) -> JSONResponse:
        failure = ValidationFailure(describe_validation_errors(exc.errors()))
        return JSONResponse(status_code=failure.status_code, content=failure.to_payload())

    app.include_router(health.router)
    app.include_router(convert.router)
    app.include_router(sessions.router)

    @app.on_event("shutdown")
    async def _shutdown() -> None:  # pragma: no cover - FastAPI lifecycle
        gateway: ConversionEngine = app.state.engine
        gateway.shutdown()

    return app


def describe_validation_errors(errors: Sequence[Mapping[str, Any]]) -> str:
    parts: list[str] = []
    for error in errors:
        location = ".".join(str(part) for part in error.get("loc", ()) if part != "body")
        message = str(error.get("msg", "invalid value"))
        parts.append(f"{location}: {message}" if location else message)
    if not parts:
        return "Invalid request"
    return "Invalid request: " + "; ".join(parts)


__all__ = ["API_TITLE", "API_VERSION", "create_app", "describe_validation_errors"]
