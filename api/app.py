"""
FastAPI application factory.

Usage:
    python -m api.app                    # Dev server on port 8000
    APP_DB_PATH=/path/to/komplete.db3 python -m api.app

OpenAPI docs available at http://localhost:8000/docs after starting.

The preset library loads on a background thread when the app starts. Until
it is ready, query endpoints answer 503 with ``Retry-After: 1``; clients
poll /api/v1/status (or /health) in the meantime.
"""

import json
import logging
import time
import uuid
from contextlib import asynccontextmanager
from http import HTTPStatus
from pathlib import Path

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from api.routes import facets, presets, status
from library.loader import LibraryNotReady, LibraryState
from utils.config import AppConfig

# ── Configuration ─────────────────────────────────────────────────────────────
_cfg = AppConfig.from_env()

# ── Structured JSON logging ───────────────────────────────────────────────────


class _JsonFormatter(logging.Formatter):
    """Emit log records as newline-delimited JSON."""

    def format(self, record: logging.LogRecord) -> str:
        data: dict = {
            "timestamp": self.formatTime(record, "%Y-%m-%dT%H:%M:%S"),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        # Merge extra fields added via logger.info("...", extra={...})
        for key in ("method", "path", "status", "duration_ms", "request_id"):
            if hasattr(record, key):
                data[key] = getattr(record, key)
        if record.exc_info:
            data["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(data)


_logger = logging.getLogger("kk_browser_api")
_handler = logging.StreamHandler()
if _cfg.log_format == "json":
    _handler.setFormatter(_JsonFormatter())
else:
    _handler.setFormatter(
        logging.Formatter("%(asctime)s %(levelname)s %(name)s %(message)s")
    )
logging.basicConfig(handlers=[_handler], level=logging.INFO, force=True)


def _error_body(status_code: int, detail) -> dict:
    try:
        error = HTTPStatus(status_code).phrase
    except ValueError:
        error = "Error"
    return {
        "error": error,
        "detail": detail if detail is None or isinstance(detail, str) else str(detail),
        "status_code": status_code,
    }


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Start loading the preset library in the background."""
    state: LibraryState = app.state.library_state
    if not state.db_found:
        _logger.warning(
            "Database not found at %s. Set APP_DB_PATH to the komplete.db3 location.",
            state.db_path,
        )
    state.start()
    yield


def create_app(db_path: Path | None = None,
               state: LibraryState | None = None) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        db_path: Override the database path (useful for testing).
        state: Use an existing LibraryState instead of creating one;
            takes precedence over *db_path*.

    Returns:
        Configured FastAPI application instance.
    """
    if state is None:
        state = LibraryState(
            db_path or _cfg.db_path,
            preview_library_path=_cfg.preview_library_path,
        )

    app = FastAPI(
        title="KK Preset Browser API",
        summary="Faceted search over the Komplete Kontrol preset library.",
        description=(
            "## KK Preset Browser API\n\n"
            "Read-only access to the presets in the Komplete Kontrol browser "
            "database (`komplete.db3`).\n\n"
            "### Key concepts\n"
            "- **Facets**: vendors, products, categories, modes and banks. "
            "Within a facet, selected values are alternatives; across facets "
            "all selections must match.\n"
            "- **Facet catalogs** list only values still reachable given the "
            "*other* facets' selections.\n"
            "- **Presets** are paged: `start = offset`, "
            "`end = start + len(results)`.\n\n"
            "### Readiness\n"
            "The library loads in the background after startup. Until then "
            "query endpoints return `503` with `Retry-After: 1`; poll "
            "`/api/v1/status`."
        ),
        version="1.0.0",
        lifespan=lifespan,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_tags=[
            {"name": "facets", "description": "Reachable values per facet."},
            {"name": "presets", "description": "Paged preset search and preview playback."},
            {"name": "meta", "description": "Health check and library status."},
        ],
    )
    app.state.library_state = state

    # ── CORS middleware ───────────────────────────────────────────────────────
    app.add_middleware(
        CORSMiddleware,
        allow_origins=_cfg.cors_origins,
        allow_credentials=False,
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["*"],
    )

    # ── Request logging middleware ────────────────────────────────────────────

    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        """Log each request with its duration and a short request ID."""
        request_id = str(uuid.uuid4())[:8]
        start = time.monotonic()
        path = request.url.path

        response = await call_next(request)
        duration_ms = (time.monotonic() - start) * 1000
        response.headers["X-Request-ID"] = request_id

        if _cfg.log_format == "json":
            _logger.info(
                "request",
                extra={
                    "method": request.method,
                    "path": path,
                    "status": response.status_code,
                    "duration_ms": round(duration_ms, 1),
                    "request_id": request_id,
                },
            )
        else:
            _logger.info(
                "method=%s path=%s status=%d duration_ms=%.1f rid=%s",
                request.method, path, response.status_code, duration_ms, request_id,
            )
        return response

    # ── Error handling ────────────────────────────────────────────────────────

    @app.exception_handler(Exception)
    async def generic_exception_handler(request: Request, exc: Exception):
        """Catch unhandled exceptions and return JSON instead of HTML traceback."""
        _logger.exception("Unhandled error on %s", request.url.path)
        return JSONResponse(status_code=500, content=_error_body(500, str(exc)))

    @app.exception_handler(ValueError)
    async def value_error_handler(request: Request, exc: ValueError):
        return JSONResponse(status_code=400, content=_error_body(400, str(exc)))

    @app.exception_handler(LibraryNotReady)
    async def not_ready_handler(request: Request, exc: LibraryNotReady):
        return JSONResponse(
            status_code=503,
            content=_error_body(503, str(exc)),
            headers={"Retry-After": "1"},
        )

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        return JSONResponse(
            status_code=exc.status_code,
            content=_error_body(exc.status_code, exc.detail),
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError):
        detail = "; ".join(
            f"{'.'.join(str(p) for p in err.get('loc', ()))}: {err.get('msg')}"
            for err in exc.errors()
        )
        return JSONResponse(status_code=422, content=_error_body(422, detail))

    # ── Health check ──────────────────────────────────────────────────────────

    @app.get("/health", tags=["meta"], summary="Health check")
    def health():
        """Return 200 while the library is loaded or loading, 503 otherwise."""
        state: LibraryState = app.state.library_state
        body = {"database": str(state.db_path)}
        if not state.db_found:
            return JSONResponse(status_code=503, content={"status": "no_database", **body})
        if state.loading:
            return {"status": "loading", **body}
        if state.library is None:
            return JSONResponse(
                status_code=503,
                content={"status": "error", "error": state.error, **body},
            )
        return {"status": "ok", "presets": len(state.library), **body}

    # ── Register routers ──────────────────────────────────────────────────────

    prefix = "/api/v1"
    app.include_router(status.router,  prefix=prefix)
    app.include_router(facets.router,  prefix=prefix)
    app.include_router(presets.router, prefix=prefix)

    return app


# Singleton instance for uvicorn
app = create_app()


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "api.app:app",
        host=_cfg.api_host,
        port=_cfg.api_port,
        reload=True,
        log_level="info",
    )
