"""FastAPI server for pagefeed"""

from __future__ import annotations

from typing import Any

from dotenv import load_dotenv
from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from pagefeed.api.routes.admin import router as admin_router
from pagefeed.api.routes.health import router as health_router
from pagefeed.api.routes.message import router as message_router
from pagefeed.api.routes.webhooks import router as webhooks_router
from pagefeed.config import API_HOST, API_PORT, APP_VERSION, DB_PATH
from pagefeed.observability.logging import get_logger
from pagefeed.observability.telemetry import counter, log_event
from pagefeed.storage.backend import StorageError
from pagefeed.storage.page_store import PageStore
from pagefeed.utils.error_sanitizer import get_safe_error_detail
from pagefeed.utils.validators import ValidationError

logger = get_logger(__name__)


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Sanitized 422: field names only, no validation rules or input echo."""
    logger.warning("Validation error on %s: %s", request.url.path, exc.errors())
    counter("api.validation_errors")

    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content={
            "detail": "Invalid request format. Please check your request and try again.",
            "error_count": len(exc.errors()),
            "invalid_fields": [str(err["loc"][-1]) for err in exc.errors()],
        },
    )


async def input_error_handler(request: Request, exc: ValidationError) -> JSONResponse:
    logger.warning("Rejected input on %s: %s", request.url.path, exc)
    counter("api.input_errors")
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"detail": get_safe_error_detail(exc, status.HTTP_400_BAD_REQUEST)},
    )


async def storage_error_handler(request: Request, exc: StorageError) -> JSONResponse:
    logger.error("Storage error on %s: %s", request.url.path, exc)
    counter("api.storage_errors")
    return JSONResponse(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        content={"detail": get_safe_error_detail(exc, status.HTTP_503_SERVICE_UNAVAILABLE)},
    )


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error on %s", request.url.path)
    counter("api.internal_errors")
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"detail": get_safe_error_detail(exc, status.HTTP_500_INTERNAL_SERVER_ERROR)},
    )


def build_default_store() -> PageStore:
    """PageStore over the SQLite database at PAGEFEED_DB_PATH."""
    from pagefeed.storage.sqlite_backend import SqliteBackend

    logger.info("Opening page store at %s", DB_PATH)
    return PageStore(SqliteBackend(DB_PATH))


def create_app(store: PageStore | None = None) -> FastAPI:
    """
    Build the API application.

    Args:
        store: Page store to serve (default: SQLite store from config).
            Tests pass a store over InMemoryBackend.

    Side Effects:
        - Loads .env into the process environment
        - Opens the SQLite database when no store is given
    """
    load_dotenv()

    app = FastAPI(title="pagefeed API", version=APP_VERSION)
    app.state.page_store = store if store is not None else build_default_store()

    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(ValidationError, input_error_handler)
    app.add_exception_handler(StorageError, storage_error_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)

    app.include_router(health_router)
    app.include_router(webhooks_router)
    app.include_router(message_router)
    app.include_router(admin_router)

    @app.get("/")
    def root() -> dict[str, Any]:
        return {
            "service": "pagefeed API",
            "version": APP_VERSION,
            "status": "running",
            "endpoints": {
                "health": "/health",
                "webhook": "/api/webhooks/{webhook_id}/slack",
                "message": "/api/message",
                "register": "/api/admin/webhooks",
            },
        }

    log_event("api.startup", service="pagefeed", version=APP_VERSION)
    return app


def main() -> None:
    """Run the API with uvicorn (``pagefeed-api``)."""
    import uvicorn

    uvicorn.run(create_app(), host=API_HOST, port=API_PORT)


if __name__ == "__main__":
    main()
