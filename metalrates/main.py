import logging
from pathlib import Path

from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException
from .core.config import get_settings, Settings
from .core.logging import init_logging, request_context_middleware
from .core import errors
from .db.schema import init_db
from .db.dal import InMemoryStoreRateRepository, StoreRateRepository
from .routers import rates, store_rates
from .services.rates.fetcher import RateService, build_rate_service


def create_app(
    settings_override: Settings | None = None, rate_service: RateService | None = None
) -> FastAPI:
    """Application factory.

    settings_override: pass an already constructed Settings instance for tests
    to isolate environment (e.g., temp DB). Falls back to cached get_settings().
    rate_service: pre-built service (fake clock / in-memory store) for tests.
    """
    if settings_override is not None:
        settings_override.init_post_load()
    settings = settings_override or get_settings()
    # Initialize logging early
    init_logging(debug=settings.debug)

    try:
        service = rate_service or build_rate_service(settings)
    except Exception:
        # Failing to init storage is fatal; re-raise after logging
        logging.getLogger("metalrates").exception("failed to initialise rate storage")
        raise

    app = FastAPI(
        title=settings.app_name, debug=settings.debug, version=settings.version
    )
    app.state.settings = settings
    app.state.rate_service = service
    if settings.storage_backend == "sqlite":
        init_db(Path(settings.db_path))
        app.state.store_rates = StoreRateRepository(Path(settings.db_path))
    else:
        app.state.store_rates = InMemoryStoreRateRepository()

    # Middleware (request id / structured logging)
    app.middleware("http")(request_context_middleware)

    # Error handlers
    app.add_exception_handler(StarletteHTTPException, errors.http_error_handler)
    app.add_exception_handler(RequestValidationError, errors.validation_error_handler)
    app.add_exception_handler(Exception, errors.server_error_handler)

    # Routers (store_rates first so /rates/store is not shadowed)
    app.include_router(store_rates.router)
    app.include_router(rates.router)

    @app.get("/health")
    async def health():
        return {"status": "ok", "version": settings.version}

    @app.get("/")
    async def root():
        return {"message": "Metal Rates Service API", "version": settings.version}

    return app
