# Main application file

import time
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from slowapi import Limiter
from slowapi.middleware import SlowAPIMiddleware
from slowapi.util import get_remote_address

from inventory_api.core.config import Settings, get_settings
from inventory_api.core.errors import register_exception_handlers
from inventory_api.core.logging import configure_logging
from inventory_api.database import build_engine, build_session_factory, create_tables
from inventory_api.routers import products, stocks, stores
from inventory_api.services.audit import AuditNotifier


def create_app(
    settings: Settings | None = None,
    notifier: AuditNotifier | None = None,
) -> FastAPI:
    settings = settings or get_settings()

    # LOGGING CONFIGURATION

    logger = configure_logging(settings)

    # DATABASE & AUDIT

    engine = build_engine(settings.DATABASE_URL)

    notifier = notifier or AuditNotifier(
        settings.HISTORY_SERVICE_URL,
        timeout=settings.HISTORY_TIMEOUT_SECONDS,
        max_workers=settings.AUDIT_WORKERS,
        logger=logger,
    )

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        create_tables(engine)
        logger.info(f"{settings.APP_NAME} started ({settings.ENV})")
        yield
        notifier.shutdown(wait=True)
        engine.dispose()

    # APP INIT

    app = FastAPI(
        title=settings.APP_NAME,
        description="Products, stores and per-store stock quantities with an audit trail",
        version="1.0.0",
        lifespan=lifespan,
    )

    app.state.settings = settings
    app.state.logger = logger
    app.state.session_factory = build_session_factory(engine)
    app.state.notifier = notifier

    # CORS

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=False,
        allow_methods=["GET", "POST", "PUT", "DELETE"],
        allow_headers=["Authorization", "Content-Type"],
    )

    # RATE LIMITING

    app.state.limiter = Limiter(
        key_func=get_remote_address,
        default_limits=[settings.RATE_LIMIT],
        enabled=settings.RATE_LIMIT_ENABLED,
    )
    app.add_middleware(SlowAPIMiddleware)

    # REQUEST LOGGING MIDDLEWARE

    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        start_time = time.time()

        response = await call_next(request)

        duration = round((time.time() - start_time) * 1000, 2)

        logger.info(
            f"{request.method} {request.url.path} "
            f"Status: {response.status_code} "
            f"Time: {duration}ms"
        )

        return response

    # ERRORS

    register_exception_handlers(app, settings)

    # ROUTERS

    app.include_router(products.router)
    app.include_router(stores.router)
    app.include_router(stocks.router)

    # ROOT

    @app.get("/")
    def root():
        return {"message": "Inventory Stock Management"}

    @app.get("/health")
    def health():
        return {"success": True, "message": "ok"}

    return app
