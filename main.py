# main.py
from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from starlette.exceptions import HTTPException as StarletteHTTPException
from contextlib import asynccontextmanager

from core.config import Settings, get_settings
from core.exceptions import (
    StorefrontException,
    handle_general_exception,
    handle_http_exception,
    handle_storefront_exception,
    handle_validation_exception,
)
from core.logging import logger, configure_logging
from core.metrics import create_metrics

from api.endpoints import health, metrics
from api.endpoints.frontend import create_frontend_router
from api.pipeline import ApiRequestCounterMiddleware, UnhandledErrorMiddleware, mount_route_groups
from services.dependencies import ServiceManager


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings = app.state.settings
    logger.info("Storefront API starting up", environment=settings.environment, port=settings.port)
    try:
        await ServiceManager.initialize_all(settings)
        logger.info("All services initialized successfully")
    except Exception as e:
        app.state.metrics.errors.labels(type="startup").inc()
        logger.exception("Service initialization failed", error=str(e))
        await ServiceManager.cleanup_all()
        raise
    try:
        yield
    finally:
        try:
            await ServiceManager.cleanup_all()
            logger.info("All services cleaned up successfully")
        except Exception as e:
            app.state.metrics.errors.labels(type="shutdown").inc()
            logger.exception("Service cleanup failed", error=str(e))


def create_app(settings: Settings = None) -> FastAPI:
    settings = settings or get_settings()
    configure_logging(settings)

    app = FastAPI(
        title=settings.api_title,
        version=settings.api_version,
        lifespan=lifespan,
        docs_url="/docs" if settings.debug else None,
        redoc_url="/redoc" if settings.debug else None,
        openapi_url="/openapi.json" if settings.debug else None,
    )
    app.state.settings = settings
    app.state.metrics = create_metrics(settings.metrics_namespace)

    # Added inner-first; requests pass the counter, then CORS, then the error envelope
    app.add_middleware(UnhandledErrorMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.get_allowed_origins(),
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(
        ApiRequestCounterMiddleware,
        metrics=app.state.metrics,
        prefix=settings.api_prefix,
    )

    # Routers, in dispatch order; the frontend catch-all must stay last
    app.include_router(metrics.router)
    app.include_router(health.router)
    mount_route_groups(app, settings.api_prefix)
    app.include_router(create_frontend_router(settings))

    # Error handlers; the Exception one only sees failures outside the middleware stack
    app.add_exception_handler(StorefrontException, handle_storefront_exception)
    app.add_exception_handler(StarletteHTTPException, handle_http_exception)
    app.add_exception_handler(RequestValidationError, handle_validation_exception)
    app.add_exception_handler(Exception, handle_general_exception)

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host=app.state.settings.host, port=app.state.settings.port)
