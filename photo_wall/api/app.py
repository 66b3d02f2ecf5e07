"""
FastAPI application for the photo wall
"""
import time

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, PlainTextResponse

from .. import __version__
from ..constants import SuccessMessages
from ..error_handler import error_handler
from ..exceptions import PhotoWallError
from ..logger import logger
from ..services.service_container import ServiceContainer, get_container
from .routes_events import router as events_router
from .routes_photos import router as photos_router


def create_app(container: ServiceContainer = None) -> FastAPI:
    """
    Build the application around a service container

    Args:
        container: Services to serve; the global container by default
    """
    container = container or get_container()

    app = FastAPI(title="Photo Wall API", version=__version__)
    app.state.container = container

    app.add_middleware(
        CORSMiddleware,
        allow_origins=container.config.cors_allowed_origins,
        allow_credentials=False,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        start_time = time.time()
        response = await call_next(request)
        logger.log_request(
            request.method,
            request.url.path,
            response.status_code,
            duration_ms=(time.time() - start_time) * 1000,
        )
        return response

    @app.exception_handler(PhotoWallError)
    async def handle_service_error(request: Request, exc: PhotoWallError):
        logger.error("Unhandled service error", error=exc, path=request.url.path)
        return JSONResponse(
            status_code=error_handler.status_code_for(exc),
            content=error_handler.create_error_body(exc.message, exc),
        )

    @app.on_event("startup")
    def on_startup() -> None:
        if container.config.create_table_on_startup:
            try:
                created = container.catalog.ensure_table()
                logger.info("Catalog table ready", created=created, table_name=container.catalog.table_name)
            except PhotoWallError as e:
                logger.error("Catalog table check failed", error=e)

        logger.info("Photo wall started",
                    max_photos=container.config.max_photos,
                    bucket=container.config.photo_bucket_name)

    @app.on_event("shutdown")
    def on_shutdown() -> None:
        container.shutdown()
        logger.info("Photo wall stopped")

    @app.get("/", response_class=PlainTextResponse)
    def root():
        return SuccessMessages.RUNNING

    @app.get("/health")
    def health():
        return {"status": "ok", "subscribers": container.event_bus.subscriber_count}

    app.include_router(photos_router)
    app.include_router(events_router)

    return app


app = create_app()
