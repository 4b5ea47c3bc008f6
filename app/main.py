from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import FastAPI
from fastapi.staticfiles import StaticFiles

from app.api.v1.router import router as v1_router
from app.core.config import Settings
from app.core.db import build_engine, build_session_factory
from app.core.errors import UnhandledErrorMiddleware, register_error_handlers
from app.core.logging import configure_logging
from app.core.request_context import RequestContextMiddleware
from app.core.request_logging import RequestLoggingMiddleware
from app.core.telemetry import setup_telemetry
from app.services.announcements import AnnouncementService
from app.services.storage import PhotoStore


def create_app(settings: Settings | None = None) -> FastAPI:
    settings = settings or Settings()
    configure_logging(settings.log_level)

    engine = build_engine(settings.database_url)

    @asynccontextmanager
    async def lifespan(_app: FastAPI):
        yield
        await engine.dispose()

    app = FastAPI(title="PetSpot API", version="0.1.0", lifespan=lifespan)

    app.state.settings = settings
    app.state.engine = engine
    app.state.session_factory = build_session_factory(engine)
    Path(settings.upload_dir).mkdir(parents=True, exist_ok=True)
    store = PhotoStore(settings.upload_dir, url_prefix=settings.photo_url_prefix)
    app.state.announcements = AnnouncementService(photo_store=store, max_photo_bytes=settings.max_photo_bytes)

    register_error_handlers(app)

    # add_middleware prepends, so the last one added is the outermost
    app.add_middleware(UnhandledErrorMiddleware)
    app.add_middleware(RequestLoggingMiddleware, max_body_size=settings.log_body_max_chars)
    app.add_middleware(RequestContextMiddleware)

    if settings.otlp_endpoint:
        setup_telemetry(app, settings, engine)

    app.include_router(v1_router)
    app.mount(settings.photo_url_prefix, StaticFiles(directory=settings.upload_dir), name="images")
    return app


app = create_app()
