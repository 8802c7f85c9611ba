"""Application factory and local runner."""

from __future__ import annotations

import logging
import sys
from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from starlette.staticfiles import StaticFiles

from .api import router
from .config import Settings
from .context import AppContext
from .ingestion import MailSender
from .qr import QRCodeGenerator

logger = logging.getLogger(__name__)

APP_LOGGERS = ("server", "services")
LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def configure_logging(level: str = "INFO") -> None:
    """Send the app loggers to uvicorn's console, or to stdout without it."""
    uvicorn_handlers = list(logging.getLogger("uvicorn.error").handlers)
    if not uvicorn_handlers:
        logging.basicConfig(format=LOG_FORMAT, stream=sys.stdout)
    for name in APP_LOGGERS:
        app_logger = logging.getLogger(name)
        app_logger.setLevel(level)
        app_logger.handlers = uvicorn_handlers
        app_logger.propagate = not uvicorn_handlers


async def _unexpected_error(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unexpected error on %s %s", request.method, request.url.path)
    return JSONResponse(
        status_code=500,
        content={"success": False, "code": "error", "error": "Internal server error"},
    )


def create_app(
    settings: Optional[Settings] = None,
    *,
    generator: Optional[QRCodeGenerator] = None,
    mailer: Optional[MailSender] = None,
) -> FastAPI:
    """Build the application. Collaborators may be injected for tests."""
    settings = settings or Settings.from_env()
    configure_logging(settings.log_level)
    context = AppContext.build(settings, generator=generator, mailer=mailer)

    @asynccontextmanager
    async def lifespan(_: FastAPI) -> AsyncIterator[None]:
        await context.startup()
        logger.info("Pass service ready, %d QR codes loaded", len(context.store))
        try:
            yield
        finally:
            await context.shutdown()
            logger.info("Pass service stopped")

    app = FastAPI(title="QR Pickup Pass Service", version="1.0.0", lifespan=lifespan)
    app.state.context = context
    app.include_router(router)
    # the folder is created during startup
    app.mount(
        "/qrcodes",
        StaticFiles(directory=settings.qr_folder, check_dir=False),
        name="qrcodes",
    )
    app.add_exception_handler(Exception, _unexpected_error)
    return app


def main() -> None:
    import uvicorn

    settings = Settings.from_env()
    uvicorn.run(
        create_app(settings),
        host="0.0.0.0",
        port=settings.port,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    main()
