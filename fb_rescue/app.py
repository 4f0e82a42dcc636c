"""FastAPI application factory."""

import logging

from fastapi import FastAPI

from .config import settings
from .api.router import api_router

LOG_FORMAT = "%(levelname)s: %(name)s: %(message)s"


def configure_logging(debug: bool = False) -> None:
    logging.basicConfig(level=logging.INFO, format=LOG_FORMAT)
    logging.getLogger("fb_rescue").setLevel(logging.DEBUG if debug else logging.INFO)


def create_app() -> FastAPI:
    configure_logging(settings.debug)

    app = FastAPI(
        title="fb-rescue",
        version="0.1.0",
        description="Firebird database check, mend and backup/restore",
    )
    app.include_router(api_router, prefix="/api")
    return app
