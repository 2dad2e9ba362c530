from __future__ import annotations

import logging

from dotenv import load_dotenv
from fastapi import FastAPI

from server.texcite.core.config import Settings
from server.texcite.core.db import init_db
from server.texcite.routes import citations, health


def create_app(settings: Settings | None = None) -> FastAPI:
    if settings is None:
        load_dotenv()
        settings = Settings.from_env()

    logging.basicConfig(level=getattr(logging, settings.log_level.upper(), logging.INFO))

    if settings.create_tables_on_startup:
        init_db(settings)

    app = FastAPI(title="texcite", version="0.1.0")
    app.state.settings = settings

    app.include_router(health.router)
    app.include_router(citations.router)
    return app
