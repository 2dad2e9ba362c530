from __future__ import annotations

from fastapi import APIRouter, HTTPException, Request
from sqlalchemy import text

from server.texcite.core.config import Settings
from server.texcite.core.db import get_sessionmaker

router = APIRouter()


@router.get("/healthz")
def healthz():
    return {"ok": True}


@router.get("/readyz")
def readyz(request: Request):
    settings: Settings = request.app.state.settings

    SessionLocal = get_sessionmaker(settings)
    try:
        with SessionLocal() as db:
            db.execute(text("SELECT 1"))
    except Exception as exc:
        raise HTTPException(status_code=503, detail="Database unavailable") from exc

    return {"ok": True, "github_token": bool(settings.github_token)}
