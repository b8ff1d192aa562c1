# app/api/health.py
import time

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.core.auth import get_db

router = APIRouter()

_NO_STORE = {"Cache-Control": "no-store"}


@router.get("/healthz")
def healthz() -> dict:
    return {"ok": True, "service": "wedding_collab"}


@router.get("/readyz")
def readyz(db: Session = Depends(get_db)):
    """Ready once the collaborators table answers a query."""
    started = time.perf_counter()
    try:
        db.execute(text("SELECT COUNT(*) FROM collaborators WHERE 1 = 0"))
    except SQLAlchemyError as e:
        return JSONResponse(status_code=503, content={"ok": False, "db": str(e)}, headers=_NO_STORE)
    return JSONResponse(
        content={"ok": True, "db_ms": round((time.perf_counter() - started) * 1000, 2)},
        headers=_NO_STORE,
    )
