# app/main.py
from __future__ import annotations

import logging
import os
from pathlib import Path

from dotenv import load_dotenv, find_dotenv

# ---------------------------
# Env loading (root .env first, then app/.env as fallback)
# ---------------------------
load_dotenv(find_dotenv(usecwd=True))
load_dotenv(Path(__file__).resolve().parent / ".env", override=False)

from fastapi import FastAPI  # noqa: E402

from app.core.errors import register_exception_handlers  # noqa: E402
from app.db.base import Base  # noqa: E402
from app.db.session import SessionLocal, engine  # noqa: E402
from app.middleware.request_logging import RequestLoggingMiddleware  # noqa: E402
from app.services.audit import ensure_audit_table  # noqa: E402

# MODELS (registers tables on Base.metadata)
from app import models  # noqa: E402,F401

# ROUTERS
from app.api import health  # noqa: E402
from app.api.v1 import auth, collaboration, weddings  # noqa: E402

logging.basicConfig(
    level=os.getenv("LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)

# ---------------------------
# CREATE TABLES (dev-only; use Alembic elsewhere)
# ---------------------------
ENABLE_CREATE_ALL = os.getenv("ENABLE_CREATE_ALL", "1") == "1"


def init_db(bind=engine, session_factory=SessionLocal) -> None:
    Base.metadata.create_all(bind=bind)
    db = session_factory()
    try:
        ensure_audit_table(db)
    finally:
        db.close()


if ENABLE_CREATE_ALL:
    init_db()

# ---------------------------
# APP
# ---------------------------
app = FastAPI(title="Wedding Collaboration API", version="1.0.0")

app.add_middleware(RequestLoggingMiddleware)
register_exception_handlers(app)

app.include_router(auth.router, prefix="/api/v1", tags=["auth"])
app.include_router(weddings.router, prefix="/api/v1", tags=["weddings"])
app.include_router(collaboration.router, prefix="/api/v1", tags=["collaboration"])
app.include_router(health.router, prefix="/api", tags=["health"])
