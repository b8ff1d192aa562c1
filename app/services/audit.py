# app/services/audit.py
from __future__ import annotations

import json
import logging
from typing import Any, Dict, List, Optional

from fastapi import Request
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

log = logging.getLogger("app.audit")

ACTIONS = frozenset(
    {
        "INVITE_CREATED",
        "INVITE_ACCEPTED",
        "INVITE_DECLINED",
        "WEDDING_JOINED",
        "COLLABORATOR_ROLE_CHANGED",
        "COLLABORATOR_REMOVED",
    }
)

_CREATE = text(
    """
    CREATE TABLE IF NOT EXISTS audit_logs (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        wedding_id INTEGER NULL,
        user_id INTEGER NULL,
        action TEXT NOT NULL,
        entity_type TEXT NULL,
        entity_id INTEGER NULL,
        meta TEXT NULL,
        ip_address TEXT NULL,
        created_at DATETIME NOT NULL DEFAULT CURRENT_TIMESTAMP
    )
    """
)

_INSERT = text(
    """
    INSERT INTO audit_logs (wedding_id, user_id, action, entity_type, entity_id, meta, ip_address)
    VALUES (:wedding_id, :user_id, :action, :entity_type, :entity_id, :meta, :ip)
    """
)

_SELECT_FOR_WEDDING = text(
    """
    SELECT user_id, action, entity_type, entity_id, meta, ip_address, created_at
    FROM audit_logs WHERE wedding_id = :wedding_id ORDER BY id DESC LIMIT :limit
    """
)


def ip_from_request(request: Optional[Request]) -> Optional[str]:
    """First X-Forwarded-For hop, else the socket peer."""
    if request is None:
        return None
    forwarded = (request.headers.get("x-forwarded-for") or "").split(",")[0].strip()
    if forwarded:
        return forwarded
    return request.client.host if request.client else None


def ensure_audit_table(db: Session) -> None:
    db.execute(_CREATE)
    db.commit()


def audit_log(
    db: Session,
    *,
    wedding_id: Optional[int],
    user_id: Optional[int],
    action: str,
    entity_type: Optional[str] = "collaborator",
    entity_id: Optional[int] = None,
    meta: Optional[Dict[str, Any]] = None,
    ip: Optional[str] = None,
) -> None:
    """
    Appends one row to the wedding's audit trail. Called after the change is
    committed, so a failure here is logged and never raised.
    """
    if action not in ACTIONS:
        log.warning("unknown audit action %s", action)
    params = {
        "wedding_id": wedding_id,
        "user_id": user_id,
        "action": action,
        "entity_type": entity_type,
        "entity_id": entity_id,
        "meta": json.dumps(meta or {}, separators=(",", ":"), default=str),
        "ip": ip,
    }
    for attempt in (1, 2):
        try:
            db.execute(_INSERT, params)
            db.commit()
            return
        except SQLAlchemyError:
            db.rollback()
            if attempt == 2:
                log.exception("audit write failed action=%s wedding_id=%s", action, wedding_id)
                return
            # table missing on a fresh database
            try:
                ensure_audit_table(db)
            except SQLAlchemyError:
                db.rollback()


def wedding_activity(db: Session, wedding_id: int, limit: int = 50) -> List[Dict[str, Any]]:
    rows = db.execute(_SELECT_FOR_WEDDING, {"wedding_id": wedding_id, "limit": limit}).mappings()
    return [
        {**row, "meta": json.loads(row["meta"] or "{}"), "created_at": str(row["created_at"])}
        for row in rows
    ]
