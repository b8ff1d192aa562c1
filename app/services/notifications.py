# app/services/notifications.py
from __future__ import annotations

import logging
import os
import smtplib
from email.message import EmailMessage
from typing import Any, Dict, Optional

log = logging.getLogger("app.notifications")


# ---------------------------------
# Helpers
# ---------------------------------
def _base_url() -> str:
    return os.getenv("APP_BASE_URL", "http://localhost:3000").rstrip("/")


def join_code(wedding_id: int) -> str:
    # Possession of the wedding id is what grants self-join.
    return str(wedding_id)


def join_link(wedding_id: int) -> str:
    return f"{_base_url()}/join-wedding?code={join_code(wedding_id)}"


# ---------------------------------
# Message templates (subject/body) – EN only
# ---------------------------------
def render_message(notif_type: str, payload: Dict[str, Any]) -> Dict[str, str]:
    """
    Lightweight templates for transport/audit. Keep EN user-facing text.
    """
    if notif_type == "collaborator_invite":
        wedding = payload.get("wedding_name") or "a wedding"
        inviter = payload.get("inviter_name") or "Someone"
        name = payload.get("name") or "there"
        subject = f"{inviter} invited you to collaborate on {wedding}"
        body = (
            f"Hi {name},\n\n"
            f"{inviter} has invited you to help plan {wedding} as {payload.get('role')}.\n\n"
            f"Join here: {payload.get('join_link')}\n"
            f"Or enter this wedding code after signing in: {payload.get('code')}\n"
        )
        return {"subject": subject, "body": body}

    return {"subject": f"Notification: {notif_type}", "body": str(payload)}


# ---------------------------------
# Transport
# ---------------------------------
def _send_smtp(to: str, subject: str, body: str) -> None:
    host = os.getenv("SMTP_HOST")
    port = int(os.getenv("SMTP_PORT", "587"))
    user = os.getenv("SMTP_USER")
    password = os.getenv("SMTP_PASS")

    msg = EmailMessage()
    msg["From"] = os.getenv("EMAIL_FROM", "BeeHitched <no-reply@beehitched.com>")
    msg["To"] = to
    msg["Subject"] = subject
    msg.set_content(body)

    with smtplib.SMTP(host, port, timeout=10) as smtp:
        smtp.starttls()
        if user:
            smtp.login(user, password or "")
        smtp.send_message(msg)


def send_invitation_email(
    *,
    email: str,
    wedding_id: int,
    name: Optional[str] = None,
    wedding_name: Optional[str] = None,
    inviter_name: Optional[str] = None,
    role: Optional[str] = None,
) -> None:
    """
    Sends the invite with a join link and code. Without SMTP_HOST the message
    is only logged (dev/test transport). Raises on transport failure.
    """
    payload = {
        "name": name,
        "wedding_name": wedding_name,
        "inviter_name": inviter_name,
        "role": role,
        "code": join_code(wedding_id),
        "join_link": join_link(wedding_id),
    }
    msg = render_message("collaborator_invite", payload)

    if not os.getenv("SMTP_HOST"):
        log.info(
            "invite email (log transport) to=%s subject=%r link=%s",
            email,
            msg["subject"],
            payload["join_link"],
        )
        return

    _send_smtp(email, msg["subject"], msg["body"])
    log.info("invite email sent to=%s wedding_id=%s", email, wedding_id)


def dispatch_invitation(**kwargs: Any) -> bool:
    """
    Best-effort wrapper: a failed send is logged and swallowed, never raised.
    Returns True when the transport accepted the message.
    """
    try:
        send_invitation_email(**kwargs)
        return True
    except Exception:
        log.exception(
            "invite email failed to=%s wedding_id=%s",
            kwargs.get("email"),
            kwargs.get("wedding_id"),
        )
        return False
