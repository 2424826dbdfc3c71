from __future__ import annotations

import logging
import time
import uuid
from contextlib import nullcontext
from typing import Any, Dict, Optional

import httpx

from . import config
from .db import db_insert_escalation
from .errors import EscalationError

logger = logging.getLogger(__name__)

WEBHOOK_TIMEOUT_SECS = 10.0


def new_message_id(now_ms: Optional[int] = None) -> str:
    ms = now_ms if now_ms is not None else int(time.time() * 1000)
    return f"ai-escalation-{ms}-{uuid.uuid4().hex[:6]}"


def escalation_subject(topic: Optional[str]) -> str:
    return f"AI Support Request - {topic}" if topic else "AI Support Request"


def escalation_body(user_message: str, ai_reply: Optional[str], confidence: Optional[str], message_id: str) -> str:
    return (
        f"User message: {user_message}\n\n"
        f"AI reply: {ai_reply or 'N/A'}\n\n"
        f"Confidence: {confidence or 'unknown'}\n\n"
        f"Message ID: {message_id}"
    )


def escalate_to_support(
    user_message: str,
    ai_reply: Optional[str] = None,
    topic: Optional[str] = "general",
    customer_email: Optional[str] = None,
    customer_name: Optional[str] = None,
    customer_id: Optional[str] = None,
    confidence: Optional[str] = None,
    http_client: Optional[httpx.Client] = None,
) -> str:
    """Hand a conversation over to human support and return its message id.

    The escalation is logged, stored when a database is connected and posted to
    SUPPORT_WEBHOOK_URL when configured. Only a failed webhook raises.
    """
    message_id = new_message_id()
    row: Dict[str, Any] = {
        "message_id": message_id,
        "topic": topic,
        "customer_email": customer_email or "guest",
        "customer_name": customer_name,
        "customer_id": customer_id,
        "subject": escalation_subject(topic),
        "message": escalation_body(user_message, ai_reply, confidence, message_id),
        "confidence": confidence or "unknown",
    }
    logger.info(
        f"Support escalation {message_id} (topic={topic}, "
        f"customer={row['customer_email']}, confidence={row['confidence']})"
    )
    db_insert_escalation(row)

    if config.SUPPORT_WEBHOOK_URL:
        with (nullcontext(http_client) if http_client is not None
              else httpx.Client(timeout=WEBHOOK_TIMEOUT_SECS)) as client:
            try:
                r = client.post(config.SUPPORT_WEBHOOK_URL, json=row)
                r.raise_for_status()
            except httpx.HTTPError as e:
                logger.error(f"Support webhook failed for {message_id}: {e}")
                raise EscalationError(f"Support webhook failed: {e}") from e
    return message_id
