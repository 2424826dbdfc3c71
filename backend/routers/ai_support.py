from __future__ import annotations

import logging
from typing import Any, Optional

from fastapi import APIRouter, HTTPException, Request
from pydantic import BaseModel

from .. import config
from ..db import db_insert_message
from ..errors import EscalationError, ProviderNotConfiguredError, ReplyPipelineError, UpstreamProviderError
from ..escalation import escalate_to_support
from ..model_client import complete_support_reply
from ..rate_limit import RateLimiter, build_rate_limiter
from ..reply_models import PipelineResult
from ..reply_pipeline import process_reply

router = APIRouter()
logger = logging.getLogger(__name__)


class SupportRequest(BaseModel):
    message: Any = None
    topic: Optional[str] = None
    businessId: Optional[str] = None


class EscalationRequest(BaseModel):
    userMessage: Any = None
    aiReply: Optional[str] = None
    topic: Optional[str] = "general"
    customerEmail: Optional[str] = None
    customerName: Optional[str] = None
    customerId: Optional[str] = None
    confidence: Optional[str] = None


class EscalationResponse(BaseModel):
    success: bool
    messageId: str


# Built lazily so the DB-backed store sees the engine created at startup
_CHAT_LIMITER: RateLimiter | None = None
_ESCALATION_LIMITER: RateLimiter | None = None


def chat_limiter() -> RateLimiter:
    global _CHAT_LIMITER
    if _CHAT_LIMITER is None:
        _CHAT_LIMITER = build_rate_limiter(
            config.AI_RATE_LIMIT_MAX, config.AI_RATE_LIMIT_WINDOW_SECS, table="ai_support_rate_limits"
        )
    return _CHAT_LIMITER


def escalation_limiter() -> RateLimiter:
    global _ESCALATION_LIMITER
    if _ESCALATION_LIMITER is None:
        _ESCALATION_LIMITER = build_rate_limiter(
            config.ESCALATION_RATE_LIMIT_MAX,
            config.ESCALATION_RATE_LIMIT_WINDOW_SECS,
            table="ai_escalation_rate_limits",
        )
    return _ESCALATION_LIMITER


def client_ip(request: Request) -> str:
    fwd = request.headers.get("x-forwarded-for")
    if fwd:
        return fwd.split(",")[0].strip() or "unknown"
    return request.headers.get("x-real-ip") or "unknown"


@router.post("/api/ai-support", response_model=PipelineResult)
def ai_support(req: SupportRequest, request: Request):
    if not isinstance(req.message, str) or not req.message.strip():
        raise HTTPException(status_code=400, detail="Missing or invalid message")
    message = req.message.strip()

    if not chat_limiter().hit(client_ip(request)):
        raise HTTPException(status_code=429, detail="Rate limit exceeded")

    topic = (req.topic or config.DEFAULT_TOPIC).strip()
    if topic not in config.ALLOWED_TOPICS:
        raise HTTPException(status_code=400, detail="Invalid topic")

    try:
        raw = complete_support_reply(message, topic)
    except ProviderNotConfiguredError as e:
        logger.error(f"AI support unavailable: {e}")
        raise HTTPException(
            status_code=500,
            detail="AI not configured. Configure cloud credentials and enable the Generative Language API in your project.",
        )
    except UpstreamProviderError as e:
        logger.error(f"AI support upstream failure (status={e.status}): {e}")
        raise HTTPException(
            status_code=500,
            detail="AI service error: Generative Language API failed. Verify that the API is enabled for your "
                   "project, credentials permit this request, and the configured model name is correct.",
        )

    try:
        result = process_reply(raw, topic=topic, developer_email=config.DEVELOPER_SUPPORT_EMAIL)
    except ReplyPipelineError:
        raise HTTPException(status_code=500, detail="Internal server error")

    db_insert_message("user", message, topic, None)
    db_insert_message("assistant", result.reply, topic, result.confidence)
    return result


@router.post("/api/ai-support/human-request", response_model=EscalationResponse)
def ai_support_human_request(req: EscalationRequest, request: Request):
    if not isinstance(req.userMessage, str) or not req.userMessage.strip():
        raise HTTPException(status_code=400, detail="Missing or invalid userMessage")

    key = req.customerId or req.customerEmail or client_ip(request)
    if not escalation_limiter().hit(key):
        raise HTTPException(status_code=429, detail="Too many support requests, please try again later.")

    try:
        message_id = escalate_to_support(
            user_message=req.userMessage.strip(),
            ai_reply=req.aiReply,
            topic=req.topic,
            customer_email=req.customerEmail,
            customer_name=req.customerName,
            customer_id=req.customerId,
            confidence=req.confidence,
        )
    except EscalationError:
        raise HTTPException(status_code=500, detail="Internal server error")
    return EscalationResponse(success=True, messageId=message_id)
