from __future__ import annotations

import logging
from typing import Any, Dict

from sqlalchemy import create_engine, text
from sqlalchemy.engine import Engine

from . import config

logger = logging.getLogger("uvicorn")

ENGINE: Engine | None = None
TABLE_READY = False


def db_connect_and_prepare() -> None:
    """Initialize DB connection and ensure schema exists.
    Uses SQLAlchemy Core to be lightweight.
    """
    global ENGINE, TABLE_READY
    if not config.DB_ENABLED or ENGINE is not None:
        return
    try:
        ENGINE = create_engine(config.DB_URL, pool_pre_ping=True)
        with ENGINE.begin() as conn:
            conn.execute(text(
                """
                CREATE TABLE IF NOT EXISTS chat_messages (
                  id BIGSERIAL PRIMARY KEY,
                  role TEXT NOT NULL,
                  message TEXT NOT NULL,
                  topic TEXT,
                  confidence TEXT,
                  created_at TIMESTAMPTZ DEFAULT NOW()
                );
                """
            ))
            conn.execute(text(
                """
                CREATE TABLE IF NOT EXISTS support_escalations (
                  id BIGSERIAL PRIMARY KEY,
                  message_id TEXT UNIQUE NOT NULL,
                  topic TEXT,
                  customer_email TEXT,
                  customer_name TEXT,
                  customer_id TEXT,
                  subject TEXT NOT NULL,
                  message TEXT NOT NULL,
                  confidence TEXT,
                  status TEXT DEFAULT 'pending',
                  created_at TIMESTAMPTZ DEFAULT NOW()
                );
                """
            ))
        TABLE_READY = True
        logger.info("DB initialized: chat_messages and support_escalations tables ready")
    except Exception as e:
        logger.exception(f"DB init failed: {e}")
        ENGINE = None
        TABLE_READY = False


def get_engine() -> Engine | None:
    return ENGINE


def db_insert_message(role: str, message: str, topic: str | None, confidence: str | None) -> None:
    if not ENGINE or not TABLE_READY:
        return
    try:
        with ENGINE.begin() as conn:
            conn.execute(
                text("""
                    INSERT INTO chat_messages (role, message, topic, confidence)
                    VALUES (:role, :msg, :topic, :conf)
                """),
                {"role": role, "msg": message, "topic": topic, "conf": confidence},
            )
    except Exception as e:
        logger.warning(f"DB insert failed: {e}")


def db_insert_escalation(row: Dict[str, Any]) -> bool:
    if not ENGINE or not TABLE_READY:
        return False
    try:
        with ENGINE.begin() as conn:
            conn.execute(
                text("""
                    INSERT INTO support_escalations
                      (message_id, topic, customer_email, customer_name, customer_id, subject, message, confidence)
                    VALUES (:message_id, :topic, :customer_email, :customer_name, :customer_id, :subject, :message, :confidence)
                """),
                row,
            )
        return True
    except Exception as e:
        logger.warning(f"DB escalation insert failed: {e}")
        return False
