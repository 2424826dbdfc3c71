from __future__ import annotations

import os

from dotenv import load_dotenv

# Load .env before reading any environment variables
load_dotenv()


def _env_int(name: str, default: int) -> int:
    try:
        return int(os.getenv(name, str(default)))
    except ValueError:
        return default


# Upstream language model
GOOGLE_API_KEY = os.getenv("GOOGLE_API_KEY")
GOOGLE_GEMINI_MODEL = os.getenv("GOOGLE_GEMINI_MODEL", "gemini-2.5-flash")
OPENAI_API_KEY = os.getenv("OPENAI_API_KEY")
LLM_MODEL = os.getenv("LLM_MODEL", "gpt-4o-mini")
LLM_TIMEOUT_SECS = float(os.getenv("LLM_TIMEOUT_SECS", "8"))
LLM_TEMPERATURE = 0.2
LLM_MAX_OUTPUT_TOKENS = 600

# Prompt context (business settings are owned by the storefront, only a summary is needed here)
BUSINESS_NAME = os.getenv("BUSINESS_NAME", "our store")
BUSINESS_DESCRIPTION = os.getenv("BUSINESS_DESCRIPTION", "")
SUPPORT_EMAIL = os.getenv("SUPPORT_EMAIL", "")
SUPPORT_PHONE = os.getenv("SUPPORT_PHONE", "")
APP_URL = os.getenv("APP_URL", "")
DEVELOPER_SUPPORT_EMAIL = os.getenv("DEVELOPER_SUPPORT_EMAIL") or None

ALLOWED_TOPICS = ("ordering", "booking", "refund", "cancellation", "business", "admin")
DEFAULT_TOPIC = "business"

# Rate limits
RATE_LIMIT_BACKEND = os.getenv("RATE_LIMIT_BACKEND", "memory").strip().lower()  # memory | db
AI_RATE_LIMIT_MAX = _env_int("AI_RATE_LIMIT_MAX", 10)
AI_RATE_LIMIT_WINDOW_SECS = _env_int("AI_RATE_LIMIT_WINDOW_SECS", 60)
ESCALATION_RATE_LIMIT_MAX = _env_int("ESCALATION_RATE_LIMIT_MAX", 3)
ESCALATION_RATE_LIMIT_WINDOW_SECS = _env_int("ESCALATION_RATE_LIMIT_WINDOW_SECS", 60 * 60)

# Escalation side channel
SUPPORT_WEBHOOK_URL = os.getenv("SUPPORT_WEBHOOK_URL") or None

# Database (optional; e.g., Railway Postgres)
DB_URL = os.getenv("DATABASE_URL") or os.getenv("DB_URL")
# SQLAlchemy requires the "postgresql://" scheme (not legacy "postgres://").
if DB_URL and DB_URL.startswith("postgres://"):
    DB_URL = "postgresql://" + DB_URL[len("postgres://"):]
DB_ENABLED = bool(DB_URL)


def provider_name() -> str | None:
    if GOOGLE_API_KEY:
        return "google"
    if OPENAI_API_KEY:
        return "openai"
    return None
