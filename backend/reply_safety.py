from __future__ import annotations

import re
from typing import Optional

SAFETY_REFUSAL = (
    "I cannot request or accept secrets, credentials, or private data. "
    "Please contact support directly via the admin panel or official channels."
)

_SECRET_PATTERNS = re.compile(
    r"password|api ?key|secret|private ?key|credentials|\bssn|social ?security",
    re.IGNORECASE,
)

_HEDGING_PATTERNS = re.compile(
    r"i'?m not sure|i am not sure|i do not know|i don'?t know|unsure|may be mistaken",
    re.IGNORECASE,
)

_EMAIL_RE = re.compile(r"\b[A-Z0-9._%+-]+@[A-Z0-9.-]+\.[A-Z]{2,}\b", re.IGNORECASE)
_PHONE_RE = re.compile(r"(\+?\d[\d\s\-()]{6,}\d)")


def check_safety(text: str | None) -> Optional[str]:
    """Return the refusal message when raw model output asks for secrets, else None."""
    if text and _SECRET_PATTERNS.search(text):
        return SAFETY_REFUSAL
    return None


def sounds_uncertain(text: str | None) -> bool:
    return bool(text and _HEDGING_PATTERNS.search(text))


def redact_user_message(text: str) -> str:
    """Strip e-mail addresses and phone numbers before the message leaves the server."""
    redacted = _EMAIL_RE.sub("[REDACTED_EMAIL]", text)
    return _PHONE_RE.sub("[REDACTED_PHONE]", redacted)
