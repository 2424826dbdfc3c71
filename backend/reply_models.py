from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, List, Literal, Optional

from pydantic import BaseModel, Field, field_validator

Confidence = Literal["high", "medium", "low", "unknown"]
CONFIDENCE_LEVELS = ("high", "medium", "low", "unknown")


@dataclass
class ListItem:
    text: str
    # sub-lists owned by this item only
    children: List["ListNode"] = field(default_factory=list)


@dataclass
class ListNode:
    indent_level: int
    items: List[ListItem] = field(default_factory=list)

    def last_item(self) -> Optional[ListItem]:
        return self.items[-1] if self.items else None


class ReplyMetadata(BaseModel):
    """Trailing JSON block the model appends to its reply.

    Every field is optional; odd shapes are coerced instead of rejected so a
    sloppy upstream payload still degrades to sane defaults.
    """

    summary: str = ""
    confidence: Confidence = "unknown"
    sources: List[str] = Field(default_factory=list)

    @field_validator("summary", mode="before")
    @classmethod
    def _coerce_summary(cls, v: Any) -> str:
        if v is None:
            return ""
        if isinstance(v, (dict, list)):
            return ""
        return str(v).strip()

    @field_validator("confidence", mode="before")
    @classmethod
    def _coerce_confidence(cls, v: Any) -> str:
        if v is None:
            return "unknown"
        s = str(v).strip().lower()
        return s if s in CONFIDENCE_LEVELS else "unknown"

    @field_validator("sources", mode="before")
    @classmethod
    def _coerce_sources(cls, v: Any) -> List[str]:
        if v is None or v == "":
            return []
        if isinstance(v, (list, tuple)):
            return [str(s).strip() for s in v if s is not None and str(s).strip()]
        return [str(v).strip()]

    @classmethod
    def from_json_object(cls, data: Any) -> "ReplyMetadata":
        if not isinstance(data, dict):
            return cls()
        payload = dict(data)
        # some models shorten the key
        if "confidence" not in payload and "conf" in payload:
            payload["confidence"] = payload["conf"]
        return cls.model_validate(
            {k: payload[k] for k in ("summary", "confidence", "sources") if k in payload}
        )


class PipelineResult(BaseModel):
    reply: str
    html: str
    confidence: Confidence = "unknown"
    sources: List[str] = Field(default_factory=list)
    uncertain: bool = True
