from __future__ import annotations

from typing import List, Optional, Tuple

from .reply_models import ReplyMetadata

NOT_SURE_LINE = "**I'm not sure** - I don't have enough information to provide a confident answer."
REPHRASE_STEP = "**Try rephrasing the question** with more details (order number, date, or exact product/service)."
HUMAN_SUPPORT_STEP = (
    '**Click "Request human support"** next to this message so an admin can review and follow up. '
    "If it is urgent, contact support directly via the listed channels (email or phone)."
)


def _developer_step(developer_email: str) -> str:
    return (
        "**If this appears to be a bug or requires developer intervention, "
        f"email developers at {developer_email}** with steps to reproduce, logs, and screenshots."
    )


def synthesize_fallback(
    metadata: ReplyMetadata,
    topic: str,
    developer_email: Optional[str] = None,
) -> Tuple[str, bool]:
    """Build the reply used when nothing readable is left after metadata stripping.

    Returns (markdown, uncertain). A confident model summary is passed through on
    its own; otherwise the user gets numbered next steps.
    """
    summary_line = f"**Summary:** {metadata.summary}" if metadata.summary else NOT_SURE_LINE
    if metadata.confidence == "high" and metadata.summary:
        return summary_line, False

    steps: List[str] = [summary_line, REPHRASE_STEP, HUMAN_SUPPORT_STEP]
    if topic == "admin" and developer_email:
        steps.append(_developer_step(developer_email))
    text = "\n".join(f"{num}. {step}" for num, step in enumerate(steps, start=1))
    return text, metadata.confidence != "high"
