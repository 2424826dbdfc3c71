from __future__ import annotations

import logging
from typing import Optional

from .config import DEFAULT_TOPIC
from .errors import ReplyPipelineError
from .list_tree import normalize_lists
from .reply_fallback import synthesize_fallback
from .reply_format import auto_number, markdown_to_html
from .reply_metadata import extract_metadata
from .reply_models import PipelineResult
from .reply_safety import check_safety, sounds_uncertain

logger = logging.getLogger(__name__)


def _refusal_result(refusal: str) -> PipelineResult:
    return PipelineResult(
        reply=refusal,
        html=markdown_to_html(refusal),
        confidence="low",
        sources=[],
        uncertain=True,
    )


def _run(raw: str, topic: str, developer_email: Optional[str]) -> PipelineResult:
    # Safety runs on the untouched output so secrets inside the JSON block count too
    refusal = check_safety(raw)
    if refusal:
        logger.warning(f"Model reply asked for secrets or credentials; sending refusal (topic={topic})")
        return _refusal_result(refusal)

    display, metadata = extract_metadata(raw)
    uncertain = metadata.confidence in ("low", "unknown") or sounds_uncertain(raw)

    if not display.strip():
        logger.info(f"No displayable text left after metadata strip; using fallback (topic={topic})")
        display, uncertain = synthesize_fallback(metadata, topic, developer_email)

    reply = auto_number(normalize_lists(display))
    return PipelineResult(
        reply=reply,
        html=markdown_to_html(reply),
        confidence=metadata.confidence,
        sources=metadata.sources,
        uncertain=uncertain,
    )


def process_reply(
    raw_text: str | None,
    topic: str = DEFAULT_TOPIC,
    developer_email: Optional[str] = None,
) -> PipelineResult:
    """Turn raw model output into the reply payload sent to the browser.

    ``developer_email`` enables the admin escalation step of the fallback.
    Unexpected failures are logged and re-raised as ReplyPipelineError.
    """
    try:
        return _run(raw_text or "", topic, developer_email)
    except Exception as e:
        logger.exception(f"Reply post-processing failed (topic={topic}): {e}")
        raise ReplyPipelineError("Reply post-processing failed") from e
