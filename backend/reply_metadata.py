from __future__ import annotations

import json
import logging
import re
from typing import List, Optional, Tuple

from pydantic import ValidationError

from .reply_models import ReplyMetadata

logger = logging.getLogger(__name__)

# ```json { ... } ```  or  ``` { ... } ```
_FENCED_JSON_RE = re.compile(r"```(?:json)?\s*(\{[\s\S]*?\})\s*```", re.IGNORECASE)
_METADATA_KEY_RE = re.compile(r"\"(?:summary|confidence|conf|sources)\"\s*:", re.IGNORECASE)
# {"summary": ...} written inline, without a fence
_INLINE_START_RE = re.compile(r"\{\s*\"summary\"", re.IGNORECASE)
_INLINE_LAZY_RE = re.compile(r"\{\s*\"summary\"[\s\S]*?\}", re.IGNORECASE)
# Model ran out of tokens before closing the fence
_UNCLOSED_FENCE_RE = re.compile(r"```(?:json)?\s*(\{[^`]*)$", re.IGNORECASE)

_DECODER = json.JSONDecoder()

Span = Tuple[int, int]


def _has_summary(json_text: str) -> bool:
    try:
        data = json.loads(json_text)
    except ValueError:
        return False
    return isinstance(data, dict) and "summary" in data


def _find_fenced_metadata(text: str) -> Optional[Tuple[List[Span], str]]:
    """Pick the fenced block holding metadata; JSON code samples are left alone.

    The last block with metadata keys wins. Without one, a fenced JSON block is
    only taken when nothing but whitespace follows it. Any other block that
    decodes to an object with "summary" is removed as well.
    """
    blocks = list(_FENCED_JSON_RE.finditer(text))
    if not blocks:
        return None
    keyed = [m for m in blocks if _METADATA_KEY_RE.search(m.group(1))]
    if keyed:
        chosen = keyed[-1]
    elif not text[blocks[-1].end():].strip():
        chosen = blocks[-1]
    else:
        return None
    spans = [(chosen.start(), chosen.end())]
    spans.extend(
        (m.start(), m.end()) for m in keyed if m is not chosen and _has_summary(m.group(1))
    )
    return spans, chosen.group(1)


def _find_metadata_spans(text: str) -> Optional[Tuple[List[Span], str]]:
    """Locate the metadata block(s) as ([(start, end), ...], json_text), or None."""
    fenced = _find_fenced_metadata(text)
    if fenced:
        return fenced

    m = _INLINE_START_RE.search(text)
    if m:
        try:
            _, end = _DECODER.raw_decode(text, m.start())
            return [(m.start(), end)], text[m.start():end]
        except json.JSONDecodeError:
            lazy = _INLINE_LAZY_RE.search(text, m.start())
            if lazy:
                return [(lazy.start(), lazy.end())], lazy.group(0)

    m = _UNCLOSED_FENCE_RE.search(text)
    if m:
        return [(m.start(), len(text))], m.group(1)
    return None


def _parse_metadata(json_text: str) -> ReplyMetadata:
    try:
        return ReplyMetadata.from_json_object(json.loads(json_text))
    except (ValueError, ValidationError) as e:
        # JSONDecodeError is a ValueError; the span is still dropped from the reply
        logger.debug(f"Ignoring unparsable reply metadata: {e}")
        return ReplyMetadata()


def extract_metadata(text: str | None) -> Tuple[str, ReplyMetadata]:
    """Split raw model output into (display_text, metadata).

    The metadata block is removed from the display text even when it does not
    parse, so raw JSON never reaches the user.
    """
    raw = text or ""
    found = _find_metadata_spans(raw)
    if found is None:
        return raw.strip(), ReplyMetadata()
    spans, json_text = found
    metadata = _parse_metadata(json_text)
    display = raw
    for start, end in sorted(spans, reverse=True):
        display = display[:start] + display[end:]
    return display.strip(), metadata
