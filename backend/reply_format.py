from __future__ import annotations

import re
from html import escape as html_escape
from typing import List

_LINE_SPLIT_RE = re.compile(r"\r?\n")
_HAS_NUMBERED_LINE_RE = re.compile(r"^\s*\d+\.", re.MULTILINE)
_MARKER_START_RE = re.compile(r"^[*`>\-•]")
_NUMBERED_RE = re.compile(r"^(\s*)(\d+)\.\s+(.*)")
_HEADING_RE = re.compile(r"^(#{1,6})\s+(.*)")
_BOLD_RE = re.compile(r"\*\*(.*?)\*\*")

AUTO_NUMBER_MIN_LINES = 2
AUTO_NUMBER_MAX_LINES = 10
AUTO_NUMBER_MAX_LINE_CHARS = 240


def auto_number(markdown: str) -> str:
    """Number short unlabeled multi-line replies as steps.

    Models often answer procedural questions with a few bare lines; 2-10 lines
    under 240 characters each become "1. ...", "2. ..." separated by blank lines.
    """
    if not markdown or _HAS_NUMBERED_LINE_RE.search(markdown) or "```" in markdown:
        return markdown
    lines = [ln.strip() for ln in _LINE_SPLIT_RE.split(markdown)]
    lines = [ln for ln in lines if ln and not _MARKER_START_RE.match(ln)]
    if not (AUTO_NUMBER_MIN_LINES <= len(lines) <= AUTO_NUMBER_MAX_LINES):
        return markdown
    if any(len(ln) >= AUTO_NUMBER_MAX_LINE_CHARS for ln in lines):
        return markdown
    return "\n\n".join(f"{num}. {ln}" for num, ln in enumerate(lines, start=1))


def render_inline(text: str) -> str:
    # escape first so markup smuggled inside **...** stays inert
    return _BOLD_RE.sub(r"<strong>\1</strong>", html_escape(text, quote=False))


def markdown_to_html(markdown: str) -> str:
    """Minimal Markdown -> HTML for clients that do not parse Markdown.

    Handles headings, paragraphs, **bold**, fenced code and nested ordered lists
    (nesting follows indent width). <ol> tags are always balanced.
    """
    if not markdown:
        return ""
    lines = _LINE_SPLIT_RE.split(markdown)
    parts: List[str] = []
    ol_stack: List[int] = []

    def close_lists_to(target: int) -> None:
        while ol_stack and ol_stack[-1] > target:
            parts.append("</ol>")
            ol_stack.pop()

    i = 0
    while i < len(lines):
        line = lines[i]
        m = _NUMBERED_RE.match(line)
        if m:
            indent = len(m.group(1))
            if not ol_stack or indent > ol_stack[-1]:
                parts.append("<ol>")
                ol_stack.append(indent)
            elif indent < ol_stack[-1]:
                close_lists_to(indent)
                if not ol_stack or ol_stack[-1] != indent:
                    parts.append("<ol>")
                    ol_stack.append(indent)
            parts.append(f"<li>{render_inline(m.group(3))}</li>")
            i += 1
            continue

        close_lists_to(-1)

        if line.strip().startswith("```"):
            code: List[str] = []
            i += 1
            while i < len(lines) and not lines[i].strip().startswith("```"):
                code.append(lines[i])
                i += 1
            parts.append(f"<pre><code>{html_escape(chr(10).join(code), quote=False)}</code></pre>")
            i += 1
            continue

        hdr = _HEADING_RE.match(line)
        if hdr:
            level = len(hdr.group(1))
            parts.append(f"<h{level}>{render_inline(hdr.group(2))}</h{level}>")
        elif not line.strip():
            parts.append("<p></p>")
        else:
            parts.append(f"<p>{render_inline(line)}</p>")
        i += 1

    close_lists_to(-1)
    return "".join(parts)
