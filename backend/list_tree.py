from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Iterable, List, Optional, Set, Tuple

from .reply_models import ListItem, ListNode

# "* item", "- item", "• item", "1. item", "1) item"
LIST_LINE_RE = re.compile(r"^\s*([*\-•]|\d+[.)])\s+")
_LIST_PARTS_RE = re.compile(r"^(\s*)(?:[*\-•]|\d+[.)])\s+(.*)$")
_SINGLE_STAR_EMPHASIS_RE = re.compile(r"(?<!\*)\*(?!\*)(.*?)(?<!\*)\*(?!\*)")
_ORPHAN_STAR_RE = re.compile(r"\s*(?<!\*)\*(?!\*)\s*")
_BLANK_RUN_RE = re.compile(r"\n{3,}")
_LINE_SPLIT_RE = re.compile(r"\r?\n")

TAB_WIDTH = 4
INDENT_UNIT = "  "
MATCH_PREFIX_CHARS = 200


def is_list_line(line: str) -> bool:
    return bool(LIST_LINE_RE.match(line))


def parse_list_line(line: str) -> Optional[Tuple[int, str]]:
    """Return (indent, text) for a list line, None otherwise."""
    m = _LIST_PARTS_RE.match(line)
    if not m:
        return None
    indent = len(m.group(1).replace("\t", " " * TAB_WIDTH))
    return indent, m.group(2).strip()


def clean_inline(text: str) -> str:
    """Drop single-asterisk emphasis and orphan '*' while keeping **bold**."""
    text = _SINGLE_STAR_EMPHASIS_RE.sub(r"\1", text)
    return _ORPHAN_STAR_RE.sub(" ", text)


# ============================================================
# Parsing
# ============================================================
def _open_chain(roots: List[ListNode]) -> List[ListNode]:
    """Nodes from the last root down through each last item's last sub-list."""
    chain: List[ListNode] = []
    if not roots:
        return chain
    node = roots[-1]
    chain.append(node)
    while True:
        last = node.last_item()
        if last is None or not last.children:
            break
        node = last.children[-1]
        chain.append(node)
    return chain


def _insert(roots: List[ListNode], indent: int, text: str) -> ListItem:
    item = ListItem(text)
    for node in reversed(_open_chain(roots)):
        if node.indent_level == indent:
            node.items.append(item)
            return item
        if node.indent_level < indent:
            parent = node.last_item()
            if parent is None:
                node.items.append(item)
            else:
                parent.children.append(ListNode(indent, [item]))
            return item
    # shallower than every open node
    roots.append(ListNode(indent, [item]))
    return item


def _indent_width(line: str) -> int:
    expanded = line.replace("\t", " " * TAB_WIDTH)
    return len(expanded) - len(expanded.lstrip())


@dataclass
class ListScan:
    roots: List[ListNode] = field(default_factory=list)
    # line index of each root's first item
    starts: List[int] = field(default_factory=list)
    # indented prose lines folded into the item above them
    continued: Set[int] = field(default_factory=set)


def scan_lists(lines: List[str], opaque: Optional[List[bool]] = None) -> ListScan:
    """Build the list forest and remember where each root starts.

    Blank lines keep the current list open. A prose line indented deeper than
    the current root continues the last item. Any other prose line (or an
    ``opaque`` line such as fenced code) closes the list, so the next list line
    starts a new root.
    """
    scan = ListScan()
    last_item: Optional[ListItem] = None
    interrupted = False
    for idx, line in enumerate(lines):
        hidden = bool(opaque[idx]) if opaque is not None else False
        parsed = None if hidden else parse_list_line(line)
        if parsed is None:
            if not hidden and not line.strip():
                continue
            if (not hidden and last_item is not None
                    and _indent_width(line) > scan.roots[-1].indent_level):
                last_item.text = f"{last_item.text} {line.strip()}"
                scan.continued.add(idx)
                continue
            interrupted = True
            last_item = None
            continue
        indent, text = parsed
        if interrupted or not scan.roots:
            last_item = ListItem(text)
            scan.roots.append(ListNode(indent, [last_item]))
            scan.starts.append(idx)
            interrupted = False
            continue
        before = len(scan.roots)
        last_item = _insert(scan.roots, indent, text)
        if len(scan.roots) > before:
            scan.starts.append(idx)
    return scan


def parse_list_tree(lines: Iterable[str], opaque: Optional[Iterable[bool]] = None) -> List[ListNode]:
    """Build the list forest from raw lines (see scan_lists)."""
    return scan_lists(list(lines), list(opaque) if opaque is not None else None).roots


# ============================================================
# Rendering
# ============================================================
def render_node(node: ListNode, level: int = 0) -> List[str]:
    out: List[str] = []
    prefix = INDENT_UNIT * level
    for num, item in enumerate(node.items, start=1):
        out.append(f"{prefix}{num}. {clean_inline(item.text).strip()}")
        for child in item.children:
            out.extend(render_node(child, level + 1))
    return out


def render_tree(tree: List[ListNode]) -> List[str]:
    out: List[str] = []
    for root in tree:
        out.extend(render_node(root))
    return out


# ============================================================
# Reassembly: put rendered lists back between the prose lines
# ============================================================
def _item_texts(node: ListNode) -> List[str]:
    texts: List[str] = []
    for item in node.items:
        texts.append(item.text[:MATCH_PREFIX_CHARS])
        for child in item.children:
            texts.extend(_item_texts(child))
    return texts


def _block_item_texts(lines: List[str], start: int, end: int, continued: Set[int]) -> List[str]:
    texts: List[str] = []
    for idx in range(start, end):
        parsed = parse_list_line(lines[idx])
        if parsed is not None:
            texts.append(parsed[1])
        elif idx in continued and texts:
            texts[-1] = f"{texts[-1]} {lines[idx].strip()}"
    return texts


def _block_matches(block_text: str, candidate: str) -> bool:
    return (
        block_text.startswith(candidate)
        or candidate.startswith(block_text)
        or candidate in block_text
    )


def _naive_block(texts: List[str]) -> List[str]:
    return [f"{num}. {clean_inline(text).strip()}" for num, text in enumerate(texts, start=1)]


def _render_block(
    lines: List[str],
    start: int,
    end: int,
    scan: ListScan,
    candidates: List[str],
    rendered: Set[int],
) -> List[str]:
    texts = _block_item_texts(lines, start, end, scan.continued)
    block_text = "\n".join(t[:MATCH_PREFIX_CHARS] for t in texts)[:MATCH_PREFIX_CHARS]

    # only roots that begin inside this block may be rendered here
    local = [idx for idx, first in enumerate(scan.starts) if start <= first < end and idx not in rendered]
    if local:
        if not _block_matches(block_text, candidates[local[0]]):
            return _naive_block(texts)
        out: List[str] = []
        for idx in local:
            out.extend(render_node(scan.roots[idx]))
            rendered.add(idx)
        return out

    # the rest of a list split by blank lines was emitted with its root
    if any(block_text in candidates[idx] for idx in rendered):
        return []
    return _naive_block(texts)


def _fenced_mask(lines: List[str]) -> List[bool]:
    """True for every line inside (or opening/closing) a ``` fence."""
    mask: List[bool] = []
    inside = False
    for line in lines:
        if line.strip().startswith("```"):
            mask.append(True)
            inside = not inside
            continue
        mask.append(inside)
    return mask


def normalize_lists(text: str | None) -> str:
    """Renumber every list canonically and clean stray asterisks in prose lines.

    Code inside ``` fences is passed through untouched. Indented continuation
    lines are joined onto their list item.
    """
    if not text:
        return text or ""
    lines = _LINE_SPLIT_RE.split(text)
    fenced = _fenced_mask(lines)
    scan = scan_lists(lines, opaque=fenced)
    candidates = ["\n".join(_item_texts(root)) for root in scan.roots]
    rendered: Set[int] = set()

    def in_block(idx: int) -> bool:
        return not fenced[idx] and (is_list_line(lines[idx]) or idx in scan.continued)

    out: List[str] = []
    i = 0
    while i < len(lines):
        if fenced[i]:
            out.append(lines[i])
            i += 1
            continue
        if i in scan.continued:
            # already part of an item rendered above
            i += 1
            continue
        if not is_list_line(lines[i]):
            out.append(clean_inline(lines[i]))
            i += 1
            continue
        end = i
        while end < len(lines) and in_block(end):
            end += 1
        out.extend(_render_block(lines, i, end, scan, candidates, rendered))
        i = end

    return _BLANK_RUN_RE.sub("\n\n", "\n".join(out)).strip()
