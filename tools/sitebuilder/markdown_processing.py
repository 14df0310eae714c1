from __future__ import annotations

import re
from typing import Any, Callable, Dict, List, Tuple

from .config import EXPLICIT_ID, FENCE, MD_HEADING, SETEXT_RE

_MD_INLINE_LINK = re.compile(r'!?\[([^\]]*)\]\([^)]*\)')
_MD_EMPHASIS = re.compile(r'[`*~]|(?<!\w)_|_(?!\w)')
_ATX_CLOSING = re.compile(r'\s+#+\s*$')


def map_noncode(md: str, fn: Callable[[str], str]) -> str:
    parts, last = [], 0
    for m in FENCE.finditer(md):
        pre = md[last : m.start()]
        parts.append(fn(pre))
        parts.append(md[m.start() : m.end()])
        last = m.end()
    parts.append(fn(md[last:]))
    return "".join(parts)


def heading_text(raw: str) -> str:
    """Plain text of a heading: inline links unwrapped, emphasis dropped."""
    s = _MD_INLINE_LINK.sub(r"\1", raw)
    s = _MD_EMPHASIS.sub("", s)
    return s.strip()


def slugify_heading(text: str) -> str:
    s = heading_text(text).lower()
    s = re.sub(r"\s+", "-", s)
    s = re.sub(r"[^\w\-]", "", s)
    s = re.sub(r"-{2,}", "-", s).strip("-")
    return s or "section"


def _convert_setext(m) -> str:
    level = 1 if m.group("underline").startswith("=") else 2
    return f"{'#' * level} {m.group('text').strip()}"


def _explicit_id(head_txt: str):
    return EXPLICIT_ID.search(_ATX_CLOSING.sub("", head_txt).strip())


def reserve_explicit_ids(md_text: str, used_ids: Dict[str, int]) -> str:
    """Mark every `{#id}` the author wrote as taken; returns ``md_text``.

    Run over a whole document before generating ids so that an explicit id
    further down is never handed out to an earlier heading.
    """
    text = SETEXT_RE.sub(_convert_setext, md_text)
    for m in MD_HEADING.finditer(text):
        explicit = _explicit_id(m.group("text"))
        if explicit:
            used_ids.setdefault(explicit.group("id"), 1)
    return md_text


def add_ids_and_collect_toc(
    md_text: str, used_ids: Dict[str, int], max_depth: int = 3
) -> Tuple[str, List[Dict[str, Any]]]:
    """Add `{#id}` to headings and collect ToC items.

    Must be applied outside fenced code (see :func:`map_noncode`).
    ``used_ids`` is shared across calls on one document so ids stay unique.
    """
    toc: List[Dict[str, Any]] = []
    reserve_explicit_ids(md_text, used_ids)

    def unique_id(base: str) -> str:
        n = used_ids.get(base, 0)
        hid = base if n == 0 else f"{base}-{n}"
        while n and hid in used_ids:
            n += 1
            hid = f"{base}-{n}"
        used_ids[base] = n + 1
        used_ids.setdefault(hid, 1)
        return hid

    # 1) Setext → ATX
    text = SETEXT_RE.sub(_convert_setext, md_text)

    # 2) ATX headings → ensure {#id} exists
    lines = text.split("\n")
    for i, line in enumerate(lines):
        m = MD_HEADING.match(line)
        if not m:
            continue
        level = len(m.group("hash"))
        head_txt = _ATX_CLOSING.sub("", m.group("text")).strip()

        explicit = EXPLICIT_ID.search(head_txt)
        if explicit:
            hid = explicit.group("id")
            head_txt = head_txt[: explicit.start()].strip()
        else:
            hid = unique_id(slugify_heading(head_txt))
        lines[i] = f"{'#' * level} {head_txt} {{#{hid}}}"
        if level <= max_depth:
            toc.append({"level": level, "text": heading_text(head_txt), "id": hid})

    return "\n".join(lines), toc
