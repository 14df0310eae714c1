from __future__ import annotations

from datetime import datetime, time
from typing import Any, Dict, Optional, Tuple

import yaml

from .errors import MalformedMetadataError, PathLike
from .utils import normalize_frontmatter_dates

DELIMITER = "---"


def _is_delimiter(line: str) -> bool:
    return line.lstrip("\ufeff").rstrip() == DELIMITER


def split_frontmatter(
    text: str, path: Optional[PathLike] = None
) -> Tuple[str, str]:
    """Split ``text`` into its raw frontmatter block and the body.

    ``block + body == text`` always holds. Without a leading ``---`` line the
    block is empty and the whole text is body. An opening delimiter with no
    closing one raises :class:`MalformedMetadataError` pointing at the
    opening line.
    """
    lines = text.splitlines(keepends=True)
    start = 0
    while start < len(lines) and not lines[start].strip("\ufeff \t\r\n"):
        start += 1
    if start == len(lines) or not _is_delimiter(lines[start]):
        return "", text

    for i in range(start + 1, len(lines)):
        if _is_delimiter(lines[i]):
            return "".join(lines[: i + 1]), "".join(lines[i + 1 :])
    raise MalformedMetadataError(path, start + 1)


def _block_line_offset(block: str) -> int:
    """1-based line number of the opening delimiter inside ``block``."""
    for n, line in enumerate(block.splitlines(), start=1):
        if _is_delimiter(line):
            return n
    return 1


def parse_frontmatter(
    text: str, path: Optional[PathLike] = None
) -> Tuple[Dict[str, Any], str]:
    block, body = split_frontmatter(text, path)
    if not block:
        return {}, body

    opening = _block_line_offset(block)
    inner = "".join(block.splitlines(keepends=True)[opening:-1])
    try:
        fm = yaml.safe_load(inner)
    except yaml.YAMLError as e:
        mark = getattr(e, "problem_mark", None)
        line = opening + 1 + (mark.line if mark is not None else 0)
        reason = getattr(e, "problem", None) or "invalid YAML"
        raise MalformedMetadataError(path, line, f"invalid YAML: {reason}") from e
    except ValueError as e:
        # e.g. an unquoted impossible date that PyYAML fails to construct
        raise MalformedMetadataError(path, opening + 1, f"invalid value: {e}") from e

    if fm is None:
        fm = {}
    if not isinstance(fm, dict):
        raise MalformedMetadataError(
            path, opening + 1, "frontmatter must be a key-value mapping"
        )
    return fm, body


def yaml_frontmatter_block(data: Dict[str, Any]) -> str:
    def _fmt(v):
        if isinstance(v, datetime) and v.time() == time():
            return v.date()
        return v

    data = {k: _fmt(v) for k, v in normalize_frontmatter_dates(dict(data)).items()}
    dumped = yaml.safe_dump(
        data, sort_keys=False, allow_unicode=True
    ).rstrip()
    return f"---\n{dumped}\n---\n\n"
