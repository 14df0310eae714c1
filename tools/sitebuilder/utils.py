from __future__ import annotations

import hashlib
import pathlib
import re
from datetime import date, datetime, timezone
from typing import Any, Dict, Iterable, Optional

from .config import SLUG_RE


def slugify(s: str) -> str:
    s = re.sub(r"\s+", "-", s.strip().lower())
    return re.sub(r"-{2,}", "-", SLUG_RE.sub("-", s).strip("-"))


def natural_key(s: str):
    return [int(t) if t.isdigit() else t for t in re.split(r'(\d+)', s.lower())]


def ensure_dir(p: pathlib.Path) -> None:
    p.mkdir(parents=True, exist_ok=True)


def _norm_text(s: str) -> str:
    return s.replace('\r\n', '\n').replace('\r', '\n').lstrip('\ufeff')


def _coerce_date_like(v):
    if isinstance(v, datetime):
        return v
    if isinstance(v, date):
        return datetime(v.year, v.month, v.day)
    if isinstance(v, str):
        s = v.strip().strip('"').strip("'")
        try:
            return datetime.fromisoformat(s)
        except ValueError:
            return v
    return v


def parse_timestamp(v: Any) -> Optional[datetime]:
    """Return a naive datetime for date-like frontmatter values, else None."""
    out = _coerce_date_like(v)
    if not isinstance(out, datetime):
        return None
    if out.tzinfo is not None:
        out = out.astimezone(timezone.utc).replace(tzinfo=None)
    return out


def normalize_frontmatter_dates(
    fm: Dict[str, Any],
    keys: Iterable[str] = ("date", "updated"),
) -> Dict[str, Any]:
    if not isinstance(fm, dict):
        return fm
    for k in keys:
        if k in fm:
            fm[k] = _coerce_date_like(fm[k])
    return fm


def snapshot_tree(paths: Iterable[pathlib.Path]) -> str:
    """Digest of every file's path, size and mtime under the given roots."""
    h = hashlib.sha256()
    for root in paths:
        if not root.exists():
            continue
        files = [root] if root.is_file() else sorted(
            p for p in root.rglob("*") if p.is_file()
        )
        for p in files:
            st = p.stat()
            h.update(f"{p}\0{st.st_size}\0{st.st_mtime_ns}\n".encode())
    return h.hexdigest()
