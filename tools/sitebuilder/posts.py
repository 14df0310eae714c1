from __future__ import annotations

import logging
import pathlib
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional, Sequence, Union

from .config import DURATION_RE, SiteConfig
from .errors import InvalidMetadataError, MalformedMetadataError, SiteBuildError
from .frontmatter import parse_frontmatter
from .routes import LISTING, POST, Route
from .utils import _norm_text, parse_timestamp

logger = logging.getLogger(__name__)

KNOWN_KEYS = ("title", "description", "date", "lang", "duration", "subtitle")


@dataclass
class Post:
    slug: str
    title: str
    date: datetime
    body: str
    url_path: str
    source: Optional[pathlib.Path] = None
    description: str = ""
    language: Optional[str] = None
    duration_minutes: Optional[int] = None
    subtitle: str = ""
    extra: Dict[str, Any] = field(default_factory=dict)
    prev: Optional["Post"] = field(default=None, repr=False, compare=False)
    next: Optional["Post"] = field(default=None, repr=False, compare=False)


@dataclass
class Page:
    slug: str
    title: str
    body: str
    url_path: str
    source: Optional[pathlib.Path] = None
    description: str = ""
    language: Optional[str] = None
    date: Optional[datetime] = None
    extra: Dict[str, Any] = field(default_factory=dict)


Document = Union[Post, Page]


def _opt_str(fm: Dict[str, Any], key: str, path) -> str:
    value = fm.get(key)
    if value is None:
        return ""
    if isinstance(value, (dict, list)):
        raise InvalidMetadataError(path, key, "must be a plain string")
    return str(value).strip()


def parse_duration(value: Any, path=None) -> Optional[int]:
    if value is None or value == "":
        return None
    if isinstance(value, bool):
        raise InvalidMetadataError(path, "duration", f"invalid duration {value!r}")
    if isinstance(value, int):
        n = value
    else:
        m = DURATION_RE.match(str(value))
        if not m:
            raise InvalidMetadataError(path, "duration", f"invalid duration {value!r}")
        n = int(m.group("n"))
    if n < 0:
        raise InvalidMetadataError(path, "duration", "must not be negative")
    return n


def parse_language(value: Any, config: SiteConfig, path=None) -> Optional[str]:
    if value is None or value == "":
        return None
    lang = str(value).strip()
    if lang not in config.languages:
        raise InvalidMetadataError(
            path, "lang",
            f"{lang!r} is not one of {', '.join(config.languages)}",
        )
    return lang


def _extra(fm: Dict[str, Any]) -> Dict[str, Any]:
    return {k: v for k, v in fm.items() if k not in KNOWN_KEYS}


def post_from_text(text: str, route: Route, config: SiteConfig) -> Post:
    path = route.source
    fm, body = parse_frontmatter(_norm_text(text), path)

    title = _opt_str(fm, "title", path)
    if not title:
        raise InvalidMetadataError(path, "title", "required and must not be empty")
    if fm.get("date") is None:
        raise InvalidMetadataError(path, "date", "required")
    ts = parse_timestamp(fm["date"])
    if ts is None:
        raise InvalidMetadataError(path, "date", f"not a valid date: {fm['date']!r}")

    return Post(
        slug=route.slug,
        title=title,
        date=ts,
        body=body,
        url_path=route.url_path,
        source=path,
        description=_opt_str(fm, "description", path),
        language=parse_language(fm.get("lang"), config, path),
        duration_minutes=parse_duration(fm.get("duration"), path),
        subtitle=_opt_str(fm, "subtitle", path),
        extra=_extra(fm),
    )


def page_from_text(text: str, route: Route, config: SiteConfig) -> Page:
    path = route.source
    fm, body = parse_frontmatter(_norm_text(text), path)
    title = _opt_str(fm, "title", path)
    if not title:
        stem = path.stem if path is not None else route.slug
        title = config.title if route.url_path == "/" else stem.replace("-", " ").title()
    date_value = None
    if fm.get("date") is not None:
        date_value = parse_timestamp(fm["date"])
        if date_value is None:
            raise InvalidMetadataError(path, "date", f"not a valid date: {fm['date']!r}")
    return Page(
        slug=route.slug,
        title=title,
        body=body,
        url_path=route.url_path,
        source=path,
        description=_opt_str(fm, "description", path),
        language=parse_language(fm.get("lang"), config, path),
        date=date_value,
        extra=_extra(fm),
    )


def read_source(path: pathlib.Path) -> str:
    try:
        data = path.read_bytes()
    except OSError as e:
        raise SiteBuildError(f"{path}: cannot read: {e.strerror or e}") from e
    try:
        return data.decode("utf-8")
    except UnicodeDecodeError as e:
        line = data[: e.start].count(b"\n") + 1
        raise MalformedMetadataError(path, line, "not valid UTF-8") from e


def load_document(route: Route, config: SiteConfig) -> Document:
    if route.kind == LISTING:
        return Page(
            slug=route.slug,
            title=route.slug.split("/")[-1].replace("-", " ").title(),
            body="",
            url_path=route.url_path,
        )
    text = read_source(route.source)
    if route.kind == POST:
        return post_from_text(text, route, config)
    return page_from_text(text, route, config)


def sort_posts(posts: Sequence[Post]) -> List[Post]:
    """Newest first; ties broken by slug so the order is stable."""
    by_slug = sorted(posts, key=lambda p: p.slug)
    return sorted(by_slug, key=lambda p: p.date, reverse=True)


def link_neighbours(posts_sorted: List[Post]) -> None:
    """Point each post at its chronological neighbours (prev = older)."""
    for i, p in enumerate(posts_sorted):
        p.next = posts_sorted[i - 1] if i > 0 else None
        p.prev = posts_sorted[i + 1] if i < len(posts_sorted) - 1 else None
    if posts_sorted:
        logger.debug("linked prev/next for %d posts", len(posts_sorted))
