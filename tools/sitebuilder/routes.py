from __future__ import annotations

import logging
import pathlib
from dataclasses import dataclass
from typing import Dict, Iterator, List, Optional, Sequence

from .config import CONTENT_SUFFIX, INDEX_STEM
from .errors import DuplicateRouteError, SiteBuildError
from .utils import natural_key, slugify

logger = logging.getLogger(__name__)

POST = "post"
PAGE = "page"
LISTING = "listing"


@dataclass(frozen=True)
class Route:
    url_path: str
    kind: str
    source: Optional[pathlib.Path] = None

    @property
    def slug(self) -> str:
        return self.url_path.strip("/")

    @property
    def output_file(self) -> pathlib.PurePosixPath:
        """Location of the rendered page relative to the output dir."""
        return pathlib.PurePosixPath(self.slug, "index.html")


def url_path_for(rel: pathlib.PurePath) -> str:
    """Map a content file path (relative to the content dir) to its url."""
    parts = list(rel.with_suffix("").parts)
    if parts and parts[-1].lower() == INDEX_STEM:
        parts = parts[:-1]
    segments = []
    for part in parts:
        seg = slugify(part)
        if not seg:
            raise SiteBuildError(f"{rel}: cannot derive a url segment from {part!r}")
        segments.append(seg)
    return "/" + "/".join(segments)


def normalize_url_path(url_path: str) -> str:
    return "/" + url_path.strip("/")


class RouteTable:
    """Static, ordered url path -> route mapping computed once per build."""

    def __init__(self, routes: Sequence[Route]):
        self._routes = tuple(
            sorted(routes, key=lambda r: natural_key(r.url_path))
        )
        self._by_path = {r.url_path: r for r in self._routes}

    def __iter__(self) -> Iterator[Route]:
        return iter(self._routes)

    def __len__(self) -> int:
        return len(self._routes)

    def __contains__(self, url_path: str) -> bool:
        return normalize_url_path(url_path) in self._by_path

    def lookup(self, url_path: str) -> Optional[Route]:
        return self._by_path.get(normalize_url_path(url_path))

    def by_source(self, source: pathlib.Path) -> Optional[Route]:
        source = source.resolve()
        for r in self._routes:
            if r.source is not None and r.source.resolve() == source:
                return r
        return None

    @property
    def url_paths(self) -> List[str]:
        return [r.url_path for r in self._routes]

    def of_kind(self, kind: str) -> List[Route]:
        return [r for r in self._routes if r.kind == kind]


def _is_hidden(rel: pathlib.PurePath) -> bool:
    return any(part.startswith(".") for part in rel.parts)


def materialize_routes(
    content_dir: pathlib.Path, posts_dir: str = "posts"
) -> RouteTable:
    content_dir = pathlib.Path(content_dir)
    if not content_dir.is_dir():
        raise SiteBuildError(f"content directory not found: {content_dir}")

    listing_path = "/" + slugify(posts_dir)
    seen: Dict[str, Route] = {}
    for p in sorted(content_dir.rglob(f"*{CONTENT_SUFFIX}")):
        if not p.is_file():
            continue
        rel = p.relative_to(content_dir)
        if _is_hidden(rel):
            continue
        url = url_path_for(rel)
        in_posts = len(rel.parts) > 1 and rel.parts[0] == posts_dir
        kind = POST if in_posts and url != listing_path else PAGE

        if url in seen:
            raise DuplicateRouteError(url, seen[url].source, p)
        seen[url] = Route(url_path=url, kind=kind, source=p)

    if listing_path not in seen:
        seen[listing_path] = Route(url_path=listing_path, kind=LISTING)

    table = RouteTable(list(seen.values()))
    logger.debug("materialized %d routes from %s", len(table), content_dir)
    return table
