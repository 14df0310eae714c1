from __future__ import annotations

import pathlib
import posixpath
import warnings
from typing import Collection, Dict, Optional
from urllib.parse import unquote, urlsplit, urlunsplit

from .assets import asset_name, is_relative_local, resolve_asset_candidate
from .config import ASSET_DIR_NAME, CONTENT_SUFFIX, SCHEME_RE
from .errors import SiteBuildError, UnresolvedReferenceWarning
from .routes import normalize_url_path, url_path_for

LINK_ATTRS = (("a", "href"), ("img", "src"), ("source", "src"), ("video", "src"))


def join_base(base_path: str, url_path: str) -> str:
    return base_path.rstrip("/") + "/" + url_path.lstrip("/")


def is_external(url: str) -> bool:
    return bool(SCHEME_RE.match(url)) or url.startswith(("//", "#"))


def _target_url_path(path: str, base_dir: str) -> Optional[str]:
    """Url path a link points at, or None if it escapes the site root."""
    if path.startswith("/"):
        target = posixpath.normpath(path).lstrip("/")
    else:
        target = posixpath.normpath(posixpath.join(base_dir, path))
    if target == ".":
        return "/"
    if target.startswith(".."):
        return None
    if target.endswith(CONTENT_SUFFIX):
        try:
            return url_path_for(pathlib.PurePosixPath(target))
        except SiteBuildError:
            return None
    return normalize_url_path(target)


class LinkResolver:
    """Rewrites internal links of one rendered page against the base path."""

    def __init__(
        self,
        base_path: str = "/",
        page_url: str = "/",
        source: Optional[pathlib.Path] = None,
        content_dir: Optional[pathlib.Path] = None,
        known_routes: Optional[Collection[str]] = None,
        public_dir: Optional[pathlib.Path] = None,
    ):
        self.base_path = base_path
        self.source = source
        self.known_routes = known_routes
        self.public_dir = public_dir
        self.assets: Dict[str, pathlib.Path] = {}
        if source is not None and content_dir is not None:
            rel = source.resolve().relative_to(content_dir.resolve())
            self.base_dir = rel.parent.as_posix()
        else:
            self.base_dir = posixpath.dirname(page_url.strip("/")) or "."

    @property
    def where(self) -> str:
        return str(self.source) if self.source is not None else "<string>"

    def _is_known(self, url_path: str) -> bool:
        if self.known_routes is None or url_path in self.known_routes:
            return True
        if self.public_dir is not None and url_path != "/":
            return (self.public_dir / url_path.lstrip("/")).is_file()
        return False

    def _local_asset(self, path: str) -> Optional[str]:
        if self.source is None or not is_relative_local(path):
            return None
        if path.endswith(CONTENT_SUFFIX):
            return None
        src = resolve_asset_candidate(self.source.parent, unquote(path))
        if src is None:
            return None
        name = asset_name(src)
        self.assets[name] = src
        return join_base(self.base_path, f"{ASSET_DIR_NAME}/{name}")

    def resolve(self, url: str) -> str:
        if not url or is_external(url):
            return url
        parts = urlsplit(url)
        if not parts.path:
            return url

        asset = self._local_asset(parts.path)
        if asset is not None:
            return urlunsplit(("", "", asset, parts.query, parts.fragment))

        target = _target_url_path(unquote(parts.path), self.base_dir)
        if target is None or not self._is_known(target):
            warnings.warn(
                UnresolvedReferenceWarning(
                    f"{self.where}: link target {url!r} is not a known route"
                ),
                stacklevel=2,
            )
            return url
        return urlunsplit(
            ("", "", join_base(self.base_path, target), parts.query, parts.fragment)
        )

    def rewrite(self, soup) -> None:
        for tag, attr in LINK_ATTRS:
            for el in soup.find_all(tag):
                url = el.get(attr)
                if url:
                    el[attr] = self.resolve(url)
