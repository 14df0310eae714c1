#!/usr/bin/env python3
from __future__ import annotations

import pathlib
import re
from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Tuple

import yaml

from .errors import ConfigError

# ---------- Paths

PACKAGE_DIR = pathlib.Path(__file__).resolve().parent
TEMPLATE_DIR = PACKAGE_DIR / "templates"
COMPONENT_DIR = TEMPLATE_DIR / "components"
STATIC_DIR = PACKAGE_DIR / "static"
CONFIG_FILE_NAME = "site.yml"

# ---------- Defaults

ASSET_DIR_NAME = "assets"
HIGHLIGHT_CSS_NAME = "highlight.css"
MAX_TOC_DEPTH = 3
CONTENT_SUFFIX = ".md"
INDEX_STEM = "index"

# Some shared regexes

MD_HEADING = re.compile(r'^(?P<hash>#{1,6})\s+(?P<text>.+?)\s*$',
                        re.MULTILINE)
SETEXT_RE = re.compile(
    r'^(?P<text>[^\n#>`~-].*?)\n(?P<underline>=+|-+)[ \t]*$', re.MULTILINE
)
EXPLICIT_ID = re.compile(r'\s*\{\s*#(?P<id>[-\w]+)\s*\}\s*$')
FENCE = re.compile(r"^(?P<fence>`{3,}|~{3,})[^\n]*$.*?^(?P=fence)[ \t]*$",
                   re.MULTILINE | re.DOTALL)
SLUG_RE = re.compile(r"[^\w-]+")
DURATION_RE = re.compile(r'^\s*(?P<n>\d+)\s*(?:m|min|mins|minutes?)?\s*$',
                         re.IGNORECASE)
SCHEME_RE = re.compile(r'^[a-zA-Z][a-zA-Z0-9+.-]*:')
DECOR_RE = re.compile(r'<%>(?P<inner>.*?)</%>', re.DOTALL)


@dataclass(frozen=True)
class NavLink:
    title: str
    url: str
    icon: str = ""


@dataclass(frozen=True)
class Intro:
    title: str = ""
    contents: Tuple[str, ...] = ()
    find_me: Tuple[str, ...] = ()


@dataclass(frozen=True)
class SiteConfig:
    """Process-wide settings, established once at startup and never mutated."""

    root: pathlib.Path
    title: str = "Kele"
    description: str = ""
    author: str = ""
    url: str = ""
    base_path: str = "/"
    language: str = "zh"
    languages: Tuple[str, ...] = ("zh", "en")
    content_dir: pathlib.Path = pathlib.Path("content")
    output_dir: pathlib.Path = pathlib.Path("dist")
    public_dir: pathlib.Path = pathlib.Path("public")
    components_dir: pathlib.Path = pathlib.Path("components")
    posts_dir: str = "posts"
    nav: Tuple[NavLink, ...] = (
        NavLink("Blog", "/posts", "i-ri:article-line"),
    )
    scroll_top_threshold: int = 300
    highlight_style: str = "default"
    toc_depth: int = MAX_TOC_DEPTH
    intro: Intro = field(default_factory=Intro)

    def resolve(self, p: pathlib.Path) -> pathlib.Path:
        return p if p.is_absolute() else self.root / p

    @property
    def content_path(self) -> pathlib.Path:
        return self.resolve(self.content_dir)

    @property
    def output_path(self) -> pathlib.Path:
        return self.resolve(self.output_dir)

    @property
    def public_path(self) -> pathlib.Path:
        return self.resolve(self.public_dir)

    @property
    def components_path(self) -> pathlib.Path:
        return self.resolve(self.components_dir)


def read_yaml(path: pathlib.Path) -> Dict[str, Any]:
    if path.exists():
        try:
            data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
        except yaml.YAMLError as e:
            raise ConfigError(path, str(e)) from e
        except UnicodeDecodeError as e:
            raise ConfigError(path, "not valid UTF-8") from e
        if not isinstance(data, dict):
            raise ConfigError(path, "top level must be a mapping")
        return data
    return {}


def _normalize_base_path(value: Any, path: pathlib.Path) -> str:
    if not isinstance(value, str):
        raise ConfigError(path, "base_path must be a string")
    value = "/" + value.strip("/")
    return value if value == "/" else value + "/"


def _as_int(raw: Dict[str, Any], key: str, default: int,
            path: pathlib.Path) -> int:
    value = raw.get(key, default)
    if isinstance(value, bool) or not isinstance(value, int) or value < 0:
        raise ConfigError(path, f"{key} must be a non-negative integer")
    return value


def _nav_links(items: Any, path: pathlib.Path) -> Tuple[NavLink, ...]:
    if not isinstance(items, list):
        raise ConfigError(path, "nav must be a list")
    links = []
    for li in items:
        if not isinstance(li, dict) or not li.get("url"):
            raise ConfigError(path, f"invalid nav entry: {li!r}")
        links.append(NavLink(
            title=str(li.get("title") or li["url"]),
            url=str(li["url"]),
            icon=str(li.get("icon") or ""),
        ))
    return tuple(links)


def _intro(raw: Any, path: pathlib.Path) -> Intro:
    if raw is None:
        return Intro()
    if not isinstance(raw, dict):
        raise ConfigError(path, "intro must be a mapping")
    return Intro(
        title=str(raw.get("title") or ""),
        contents=tuple(str(s) for s in raw.get("contents") or ()),
        find_me=tuple(str(s) for s in raw.get("find_me") or ()),
    )


def load_config(root: pathlib.Path,
                overrides: Optional[Dict[str, Any]] = None) -> SiteConfig:
    root = pathlib.Path(root).resolve()
    path = root / CONFIG_FILE_NAME
    raw = read_yaml(path)
    raw.update(overrides or {})

    kwargs: Dict[str, Any] = {"root": root}
    for key in ("title", "description", "author", "url", "posts_dir",
                "highlight_style"):
        if key in raw and raw[key] is not None:
            kwargs[key] = str(raw[key])
    for key in ("content_dir", "output_dir", "public_dir", "components_dir"):
        if raw.get(key):
            kwargs[key] = pathlib.Path(raw[key])

    if "base_path" in raw:
        kwargs["base_path"] = _normalize_base_path(raw["base_path"], path)
    if "languages" in raw:
        langs = raw["languages"]
        if not isinstance(langs, list) or not langs:
            raise ConfigError(path, "languages must be a non-empty list")
        kwargs["languages"] = tuple(str(x) for x in langs)
    if "language" in raw:
        kwargs["language"] = str(raw["language"])
    if kwargs.get("language", SiteConfig.language) not in kwargs.get(
            "languages", SiteConfig.languages):
        raise ConfigError(path, "language must be one of languages")
    if "nav" in raw:
        kwargs["nav"] = _nav_links(raw["nav"], path)

    kwargs["scroll_top_threshold"] = _as_int(
        raw, "scroll_top_threshold", SiteConfig.scroll_top_threshold, path)
    kwargs["toc_depth"] = _as_int(raw, "toc_depth", MAX_TOC_DEPTH, path)
    kwargs["intro"] = _intro(raw.get("intro"), path)

    return SiteConfig(**kwargs)
