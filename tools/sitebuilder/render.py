from __future__ import annotations

import logging
import pathlib
from dataclasses import dataclass, field
from typing import Any, Collection, Dict, List, Optional

import markdown
from bs4 import BeautifulSoup  # type: ignore

from .config import MAX_TOC_DEPTH, SiteConfig
from .highlight import highlight_code_blocks
from .links import LinkResolver
from .markdown_processing import (
    add_ids_and_collect_toc,
    map_noncode,
    reserve_explicit_ids,
)
from .routes import Route
from .utils import _norm_text

logger = logging.getLogger(__name__)

MARKDOWN_EXTENSIONS = [
    "fenced_code",
    "attr_list",
    "tables",
    "footnotes",
    "sane_lists",
]


@dataclass(frozen=True)
class RenderOptions:
    base_path: str = "/"
    page_url: str = "/"
    source: Optional[pathlib.Path] = None
    content_dir: Optional[pathlib.Path] = None
    public_dir: Optional[pathlib.Path] = None
    known_routes: Optional[Collection[str]] = None
    heading_anchors: bool = True
    toc_depth: int = MAX_TOC_DEPTH
    highlight_style: str = "default"

    @classmethod
    def for_route(
        cls, config: SiteConfig, route: Route,
        known_routes: Optional[Collection[str]] = None,
    ) -> "RenderOptions":
        return cls(
            base_path=config.base_path,
            page_url=route.url_path,
            source=route.source,
            content_dir=config.content_path,
            public_dir=config.public_path,
            known_routes=known_routes,
            toc_depth=config.toc_depth,
            highlight_style=config.highlight_style,
        )


@dataclass
class RenderedFragment:
    html: str
    toc: List[Dict[str, Any]] = field(default_factory=list)
    assets: Dict[str, pathlib.Path] = field(default_factory=dict)


def render_markdown(
    body: str, options: Optional[RenderOptions] = None
) -> RenderedFragment:
    """Convert a markdown body into an HTML fragment.

    Headings get slug ids, labelled fenced code is highlighted and internal
    links are resolved against ``options.base_path``. An empty body yields an
    empty fragment.
    """
    options = options or RenderOptions()
    text = _norm_text(body)
    if not text.strip():
        return RenderedFragment(html="")

    toc: List[Dict[str, Any]] = []
    if options.heading_anchors:
        used_ids: Dict[str, int] = {}
        map_noncode(text, lambda s: reserve_explicit_ids(s, used_ids))

        def _ids(s):
            s2, toc_part = add_ids_and_collect_toc(
                s, used_ids, max_depth=options.toc_depth
            )
            toc.extend(toc_part)
            return s2

        text = map_noncode(text, _ids)

    html = markdown.markdown(
        text, extensions=MARKDOWN_EXTENSIONS, output_format="html"
    )
    soup = BeautifulSoup(html, "html.parser")

    resolver = LinkResolver(
        base_path=options.base_path,
        page_url=options.page_url,
        source=options.source,
        content_dir=options.content_dir,
        known_routes=options.known_routes,
        public_dir=options.public_dir,
    )
    highlight_code_blocks(soup, options.highlight_style, where=resolver.where)
    resolver.rewrite(soup)

    logger.debug("rendered %s: %d headings, %d assets",
                 resolver.where, len(toc), len(resolver.assets))
    return RenderedFragment(html=str(soup).strip(), toc=toc, assets=resolver.assets)
