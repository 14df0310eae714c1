from __future__ import annotations

import logging
import pathlib
import shutil
from dataclasses import dataclass, field
from typing import Dict, List, Tuple

from .assets import copy_assets, mirror_tree
from .config import ASSET_DIR_NAME, HIGHLIGHT_CSS_NAME, STATIC_DIR, SiteConfig
from .errors import SiteBuildError
from .highlight import highlight_css
from .posts import Document, Page, Post, link_neighbours, load_document, sort_posts
from .render import RenderOptions, render_markdown
from .routes import LISTING, RouteTable, materialize_routes
from .shell import Shell
from .utils import ensure_dir, slugify

logger = logging.getLogger(__name__)


@dataclass
class Site:
    routes: RouteTable
    documents: Dict[str, Document]
    posts: List[Post]

    @property
    def pages(self) -> List[Page]:
        return [d for d in self.documents.values() if isinstance(d, Page)]


@dataclass
class BuildResult:
    site: Site
    output_dir: pathlib.Path
    files: List[pathlib.PurePosixPath] = field(default_factory=list)


def load_site(config: SiteConfig) -> Site:
    routes = materialize_routes(config.content_path, config.posts_dir)
    documents = {r.url_path: load_document(r, config) for r in routes}
    posts = sort_posts([d for d in documents.values() if isinstance(d, Post)])
    link_neighbours(posts)
    return Site(routes=routes, documents=documents, posts=posts)


def _check_output_dir(config: SiteConfig) -> pathlib.Path:
    out = config.output_path.resolve()
    for protected in (config.root, config.content_path, config.public_path):
        protected = protected.resolve()
        overlaps = out == protected or out in protected.parents
        if protected != config.root.resolve():
            overlaps = overlaps or protected in out.parents
        if overlaps:
            raise SiteBuildError(
                f"output directory {out} would overwrite {protected}"
            )
    return out


def _write(out: pathlib.Path, rel: pathlib.PurePosixPath, text: str,
           result: BuildResult) -> None:
    dest = out / rel
    ensure_dir(dest.parent)
    dest.write_text(text, encoding="utf-8")
    result.files.append(rel)


def build_site(config: SiteConfig, live_reload: bool = False) -> BuildResult:
    """Render every route, then materialize them into a freshly wiped output dir.

    Nothing is written until every page has rendered; on failure the
    previous output is left untouched.
    """
    out = _check_output_dir(config)
    site = load_site(config)
    shell = Shell(config, live_reload=live_reload)
    known_routes = frozenset(site.routes.url_paths)
    listing_path = "/" + slugify(config.posts_dir)

    rendered: List[Tuple[pathlib.PurePosixPath, str]] = []
    assets: Dict[str, pathlib.Path] = {}
    for route in site.routes:
        doc = site.documents[route.url_path]
        fragment = render_markdown(
            doc.body, RenderOptions.for_route(config, route, known_routes)
        )
        assets.update(fragment.assets)
        if isinstance(doc, Post):
            html = shell.render_post(doc, fragment)
        elif route.kind == LISTING:
            html = shell.render_listing(doc, site.posts)
        else:
            kind = LISTING if route.url_path == listing_path else route.kind
            html = shell.render_page(doc, fragment, site.posts, kind=kind)
        rendered.append((route.output_file, html))

    rendered.append((pathlib.PurePosixPath("404.html"), shell.render_not_found()))
    rendered.append((
        pathlib.PurePosixPath(ASSET_DIR_NAME, HIGHLIGHT_CSS_NAME),
        highlight_css(config.highlight_style),
    ))

    if out.exists():
        shutil.rmtree(out)
    ensure_dir(out)
    result = BuildResult(site=site, output_dir=out)
    for rel, text in rendered:
        _write(out, rel, text, result)
    for route in site.routes:
        logger.info("✓ %s %s", route.kind, route.url_path)
    mirror_tree(STATIC_DIR, out / ASSET_DIR_NAME)
    copy_assets(assets, out)
    mirror_tree(config.public_path, out)

    logger.info(
        "✓ built %d routes (%d posts) into %s",
        len(site.routes), len(site.posts), out,
    )
    return result
