from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, Dict, List, Optional, Sequence

from jinja2 import (
    ChoiceLoader,
    Environment,
    FileSystemLoader,
    PrefixLoader,
    StrictUndefined,
    select_autoescape,
)
from markupsafe import Markup

from .components import COMPONENT_PREFIX, ComponentRegistry
from .config import (
    ASSET_DIR_NAME,
    COMPONENT_DIR,
    DECOR_RE,
    HIGHLIGHT_CSS_NAME,
    TEMPLATE_DIR,
    SiteConfig,
)
from .links import join_base
from .posts import Document, Page, Post
from .render import RenderedFragment
from .routes import LISTING

logger = logging.getLogger(__name__)

LIVE_RELOAD_PATH = "/__livereload"


def decor(text: str) -> Markup:
    """Expand ``<%>…</%>`` markers in trusted site strings."""
    return Markup(DECOR_RE.sub(r'<span class="decor">\g<inner></span>', text))


def format_date(value: Optional[datetime], language: str) -> str:
    if value is None:
        return ""
    if language == "zh":
        return f"{value.year}年{value.month}月{value.day}日"
    return value.strftime("%b %d, %Y").replace(" 0", " ")


class Shell:
    """Persistent chrome (nav bar, theme toggle, scroll-to-top, footer)."""

    def __init__(self, config: SiteConfig, live_reload: bool = False):
        self.config = config
        self.live_reload = live_reload
        component_dirs = [config.components_path, COMPONENT_DIR]
        self.env = Environment(
            loader=ChoiceLoader([
                PrefixLoader({
                    COMPONENT_PREFIX: FileSystemLoader(
                        [str(d) for d in component_dirs if d.is_dir()]
                    ),
                }),
                FileSystemLoader(str(TEMPLATE_DIR)),
            ]),
            autoescape=select_autoescape(["html"]),
            undefined=StrictUndefined,
            trim_blocks=True,
            lstrip_blocks=True,
        )
        self.registry = ComponentRegistry.discover(self.env, component_dirs)
        self.env.filters["decor"] = decor
        self.env.filters["datefmt"] = lambda v, lang=None: format_date(
            v, lang or config.language
        )
        self.env.globals.update(
            site=config,
            url=lambda path: join_base(config.base_path, path),
            component=self.registry.render,
            asset=lambda name: join_base(
                config.base_path, f"{ASSET_DIR_NAME}/{name}"
            ),
            highlight_css=HIGHLIGHT_CSS_NAME,
            live_reload=live_reload,
            live_reload_path=LIVE_RELOAD_PATH,
        )

    def _render(self, template: str, **context: Any) -> str:
        context.setdefault("lang", self.config.language)
        context.setdefault("page_title", self.config.title)
        context.setdefault("description", self.config.description)
        context.setdefault("current_url", "/")
        html = self.env.get_template(template).render(**context)
        return html.rstrip() + "\n"

    def _common(self, doc: Document) -> Dict[str, Any]:
        is_home = doc.url_path == "/"
        return {
            "lang": doc.language or self.config.language,
            "page_title": (
                self.config.title if is_home
                else f"{doc.title} - {self.config.title}"
            ),
            "description": doc.description or self.config.description,
            "current_url": doc.url_path,
        }

    def render_post(self, post: Post, fragment: RenderedFragment) -> str:
        return self._render(
            "post.html", post=post, content=Markup(fragment.html),
            toc=fragment.toc, **self._common(post),
        )

    def render_page(
        self,
        page: Page,
        fragment: RenderedFragment,
        posts: Sequence[Post] = (),
        kind: str = "page",
    ) -> str:
        if page.url_path == "/":
            template = "home.html"
        elif kind == LISTING or page.extra.get("list_posts"):
            template = "posts.html"
        else:
            template = "page.html"
        return self._render(
            template, page=page, content=Markup(fragment.html),
            toc=fragment.toc, posts=list(posts), **self._common(page),
        )

    def render_listing(self, page: Page, posts: Sequence[Post]) -> str:
        return self.render_page(page, RenderedFragment(html=""), posts, kind=LISTING)

    def render_not_found(self) -> str:
        return self._render("404.html", page_title=f"404 - {self.config.title}")

    @property
    def component_names(self) -> List[str]:
        return self.registry.names
