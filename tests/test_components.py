"""Tests for components.py and shell.py — registry and page chrome."""

import pytest
from jinja2 import DictLoader, Environment, FileSystemLoader, PrefixLoader
from markupsafe import Markup

from sitebuilder.components import ComponentRegistry, component_name
from sitebuilder.errors import UnknownComponentError
from sitebuilder.posts import Page
from sitebuilder.render import RenderedFragment
from sitebuilder.shell import Shell, decor, format_date


@pytest.mark.parametrize("stem, name", [
    ("nav-bar", "NavBar"),
    ("toggle_theme", "ToggleTheme"),
    ("footer", "Footer"),
    ("table-of-contents", "TableOfContents"),
])
def test_component_name(stem, name):
    assert component_name(stem) == name


class TestRegistry:

    def test_unknown_name_fails_loudly(self):
        registry = ComponentRegistry({"Footer": lambda **kw: Markup("<footer>")})
        with pytest.raises(UnknownComponentError) as exc:
            registry.get("Fotter")
        assert exc.value.name == "Fotter"
        assert "Footer" in str(exc.value)

    def test_register_and_render(self):
        registry = ComponentRegistry()
        registry.register("Hello", lambda name="x": Markup(f"<b>{name}</b>"))
        assert "Hello" in registry
        assert registry.render("Hello", name="kele") == Markup("<b>kele</b>")

    def test_discover_prefers_earlier_dirs(self, tmp_path, write_file):
        site = tmp_path / "site"
        bundled = tmp_path / "bundled"
        write_file(bundled, "footer.html", "bundled footer")
        write_file(bundled, "nav-bar.html", "bundled nav {{ title }}")
        write_file(site, "footer.html", "site footer")
        env = Environment(loader=PrefixLoader({
            "components": FileSystemLoader([str(site), str(bundled)]),
        }))
        registry = ComponentRegistry.discover(env, [site, bundled])
        assert registry.names == ["Footer", "NavBar"]
        assert registry.render("Footer") == "site footer"
        assert registry.render("NavBar", title="T") == "bundled nav T"

    def test_discover_skips_missing_dirs(self, tmp_path):
        env = Environment(loader=DictLoader({}))
        assert ComponentRegistry.discover(env, [tmp_path / "nope"]).names == []


class TestShell:

    def test_bundled_components(self, config):
        assert Shell(config).component_names == [
            "Footer", "NavBar", "PostList", "TableOfContents", "ToggleTheme",
        ]

    def test_page_has_chrome(self, config):
        page = Page(slug="about", title="About", body="", url_path="/about")
        html = Shell(config).render_page(page, RenderedFragment(html="<p>hi</p>"))
        assert html.startswith("<!DOCTYPE html>")
        assert '<html lang="zh">' in html
        assert "<title>About - Kele</title>" in html
        assert 'class="header"' in html
        assert 'class="toggle-theme"' in html
        assert 'id="scroll-top"' in html
        assert "var threshold = 300;" in html
        assert 'class="footer"' in html
        assert "<p>hi</p>" in html
        assert "__livereload" not in html

    def test_live_reload_script_only_in_dev(self, config):
        page = Page(slug="about", title="About", body="", url_path="/about")
        html = Shell(config, live_reload=True).render_page(page, RenderedFragment(html=""))
        assert "/__livereload" in html

    def test_site_component_overrides_bundled(self, config, write_file):
        write_file(config.components_path, "footer.html", '<footer class="mine">mine</footer>')
        page = Page(slug="about", title="About", body="", url_path="/about")
        html = Shell(config).render_page(page, RenderedFragment(html=""))
        assert '<footer class="mine">mine</footer>' in html
        assert 'class="footer"' not in html

    def test_unknown_component_in_template_fails(self, config, write_file):
        write_file(config.components_path, "footer.html", "{{ component('Nope') }}")
        page = Page(slug="about", title="About", body="", url_path="/about")
        with pytest.raises(UnknownComponentError):
            Shell(config).render_page(page, RenderedFragment(html=""))

    def test_nav_marks_active_link(self, config):
        page = Page(slug="posts", title="Posts", body="", url_path="/posts")
        html = Shell(config).render_listing(page, [])
        assert 'href="/posts" title="Blog" class="active"' in html
        assert 'href="https://github.com/Aaronwn"' in html
        assert 'target="_blank"' in html

    def test_not_found_page(self, config):
        html = Shell(config).render_not_found()
        assert "<h1>404</h1>" in html


def test_decor_wraps_marked_spans():
    assert decor("Hi <%><b>x</b></%>!") == 'Hi <span class="decor"><b>x</b></span>!'


@pytest.mark.parametrize("language, expected", [
    ("zh", "2024年1月5日"),
    ("en", "Jan 5, 2024"),
])
def test_format_date(language, expected):
    from datetime import datetime
    assert format_date(datetime(2024, 1, 5), language) == expected
