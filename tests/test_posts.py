"""Tests for posts.py — metadata validation and ordering."""

from datetime import datetime
from pathlib import Path

import pytest

from sitebuilder.errors import InvalidMetadataError, MalformedMetadataError
from sitebuilder.posts import (
    link_neighbours,
    page_from_text,
    parse_duration,
    post_from_text,
    sort_posts,
)
from sitebuilder.routes import PAGE, POST, Route


def post_route(slug="hello"):
    return Route(url_path=f"/posts/{slug}", kind=POST, source=Path(f"posts/{slug}.md"))


def make_post(bare_config, slug, day):
    text = f"---\ntitle: {slug}\ndate: 2024-01-{day:02d}\n---\nbody\n"
    return post_from_text(text, post_route(slug), bare_config)


class TestPostFromText:

    def test_full_metadata(self, bare_config):
        text = (
            "---\n"
            "title: Hello\n"
            "description: desc\n"
            "date: 2024-01-01\n"
            "lang: zh\n"
            "duration: 5min\n"
            "subtitle: Kele\n"
            "image: cover.png\n"
            "---\n"
            "\n"
            "Body.\n"
        )
        post = post_from_text(text, post_route(), bare_config)
        assert post.slug == "posts/hello"
        assert post.url_path == "/posts/hello"
        assert post.title == "Hello"
        assert post.description == "desc"
        assert post.date == datetime(2024, 1, 1)
        assert post.language == "zh"
        assert post.duration_minutes == 5
        assert post.subtitle == "Kele"
        assert post.body == "\nBody.\n"
        assert post.extra == {"image": "cover.png"}

    def test_datetime_and_string_dates(self, bare_config):
        post = post_from_text("---\ntitle: T\ndate: 2024-03-04 10:30:00\n---\n", post_route(), bare_config)
        assert post.date == datetime(2024, 3, 4, 10, 30)
        post = post_from_text("---\ntitle: T\ndate: '2024-03-04'\n---\n", post_route(), bare_config)
        assert post.date == datetime(2024, 3, 4)

    def test_timezone_aware_date_is_normalized_to_utc(self, bare_config):
        post = post_from_text("---\ntitle: T\ndate: 2024-03-04T08:00:00+08:00\n---\n", post_route(), bare_config)
        assert post.date == datetime(2024, 3, 4, 0, 0)

    def test_empty_body_is_accepted(self, bare_config):
        post = post_from_text("---\ntitle: T\ndate: 2024-01-01\n---\n", post_route(), bare_config)
        assert post.body == ""

    def test_crlf_is_normalized(self, bare_config):
        post = post_from_text("---\r\ntitle: T\r\ndate: 2024-01-01\r\n---\r\nbody\r\n", post_route(), bare_config)
        assert post.body == "body\n"

    @pytest.mark.parametrize("text, field", [
        ("---\ndate: 2024-01-01\n---\n", "title"),
        ("---\ntitle: '  '\ndate: 2024-01-01\n---\n", "title"),
        ("---\ntitle: T\n---\n", "date"),
        ("---\ntitle: T\ndate: yesterday\n---\n", "date"),
        ("---\ntitle: T\ndate: '2024-13-45'\n---\n", "date"),
        ("---\ntitle: T\ndate: 2024-01-01\nlang: fr\n---\n", "lang"),
        ("---\ntitle: T\ndate: 2024-01-01\nduration: a while\n---\n", "duration"),
        ("---\ntitle: [a, b]\ndate: 2024-01-01\n---\n", "title"),
        ("no frontmatter at all\n", "title"),
    ])
    def test_invalid_metadata(self, bare_config, text, field):
        with pytest.raises(InvalidMetadataError) as exc:
            post_from_text(text, post_route(), bare_config)
        assert exc.value.field == field
        assert "posts/hello.md" in str(exc.value)

    def test_unclosed_block_propagates(self, bare_config):
        with pytest.raises(MalformedMetadataError):
            post_from_text("---\ntitle: T\n", post_route(), bare_config)

    def test_impossible_yaml_date_is_malformed(self, bare_config):
        with pytest.raises(MalformedMetadataError):
            post_from_text("---\ntitle: T\ndate: 2024-13-45\n---\n", post_route(), bare_config)


@pytest.mark.parametrize("value, expected", [
    (None, None),
    ("", None),
    (7, 7),
    ("5min", 5),
    ("12 min", 12),
    ("3 minutes", 3),
    ("8", 8),
])
def test_parse_duration(value, expected):
    assert parse_duration(value) == expected


def test_parse_duration_rejects_negative():
    with pytest.raises(InvalidMetadataError):
        parse_duration(-1)


class TestPages:

    def test_title_falls_back_to_file_name(self, bare_config):
        route = Route(url_path="/about-me", kind=PAGE, source=Path("about-me.md"))
        page = page_from_text("Just text.\n", route, bare_config)
        assert page.title == "About Me"
        assert page.date is None

    def test_home_title_falls_back_to_site_title(self, bare_config):
        route = Route(url_path="/", kind=PAGE, source=Path("index.md"))
        assert page_from_text("", route, bare_config).title == bare_config.title


class TestOrdering:

    def test_newest_first(self, bare_config):
        posts = [make_post(bare_config, s, d) for s, d in (("a", 1), ("b", 3), ("c", 2))]
        assert [p.title for p in sort_posts(posts)] == ["b", "c", "a"]

    def test_same_date_breaks_ties_by_slug(self, bare_config):
        posts = [make_post(bare_config, s, 1) for s in ("zeta", "alpha")]
        assert [p.title for p in sort_posts(posts)] == ["alpha", "zeta"]

    def test_neighbours(self, bare_config):
        newest, middle, oldest = sort_posts(
            [make_post(bare_config, s, d) for s, d in (("a", 1), ("b", 2), ("c", 3))]
        )
        link_neighbours([newest, middle, oldest])
        assert newest.next is None and newest.prev is middle
        assert middle.next is newest and middle.prev is oldest
        assert oldest.next is middle and oldest.prev is None
