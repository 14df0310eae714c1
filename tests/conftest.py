"""
Pytest configuration and shared fixtures
"""

import textwrap
from pathlib import Path

import pytest

from sitebuilder.config import load_config


def write(root: Path, rel: str, text: str) -> Path:
    path = root / rel
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(textwrap.dedent(text).lstrip("\n"), encoding="utf-8")
    return path


@pytest.fixture
def write_file():
    """Write dedented text to ``root / rel`` and return the path"""
    return write


@pytest.fixture
def site_root(tmp_path):
    """A small but complete site: home page, about page, two posts"""
    root = tmp_path / "site"
    write(root, "site.yml", """
        title: Kele
        author: Kele
        language: zh
        languages: [zh, en]
        nav:
          - title: Blog
            url: /posts
          - title: GitHub
            url: https://github.com/Aaronwn
        intro:
          title: 'Hi，你好 <%><span class="rotated-hand">👋</span></%>'
          contents:
            - 作为一名前端工程师，我热爱用代码创造有价值的产品。
          find_me:
            - '可以在 <a href="https://github.com/Aaronwn">GitHub</a> 找到我。'
    """)
    write(root, "content/index.md", """
        ---
        title: Home
        ---

        Welcome to [the blog](/posts).
    """)
    write(root, "content/about.md", """
        ---
        title: About
        ---

        About me.
    """)
    write(root, "content/posts/hello-world.md", """
        ---
        title: "Hello"
        date: 2024-01-01
        lang: en
        duration: 3min
        description: First post
        ---

        ## Getting Started

        Read the [next one](second-post.md).

        ```typescript
        const answer: number = 42;
        ```
    """)
    write(root, "content/posts/second-post.md", """
        ---
        title: Second
        date: 2024-02-01
        subtitle: by Kele
        ---

        Back to [hello](./hello-world.md#getting-started).
    """)
    write(root, "public/favicon.svg", "<svg></svg>\n")
    return root


@pytest.fixture
def config(site_root):
    return load_config(site_root)


@pytest.fixture
def bare_config(tmp_path):
    """Defaults only: no site.yml in the root"""
    return load_config(tmp_path)
