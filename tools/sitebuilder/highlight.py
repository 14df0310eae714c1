from __future__ import annotations

import warnings
from functools import lru_cache
from typing import Optional

from bs4 import BeautifulSoup  # type: ignore
from pygments import highlight as phighlight  # type: ignore
from pygments.formatters import HtmlFormatter  # type: ignore
from pygments.lexers import get_lexer_by_name  # type: ignore
from pygments.util import ClassNotFound  # type: ignore

from .errors import ConfigError, UnsupportedHighlightLanguageWarning

LANGUAGE_PREFIX = "language-"


@lru_cache(16)
def get_formatter(style: str) -> HtmlFormatter:
    try:
        return HtmlFormatter(style=style, cssclass="highlight", wrapcode=True)
    except ClassNotFound as e:
        raise ConfigError("highlight_style", f"unknown pygments style {style!r}") from e


@lru_cache(16)
def highlight_css(style: str) -> str:
    return get_formatter(style).get_style_defs(".highlight")


def declared_language(code) -> Optional[str]:
    for cls in code.get("class") or []:
        if cls.startswith(LANGUAGE_PREFIX) and len(cls) > len(LANGUAGE_PREFIX):
            return cls[len(LANGUAGE_PREFIX):]
    return None


def highlight_code_blocks(
    soup: BeautifulSoup, style: str = "default", where: str = "<string>"
) -> int:
    """Replace every labelled ``<pre><code>`` with Pygments markup.

    Blocks without a language label are left alone. Blocks whose label has no
    lexer are left as plain preformatted text and a warning is emitted.
    Returns the number of highlighted blocks.
    """
    formatter = get_formatter(style)
    count = 0
    for code in soup.find_all("code"):
        pre = code.parent
        if pre is None or pre.name != "pre":
            continue
        lang = declared_language(code)
        if lang is None:
            continue
        try:
            lexer = get_lexer_by_name(lang)
        except ClassNotFound:
            warnings.warn(
                UnsupportedHighlightLanguageWarning(
                    f"{where}: no highlighting grammar for {lang!r}, "
                    "rendering as plain text"
                ),
                stacklevel=2,
            )
            continue

        highlighted = phighlight(code.get_text(), lexer, formatter)
        block = BeautifulSoup(highlighted, "html.parser")
        wrapper = block.find("div")
        wrapper["data-lang"] = lang
        pre.replace_with(wrapper)
        count += 1
    return count
