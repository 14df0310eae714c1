#!/usr/bin/env python3
"""
Static site builder for the kele.me blog.

- content/**/*.md -> dist/<route>/index.html
  frontmatter: title, description, date, lang, duration, subtitle
- content/posts/*.md are posts (title + date required), everything else a page
- content/<dir>/index.md maps to /<dir>; two files on one route abort the build
- headings get slug ids, fenced code is highlighted with Pygments,
  internal links are resolved against `base_path`
- public/ is mirrored verbatim into the output

Commands: build, dev (live reload), preview, new, routes.
"""

from __future__ import annotations

import argparse
import logging
import pathlib
import sys
from datetime import datetime
from typing import Any, Dict, List, Optional

from .build import build_site
from .config import CONTENT_SUFFIX, SiteConfig, load_config
from .errors import SiteBuildError
from .frontmatter import yaml_frontmatter_block
from .routes import materialize_routes
from .server import DevServer, preview
from .utils import ensure_dir, slugify


def setup_logging(verbose: bool = False) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(levelname)s %(name)s: %(message)s",
    )
    logging.captureWarnings(True)


def cmd_build(args, config: SiteConfig) -> int:
    build_site(config)
    return 0


def cmd_dev(args, config: SiteConfig) -> int:
    DevServer(config, host=args.host, port=args.port).serve_forever()
    return 0


def cmd_preview(args, config: SiteConfig) -> int:
    preview(config, host=args.host, port=args.port)
    return 0


def cmd_routes(args, config: SiteConfig) -> int:
    routes = materialize_routes(config.content_path, config.posts_dir)
    for r in routes:
        source = r.source.relative_to(config.content_path) if r.source else "-"
        print(f"{r.url_path}\t{r.kind}\t{source}")
    return 0


def cmd_new(args, config: SiteConfig) -> int:
    slug = slugify(args.slug or args.title)
    if not slug:
        raise SiteBuildError(f"cannot derive a file name from {args.title!r}")
    dest = config.content_path / config.posts_dir / f"{slug}{CONTENT_SUFFIX}"
    if dest.exists():
        raise SiteBuildError(f"{dest} already exists")
    if args.lang and args.lang not in config.languages:
        raise SiteBuildError(
            f"--lang must be one of {', '.join(config.languages)}"
        )

    fm: Dict[str, Any] = {
        "title": args.title,
        "date": datetime.now().date(),
        "lang": args.lang or config.language,
    }
    if args.duration:
        fm["duration"] = f"{args.duration}min"
    if args.description:
        fm["description"] = args.description

    ensure_dir(dest.parent)
    dest.write_text(yaml_frontmatter_block(fm), encoding="utf-8")
    print(f"✓ created {dest}")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="sitebuilder", description="Static site builder for markdown blogs"
    )
    parser.add_argument("--root", type=pathlib.Path, default=pathlib.Path("."),
                        help="project root holding site.yml (default: .)")
    parser.add_argument("-v", "--verbose", action="store_true")
    sub = parser.add_subparsers(dest="command", required=True)

    b = sub.add_parser("build", help="render every route into the output dir")
    b.add_argument("--out", help="output directory (overrides site.yml)")
    b.add_argument("--base-path", help="url prefix the site is served under")
    b.set_defaults(func=cmd_build)

    d = sub.add_parser("dev", help="build, serve and rebuild on change")
    d.add_argument("--host", default="127.0.0.1")
    d.add_argument("--port", type=int, default=3333)
    d.set_defaults(func=cmd_dev)

    p = sub.add_parser("preview", help="serve the existing build output")
    p.add_argument("--host", default="127.0.0.1")
    p.add_argument("--port", type=int, default=4173)
    p.set_defaults(func=cmd_preview)

    n = sub.add_parser("new", help="scaffold a new post")
    n.add_argument("title")
    n.add_argument("--slug")
    n.add_argument("--lang")
    n.add_argument("--duration", type=int)
    n.add_argument("--description")
    n.set_defaults(func=cmd_new)

    r = sub.add_parser("routes", help="print the route table")
    r.set_defaults(func=cmd_routes)
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    setup_logging(args.verbose)

    overrides: Dict[str, Any] = {}
    if getattr(args, "out", None):
        overrides["output_dir"] = pathlib.Path(args.out).resolve()
    if getattr(args, "base_path", None):
        overrides["base_path"] = args.base_path

    try:
        config = load_config(args.root, overrides)
        return args.func(args, config)
    except SiteBuildError as e:
        print(f"ERROR: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
