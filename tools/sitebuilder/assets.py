from __future__ import annotations

import hashlib
import logging
import pathlib
import shutil
from typing import Dict, Optional

from .config import ASSET_DIR_NAME, SCHEME_RE
from .utils import ensure_dir, slugify

logger = logging.getLogger(__name__)


def is_relative_local(url: str) -> bool:
    if not url:
        return False
    if SCHEME_RE.match(url) or url.startswith("//"):
        return False
    if url.startswith(("#", "/", "?")):
        return False
    return True


def asset_name(src: pathlib.Path) -> str:
    """Content-hashed file name under which a local asset is published."""
    h = hashlib.sha256(src.read_bytes()).hexdigest()[:8]
    safe_stem = slugify(src.stem) or "asset"
    return f"{safe_stem}.{h}{src.suffix.lower()}"


def resolve_asset_candidate(
    base_dir: pathlib.Path, url: str
) -> Optional[pathlib.Path]:
    cand = (base_dir / url).resolve()
    if cand.is_file():
        return cand
    return None


def copy_assets(assets: Dict[str, pathlib.Path], out_dir: pathlib.Path) -> None:
    """Write ``{name: source}`` pairs into ``<out_dir>/assets/``."""
    dest = out_dir / ASSET_DIR_NAME
    for name, src in sorted(assets.items()):
        ensure_dir(dest)
        shutil.copyfile(src, dest / name)
    if assets:
        logger.debug("copied %d content assets", len(assets))


def mirror_tree(src_dir: pathlib.Path, dst_dir: pathlib.Path) -> None:
    if not src_dir.exists():
        return

    for s in sorted(src_dir.rglob("*")):
        if not s.is_file():
            continue
        d = dst_dir / s.relative_to(src_dir)
        d.parent.mkdir(parents=True, exist_ok=True)
        if (not d.exists()) or (
            hashlib.sha256(s.read_bytes()).hexdigest()
            != hashlib.sha256(d.read_bytes()).hexdigest()
        ):
            shutil.copyfile(s, d)
