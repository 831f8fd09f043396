from __future__ import annotations

import datetime as dt
import json
from pathlib import Path
from typing import Optional

from .content import ParsedPost
from .errors import WriteError
from .log import logger

LOCK_VERSION = 1


def source_key(path: Path, base: Optional[Path] = None) -> str:
    if base is not None:
        try:
            return path.relative_to(base).as_posix()
        except ValueError:
            pass
    return path.resolve().as_posix()


def load_lock(path: Path) -> dict:
    if not path.exists():
        return {}
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as exc:
        logger.warning("Ignoring unreadable build lock %s: %s", path, exc)
        return {}
    if not isinstance(data, dict) or data.get("version") != LOCK_VERSION:
        return {}
    return data


def write_lock(path: Path, data: dict) -> None:
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(json.dumps(data, indent=2, ensure_ascii=True, sort_keys=True), encoding="utf-8")
    except OSError as exc:
        raise WriteError(f"Cannot write build lock {path}: {exc}") from exc


def build_state(posts: list[ParsedPost], posts_dir: Path) -> dict:
    entries = {}
    for post in posts:
        if post.source is None:
            continue
        entries[source_key(post.source, posts_dir)] = {"slug": post.metadata.slug}
    return {
        "version": LOCK_VERSION,
        "built_at": dt.datetime.now().replace(microsecond=0).isoformat(),
        "posts": entries,
    }


def orphaned_pages(previous: dict, current: dict, output_dir: Path) -> list[Path]:
    """Pages written by an earlier build whose source was removed or now uses a different slug."""
    live_slugs = {info.get("slug") for info in current.get("posts", {}).values()}
    orphans = set()
    for key, info in previous.get("posts", {}).items():
        slug = info.get("slug")
        if not slug or slug in live_slugs:
            continue
        current_info = current.get("posts", {}).get(key)
        if current_info is None or current_info.get("slug") != slug:
            orphans.add(slug)
    return [output_dir / f"{slug}.html" for slug in sorted(orphans)]


def prune_pages(paths: list[Path]) -> int:
    removed = 0
    for path in paths:
        try:
            path.unlink()
        except FileNotFoundError:
            continue
        except OSError as exc:
            logger.warning("Could not remove stale page %s: %s", path, exc)
            continue
        logger.info("Removed stale page: %s", path)
        removed += 1
    return removed
