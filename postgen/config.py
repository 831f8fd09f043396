from __future__ import annotations

import json
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

import yaml

from .errors import ConfigError

try:
    import tomllib as toml
except ImportError:
    import tomli as toml


def parse_bool(value: object) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)):
        return value != 0
    if isinstance(value, str):
        return value.strip().lower() in {"1", "true", "yes", "on"}
    return False


def parse_int(value: object, default: int) -> int:
    if value is None or isinstance(value, bool):
        return default
    try:
        return int(str(value).strip())
    except ValueError:
        return default


@dataclass(frozen=True)
class Settings:
    posts_dir: Path
    output_dir: Path
    index_path: Path
    index_selector: str = "div.blog-posts"
    template_path: Optional[Path] = None
    site_name: str = ""
    author: str = ""
    site_url: str = ""
    words_per_minute: int = 200
    excerpt_length: int = 200
    lock_path: Optional[Path] = None
    prune: bool = True

    @classmethod
    def from_args(cls, args: object) -> "Settings":
        base = Path.cwd()

        def resolve(value: object) -> Path:
            path = Path(str(value))
            return path if path.is_absolute() else base / path

        template_value = (getattr(args, "template", "") or "").strip()
        lock_value = (getattr(args, "lock_file", "") or "").strip()
        return cls(
            posts_dir=resolve(getattr(args, "posts", "posts")),
            output_dir=resolve(getattr(args, "output", "blog")),
            index_path=resolve(getattr(args, "index", "blog.html")),
            index_selector=getattr(args, "index_selector", "div.blog-posts") or "div.blog-posts",
            template_path=resolve(template_value) if template_value else None,
            site_name=getattr(args, "site_name", "") or "",
            author=getattr(args, "author", "") or "",
            site_url=getattr(args, "site_url", "") or "",
            words_per_minute=max(1, parse_int(getattr(args, "words_per_minute", 200), 200)),
            excerpt_length=max(1, parse_int(getattr(args, "excerpt_length", 200), 200)),
            lock_path=resolve(lock_value) if lock_value else None,
            prune=parse_bool(getattr(args, "prune", True)),
        )

    @property
    def link_root(self) -> str:
        try:
            return self.output_dir.relative_to(self.index_path.parent).as_posix()
        except ValueError:
            return self.output_dir.name


def load_config(path: Path) -> dict:
    if not path.exists():
        return {}
    suffix = path.suffix.lower()
    try:
        text = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        raise ConfigError(f"Cannot read config file {path}: {exc}") from exc
    if suffix == ".toml":
        try:
            data = toml.loads(text)
        except toml.TOMLDecodeError as exc:
            raise ConfigError(f"Invalid TOML in config file {path}: {exc}") from exc
    elif suffix in {".yml", ".yaml"}:
        try:
            data = yaml.safe_load(text)
        except yaml.YAMLError as exc:
            raise ConfigError(f"Invalid YAML in config file {path}: {exc}") from exc
        if data is None:
            return {}
    else:
        try:
            data = json.loads(text)
        except json.JSONDecodeError as exc:
            raise ConfigError(f"Invalid JSON in config file {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise ConfigError(f"Config must be a mapping: {path}")
    return data
