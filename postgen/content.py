from __future__ import annotations

import datetime as dt
import math
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from dateutil import parser as date_parser

from .errors import ReadError, ValidationError
from .markup import render_markdown, sanitize_html

DEFAULT_CATEGORY = "General"
EXCERPT_LENGTH = 200
WORDS_PER_MINUTE = 200
ELLIPSIS = "..."
UNTITLED = "Untitled Post"
FENCE_MARKERS = ("```", "~~~")

SLUG_RE = re.compile(r"[^a-z0-9]+")
EXCERPT_STRIP_RE = re.compile(r"[#*`]")


@dataclass(frozen=True)
class PostMetadata:
    title: str
    date: str
    category: str
    excerpt: str
    slug: str
    published: Optional[dt.date] = None


@dataclass(frozen=True)
class ParsedPost:
    metadata: PostMetadata
    html: str
    read_time: int
    source: Optional[Path] = None


def slugify(text: str) -> str:
    text = SLUG_RE.sub("-", text.lower())
    return text.strip("-")


def strip_quotes(value: str) -> str:
    if len(value) >= 2 and value.startswith('"') and value.endswith('"'):
        return value[1:-1]
    return value


def parse_front_matter(text: str) -> tuple[Optional[dict], str]:
    clean_text = text.lstrip("\ufeff")
    lines = clean_text.splitlines()
    if not lines or lines[0].strip() != "---":
        return None, clean_text

    end = None
    for i in range(1, len(lines)):
        if lines[i].strip() == "---":
            end = i
            break
    if end is None:
        return None, clean_text

    meta = {}
    for line in lines[1:end]:
        line = line.strip()
        if not line or line.startswith("#") or ":" not in line:
            continue
        key, value = line.split(":", 1)
        meta[key.strip().lower()] = strip_quotes(value.strip())
    body = "\n".join(lines[end + 1 :])
    return meta, body


def extract_title(body: str, fallback: str = "") -> tuple[str, str]:
    """Title for a post without front matter: first ``# `` heading, then *fallback*."""
    lines = body.splitlines()
    leading = True
    in_fence = False
    for i, line in enumerate(lines):
        stripped = line.strip()
        if stripped.startswith(FENCE_MARKERS):
            in_fence = not in_fence
        elif not in_fence and stripped.startswith("# "):
            title = stripped[2:].strip()
            if title:
                if leading:
                    # The page template already renders the title as <h1>.
                    body = "\n".join(lines[i + 1 :]).lstrip("\n")
                return title, body
        if stripped:
            leading = False
    return fallback.strip() or UNTITLED, body


def generate_excerpt(body: str, length: int = EXCERPT_LENGTH) -> str:
    plain = EXCERPT_STRIP_RE.sub("", body)
    if len(plain) >= length:
        return plain[:length] + ELLIPSIS
    return plain


def count_words(text: str) -> int:
    return len(text.split())


def calculate_read_time(body: str, words_per_minute: int = WORDS_PER_MINUTE) -> int:
    words_per_minute = max(1, words_per_minute)
    return max(1, math.ceil(count_words(body) / words_per_minute))


def format_display_date(value: dt.date) -> str:
    return f"{value:%B} {value.day}, {value.year}"


def parse_sort_date(value: str) -> Optional[dt.date]:
    value = (value or "").strip()
    if not value:
        return None
    try:
        return date_parser.parse(value).date()
    except (ValueError, OverflowError):
        return None


def normalize_metadata(
    meta: dict,
    body: str,
    fallback_slug: str = "",
    excerpt_length: int = EXCERPT_LENGTH,
    today: Optional[dt.date] = None,
) -> PostMetadata:
    title = (meta.get("title") or "").strip()
    if not title:
        raise ValidationError("Missing required field: title")

    date_value = (meta.get("date") or "").strip()
    if not date_value:
        date_value = format_display_date(today or dt.date.today())

    explicit_slug = (meta.get("slug") or "").strip()
    slug = slugify(explicit_slug or title)
    if not slug:
        slug = slugify(fallback_slug)
    if not slug:
        raise ValidationError(f"Cannot derive a slug from title {title!r}")

    return PostMetadata(
        title=title,
        date=date_value,
        category=(meta.get("category") or "").strip() or DEFAULT_CATEGORY,
        excerpt=meta.get("excerpt") or generate_excerpt(body, excerpt_length),
        slug=slug,
        published=parse_sort_date(date_value),
    )


def parse_post(
    text: str,
    source: Optional[Path] = None,
    words_per_minute: int = WORDS_PER_MINUTE,
    excerpt_length: int = EXCERPT_LENGTH,
) -> ParsedPost:
    meta, body = parse_front_matter(text)
    fallback_slug = source.stem if source is not None else ""
    if meta is None:
        title, body = extract_title(body, fallback_slug)
        meta = {"title": title}
    metadata = normalize_metadata(meta, body, fallback_slug, excerpt_length)
    return ParsedPost(
        metadata=metadata,
        html=sanitize_html(render_markdown(body)),
        read_time=calculate_read_time(body, words_per_minute),
        source=source,
    )


def load_post(
    path: Path,
    words_per_minute: int = WORDS_PER_MINUTE,
    excerpt_length: int = EXCERPT_LENGTH,
) -> ParsedPost:
    try:
        text = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        raise ReadError(f"Cannot read {path}: {exc}") from exc
    return parse_post(text, path, words_per_minute, excerpt_length)
