from __future__ import annotations

import re
from pathlib import Path

from .errors import ReadError, WriteError

PLACEHOLDER_RE = re.compile(r"\{\{(\w+)\}\}")

POST_TEMPLATE = """<!DOCTYPE html>
<html lang="en">
<head>
    <meta charset="UTF-8">
    <meta name="viewport" content="width=device-width, initial-scale=1.0">
    <title>{{title}} - {{site_name}}</title>
    <meta name="description" content="{{excerpt}}">
    <meta name="author" content="{{author}}">
    <meta property="og:title" content="{{title}}">
    <meta property="og:description" content="{{excerpt}}">
    <meta property="og:type" content="article">
    <meta property="og:url" content="{{site_url}}/blog/{{slug}}.html">
    <meta name="twitter:card" content="summary_large_image">
    <meta name="twitter:title" content="{{title}}">
    <meta name="twitter:description" content="{{excerpt}}">
    <link rel="stylesheet" href="../css/styles.css">
    <link rel="stylesheet" href="../css/codehilite.css">
</head>
<body>
    <nav class="nav">
        <div class="nav-container">
            <div class="nav-links">
                <a href="../index.html" class="nav-link">Home</a>
                <a href="../blog.html" class="nav-link active">Blog</a>
            </div>
            <button class="theme-toggle" type="button" aria-label="Toggle theme">
                <span id="theme-icon">&#127769;</span>
            </button>
        </div>
    </nav>

    <main class="blog-content">
        <a href="../blog.html" class="back-link">&larr; Back to Blog</a>

        <header class="blog-header">
            <h1 class="blog-title">{{title}}</h1>
            <div class="blog-meta">
                <span class="blog-date">{{date}}</span>
                <span>&bull;</span>
                <span class="blog-category">{{category}}</span>
                <span>&bull;</span>
                <span class="blog-read-time">{{read_time}} min read</span>
            </div>
        </header>

        <article class="blog-article">
            {{content}}
        </article>
    </main>

    <script src="../js/main.js"></script>
</body>
</html>
"""


def render_template(template: str, **context: str) -> str:
    # Single pass: substituted values are never rescanned for placeholders.
    return PLACEHOLDER_RE.sub(lambda m: context.get(m.group(1), m.group(0)), template)


def read_template(path: Path) -> str:
    try:
        return path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        raise ReadError(f"Cannot read template {path}: {exc}") from exc


def ensure_dir(path: Path) -> None:
    try:
        path.mkdir(parents=True, exist_ok=True)
    except OSError as exc:
        raise WriteError(f"Cannot create directory {path}: {exc}") from exc


def write_text(path: Path, text: str) -> None:
    ensure_dir(path.parent)
    try:
        path.write_text(text, encoding="utf-8")
    except OSError as exc:
        raise WriteError(f"Cannot write {path}: {exc}") from exc
