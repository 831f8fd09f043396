import datetime as dt
import logging
from pathlib import Path

import pytest

from postgen.config import Settings
from postgen.content import ParsedPost, PostMetadata, parse_sort_date
from postgen.log import logger

INDEX_HTML = """<!DOCTYPE html>
<html lang="en">
<head>
    <title>Blog</title>
</head>
<body>
    <div class="container">
        <h1>Blog</h1>
        <div class="blog-posts">
            <article class="blog-post"><h2>Old post</h2></article>
            <div class="nested"><p>stale</p></div>
        </div>
    </div>
    <footer><div class="blog-posts-footer">keep me</div></footer>
</body>
</html>
"""


@pytest.fixture(autouse=True)
def _development_env(monkeypatch):
    monkeypatch.delenv("POSTGEN_ENV", raising=False)
    yield
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
    logger.setLevel(logging.NOTSET)


@pytest.fixture
def site(tmp_path, monkeypatch) -> Path:
    """A site root with an empty posts directory and a blog index page."""
    monkeypatch.chdir(tmp_path)
    (tmp_path / "posts").mkdir()
    (tmp_path / "blog.html").write_text(INDEX_HTML, encoding="utf-8")
    return tmp_path


@pytest.fixture
def settings(site) -> Settings:
    return Settings(
        posts_dir=site / "posts",
        output_dir=site / "blog",
        index_path=site / "blog.html",
        site_name="Test Site",
        author="Tester",
        site_url="https://example.com",
        lock_path=site / "build.lock.json",
    )


def write_markdown(directory: Path, name: str, title: str = "", date: str = "", body: str = "Some body text.") -> Path:
    lines = ["---"]
    if title:
        lines.append(f'title: "{title}"')
    if date:
        lines.append(f"date: {date}")
    lines.append("category: Testing")
    lines.append("---")
    lines.append("")
    lines.append(body)
    path = directory / name
    path.write_text("\n".join(lines) + "\n", encoding="utf-8")
    return path


def make_post(title: str, date: str = "January 1, 2024", slug: str = "", category: str = "General") -> ParsedPost:
    metadata = PostMetadata(
        title=title,
        date=date,
        category=category,
        excerpt=f"About {title}",
        slug=slug or title.lower().replace(" ", "-"),
        published=parse_sort_date(date),
    )
    return ParsedPost(metadata=metadata, html=f"<p>{title} body</p>", read_time=1)


TODAY = dt.date(2024, 1, 5)
