from __future__ import annotations

import datetime as dt
import html
import re
from html.parser import HTMLParser
from pathlib import Path
from typing import Optional

from bs4 import BeautifulSoup

from .content import ParsedPost
from .errors import IndexUpdateWarning, ReadError, WriteError
from .log import logger, success
from .render import POST_TEMPLATE, render_template, write_text

INDEX_SELECTOR = "div.blog-posts"


def render_post(
    post: ParsedPost,
    template: str = POST_TEMPLATE,
    site_name: str = "",
    author: str = "",
    site_url: str = "",
) -> str:
    meta = post.metadata
    return render_template(
        template,
        title=html.escape(meta.title),
        excerpt=html.escape(meta.excerpt),
        date=html.escape(meta.date),
        category=html.escape(meta.category),
        slug=meta.slug,
        read_time=str(post.read_time),
        site_name=html.escape(site_name),
        author=html.escape(author),
        site_url=html.escape(site_url.rstrip("/")),
        content=post.html,
    )


def write_post(
    post: ParsedPost,
    output_dir: Path,
    template: str = POST_TEMPLATE,
    site_name: str = "",
    author: str = "",
    site_url: str = "",
) -> Path:
    output_path = output_dir / f"{post.metadata.slug}.html"
    html_doc = render_post(post, template, site_name=site_name, author=author, site_url=site_url)
    write_text(output_path, html_doc)
    success("Generated: %s", output_path)
    return output_path


def sort_posts(posts: list[ParsedPost]) -> list[ParsedPost]:
    def key(post: ParsedPost) -> tuple[bool, dt.date]:
        published = post.metadata.published
        return published is not None, published or dt.date.min

    return sorted(posts, key=key, reverse=True)


def build_post_summary(post: ParsedPost, link_root: str = "blog") -> str:
    meta = post.metadata
    url = f"{link_root}/{meta.slug}.html" if link_root else f"{meta.slug}.html"
    return (
        '<article class="blog-post">\n'
        f'    <h2><a href="{html.escape(url)}">{html.escape(meta.title)}</a></h2>\n'
        '    <div class="blog-meta">\n'
        f'        <span class="blog-date">{html.escape(meta.date)}</span>\n'
        f'        <span class="blog-category">{html.escape(meta.category)}</span>\n'
        "    </div>\n"
        '    <div class="blog-excerpt">\n'
        f"        {html.escape(meta.excerpt.strip())}\n"
        "    </div>\n"
        f'    <a href="{html.escape(url)}" class="read-more">Read more &rarr;</a>\n'
        "</article>"
    )


def build_post_summaries(posts: list[ParsedPost], link_root: str = "blog") -> str:
    return "\n\n".join(build_post_summary(post, link_root) for post in posts)


def line_offsets(text: str) -> list[int]:
    offsets = [0]
    for match in re.finditer("\n", text):
        offsets.append(match.end())
    return offsets


class ContainerBounds(HTMLParser):
    """Finds the inner-content offsets of the element whose start tag begins at *start*.

    ``script`` and ``style`` bodies are raw text to the parser, so tag-like
    strings inside them do not affect nesting depth.
    """

    def __init__(self, document: str, start: int):
        super().__init__(convert_charrefs=False)
        self.offsets = line_offsets(document)
        self.start = start
        self.name: Optional[str] = None
        self.depth = 0
        self.inner_start: Optional[int] = None
        self.inner_end: Optional[int] = None
        self.self_closing = False

    def position(self) -> int:
        line, column = self.getpos()
        return self.offsets[line - 1] + column

    def handle_starttag(self, tag, attrs):
        if self.inner_end is not None:
            return
        if self.name is None:
            if self.position() == self.start:
                self.name = tag
                self.depth = 1
                self.inner_start = self.start + len(self.get_starttag_text())
        elif tag == self.name:
            self.depth += 1

    def handle_startendtag(self, tag, attrs):
        if self.name is None and self.position() == self.start:
            self.self_closing = True

    def handle_endtag(self, tag):
        if self.name is None or self.inner_end is not None or tag != self.name:
            return
        self.depth -= 1
        if self.depth == 0:
            self.inner_end = self.position()


def locate_container(document: str, selector: str = INDEX_SELECTOR) -> tuple[int, int]:
    """Return the (start, end) offsets of the inner content of the element matching selector."""
    soup = BeautifulSoup(document, "html.parser")
    matches = soup.select(selector)
    if not matches:
        raise IndexUpdateWarning(f"No element matches {selector!r} in the index document")
    if len(matches) > 1:
        raise IndexUpdateWarning(f"{len(matches)} elements match {selector!r}; expected exactly one")
    container = matches[0]
    if container.sourceline is None or container.sourcepos is None:
        raise IndexUpdateWarning("Parser did not record the container position")

    start = line_offsets(document)[container.sourceline - 1] + container.sourcepos
    bounds = ContainerBounds(document, start)
    bounds.feed(document)
    bounds.close()
    if bounds.self_closing:
        raise IndexUpdateWarning(f"Container {selector!r} is self-closing")
    if bounds.inner_start is None:
        raise IndexUpdateWarning(f"Cannot read the opening tag of {selector!r}")
    if bounds.inner_end is None:
        raise IndexUpdateWarning(f"No closing </{bounds.name}> found for the post list container")
    return bounds.inner_start, bounds.inner_end


def rebuild_index(
    posts: list[ParsedPost],
    index_document: str,
    selector: str = INDEX_SELECTOR,
    link_root: str = "blog",
) -> str:
    inner_start, inner_end = locate_container(index_document, selector)
    summaries = build_post_summaries(sort_posts(posts), link_root)
    inner = f"\n{summaries}\n" if summaries else "\n"
    return index_document[:inner_start] + inner + index_document[inner_end:]


def read_index(index_path: Path) -> str:
    try:
        return index_path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        raise ReadError(f"Cannot read index {index_path}: {exc}") from exc


def update_index_file(
    posts: list[ParsedPost],
    index_path: Path,
    selector: str = INDEX_SELECTOR,
    link_root: str = "blog",
) -> bool:
    try:
        document = read_index(index_path)
    except ReadError as exc:
        logger.warning("%s; skipping index update", exc)
        return False

    try:
        updated = rebuild_index(posts, document, selector, link_root)
    except IndexUpdateWarning as exc:
        logger.warning("Skipping index update: %s", exc)
        return False

    if updated == document:
        logger.info("Blog index already up to date")
        return True
    try:
        write_text(index_path, updated)
    except WriteError as exc:
        logger.error("Failed to update blog index: %s", exc)
        return False
    success("Updated blog index: %s", index_path)
    return True
