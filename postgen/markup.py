from __future__ import annotations

import bleach
import markdown
from bs4 import BeautifulSoup

MARKDOWN_EXTENSIONS = ["fenced_code", "codehilite", "tables", "sane_lists", "nl2br"]
MARKDOWN_CONFIGS = {
    "codehilite": {
        "css_class": "codehilite",
        "guess_lang": True,
        "linenums": False,
    },
}

ALLOWED_TAGS = frozenset(
    {
        "address", "article", "aside", "footer", "header", "main", "nav", "section",
        "h1", "h2", "h3", "h4", "h5", "h6", "hgroup",
        "blockquote", "dd", "div", "dl", "dt", "figcaption", "figure", "hr",
        "li", "ol", "ul", "p", "pre", "br",
        "a", "abbr", "b", "bdi", "bdo", "cite", "code", "data", "dfn", "em", "i",
        "kbd", "mark", "q", "s", "samp", "small", "span", "strong", "sub", "sup",
        "time", "u", "var", "wbr",
        "caption", "col", "colgroup", "table", "tbody", "td", "tfoot", "th", "thead", "tr",
        "img", "iframe",
    }
)
ALLOWED_ATTRIBUTES = {
    "a": ["href", "name", "target", "title"],
    "img": ["src", "alt", "title", "width", "height"],
    "code": ["class"],
    "pre": ["class"],
    "span": ["class"],
    "div": ["class"],
    "iframe": ["src", "width", "height", "frameborder", "allowfullscreen"],
    "th": ["align"],
    "td": ["align"],
}
ALLOWED_PROTOCOLS = frozenset({"http", "https", "ftp", "mailto", "tel"})

# Removed with their content; bleach alone would keep the inner text.
DROP_TAGS = ["script", "style", "noscript", "template", "object", "embed"]


def render_markdown(body: str) -> str:
    md = markdown.Markdown(extensions=MARKDOWN_EXTENSIONS, extension_configs=MARKDOWN_CONFIGS)
    return md.convert(body)


def drop_unsafe_elements(html_text: str) -> str:
    soup = BeautifulSoup(html_text, "html.parser")
    found = soup.find_all(DROP_TAGS)
    if not found:
        return html_text
    for tag in found:
        tag.decompose()
    return str(soup)


def sanitize_html(html_text: str) -> str:
    return bleach.clean(
        drop_unsafe_elements(html_text),
        tags=ALLOWED_TAGS,
        attributes=ALLOWED_ATTRIBUTES,
        protocols=ALLOWED_PROTOCOLS,
        strip=True,
        strip_comments=True,
    )
