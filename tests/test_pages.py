"""Tests for page rendering and blog index regeneration."""

import logging

import pytest
from bs4 import BeautifulSoup

from conftest import INDEX_HTML, make_post
from postgen.errors import IndexUpdateWarning, WriteError
from postgen.pages import (
    build_post_summaries,
    rebuild_index,
    render_post,
    sort_posts,
    update_index_file,
    write_post,
)
from postgen.render import render_template


class TestRenderTemplate:
    def test_every_occurrence_is_replaced(self):
        output = render_template("{{title}} / {{title}} / {{slug}}", title="T", slug="s")
        assert output == "T / T / s"

    def test_content_is_not_rescanned(self):
        output = render_template("<h1>{{title}}</h1>{{content}}", title="T", content="<p>{{title}}</p>")
        assert output == "<h1>T</h1><p>{{title}}</p>"

    def test_substituted_values_are_not_expanded(self):
        output = render_template("{{title}}|{{date}}", title="Why {{date}} matters", date="May 1, 2024")
        assert output == "Why {{date}} matters|May 1, 2024"

    def test_unknown_placeholders_are_left_alone(self):
        assert render_template("{{title}} {{missing}}", title="T") == "T {{missing}}"


class TestRenderPost:
    def test_metadata_round_trips(self):
        post = make_post("Cats & <Dogs>", date="March 3, 2024", category="Pets & Life")
        soup = BeautifulSoup(render_post(post), "html.parser")
        assert soup.select_one(".blog-title").get_text() == "Cats & <Dogs>"
        assert soup.select_one(".blog-date").get_text() == "March 3, 2024"
        assert soup.select_one(".blog-category").get_text() == "Pets & Life"

    def test_placeholder_text_in_title_round_trips(self):
        post = make_post("Why {{date}} matters", date="March 3, 2024", category="{{content}}")
        soup = BeautifulSoup(render_post(post), "html.parser")
        assert soup.select_one(".blog-title").get_text() == "Why {{date}} matters"
        assert soup.select_one(".blog-date").get_text() == "March 3, 2024"
        assert soup.select_one(".blog-category").get_text() == "{{content}}"

    def test_all_placeholders_are_filled(self):
        post = make_post("Hello World")
        html = render_post(post, site_name="Site", author="Me", site_url="https://example.com/")
        assert "{{" not in html
        assert "<title>Hello World - Site</title>" in html
        assert 'content="https://example.com/blog/hello-world.html"' in html
        assert "1 min read" in html
        assert "<p>Hello World body</p>" in html

    def test_custom_template(self):
        post = make_post("Custom")
        assert render_post(post, template="[{{slug}}|{{read_time}}]") == "[custom|1]"


class TestWritePost:
    def test_writes_slug_named_file(self, tmp_path):
        post = make_post("Hello World")
        path = write_post(post, tmp_path / "blog")
        assert path == tmp_path / "blog" / "hello-world.html"
        assert "Hello World" in path.read_text(encoding="utf-8")

    def test_unwritable_output_raises_write_error(self, tmp_path):
        blocker = tmp_path / "blog"
        blocker.write_text("not a directory", encoding="utf-8")
        with pytest.raises(WriteError):
            write_post(make_post("Hello"), blocker)


class TestSortPosts:
    def test_newest_first_with_undated_last(self):
        posts = [
            make_post("Old", date="March 1, 2023"),
            make_post("Undated", date="someday"),
            make_post("Newest", date="2024-03-05"),
            make_post("Middle", date="January 1, 2024"),
        ]
        assert [p.metadata.title for p in sort_posts(posts)] == ["Newest", "Middle", "Old", "Undated"]

    def test_ties_keep_input_order(self):
        posts = [make_post(name, date="May 1, 2024") for name in ("B", "A", "C")]
        assert [p.metadata.title for p in sort_posts(posts)] == ["B", "A", "C"]

    def test_input_is_not_mutated(self):
        posts = [make_post("Old", date="2020-01-01"), make_post("New", date="2024-01-01")]
        sort_posts(posts)
        assert [p.metadata.title for p in posts] == ["Old", "New"]


class TestRebuildIndex:
    def test_replaces_only_container_content(self):
        result = rebuild_index([make_post("Fresh Post")], INDEX_HTML)
        opening = '<div class="blog-posts">'
        prefix = INDEX_HTML[: INDEX_HTML.index(opening) + len(opening)]
        suffix = INDEX_HTML[INDEX_HTML.index("</div>\n    </div>\n    <footer>") :]
        assert result.startswith(prefix)
        assert result.endswith(suffix)
        assert "Old post" not in result
        assert "stale" not in result
        assert '<a href="blog/fresh-post.html">Fresh Post</a>' in result
        assert "keep me" in result

    def test_summaries_are_sorted_and_separated(self):
        posts = [make_post("Older", date="2023-01-01"), make_post("Newer", date="2024-01-01")]
        result = rebuild_index(posts, INDEX_HTML)
        assert result.index("Newer") < result.index("Older")
        assert "</article>\n\n<article" in result

    def test_is_idempotent(self):
        posts = [
            make_post("One", date="2024-01-01"),
            make_post("Two", date="2024-02-01"),
            make_post("Three", date="2023-06-01"),
        ]
        first = rebuild_index(posts, INDEX_HTML)
        second = rebuild_index(posts, first)
        assert first == second

    def test_escapes_summary_text(self):
        result = rebuild_index([make_post("A <b>bold</b> claim", slug="claim")], INDEX_HTML)
        assert "A &lt;b&gt;bold&lt;/b&gt; claim" in result

    def test_custom_selector_and_link_root(self):
        document = '<main><section id="posts" data-list>old</section></main>'
        result = rebuild_index([make_post("Hi")], document, selector="#posts", link_root="posts/out")
        assert result.startswith('<main><section id="posts" data-list>\n<article')
        assert result.endswith("</article>\n</section></main>")
        assert 'href="posts/out/hi.html"' in result

    def test_closing_tag_inside_script_is_not_container_end(self):
        document = '<div class="blog-posts"><script>var s = "</div>";</script><p>old</p></div><p>after</p>'
        result = rebuild_index([make_post("Hi")], document)
        assert result.startswith('<div class="blog-posts">\n<article')
        assert result.endswith("</article>\n</div><p>after</p>")
        assert "<p>old</p>" not in result
        assert "<script>" not in result

    def test_nested_and_commented_tags_keep_depth(self):
        document = (
            '<div class="blog-posts"><!-- <div> --><div class="card"><div/></div>'
            "<style>div::after { content: '</div>'; }</style></div><footer>end</footer>"
        )
        result = rebuild_index([make_post("Hi")], document)
        assert result.endswith("</article>\n</div><footer>end</footer>")
        assert "card" not in result

    def test_self_closing_container_raises_warning(self):
        with pytest.raises(IndexUpdateWarning):
            rebuild_index([make_post("Hi")], '<main><div class="blog-posts"/></main>')

    def test_missing_container_raises_warning(self):
        with pytest.raises(IndexUpdateWarning):
            rebuild_index([make_post("Hi")], "<html><body><p>No list</p></body></html>")

    def test_ambiguous_container_raises_warning(self):
        document = '<div class="blog-posts"></div><div class="blog-posts"></div>'
        with pytest.raises(IndexUpdateWarning):
            rebuild_index([make_post("Hi")], document)

    def test_summaries_include_read_more_link(self):
        html = build_post_summaries([make_post("Hello World")])
        assert 'class="read-more"' in html
        assert html.count('href="blog/hello-world.html"') == 2


class TestUpdateIndexFile:
    def test_rewrites_index_in_place(self, tmp_path):
        index = tmp_path / "blog.html"
        index.write_text(INDEX_HTML, encoding="utf-8")
        assert update_index_file([make_post("Fresh")], index) is True
        assert "Fresh" in index.read_text(encoding="utf-8")

    def test_missing_index_is_skipped_with_warning(self, tmp_path, caplog):
        caplog.set_level(logging.INFO, logger="postgen")
        assert update_index_file([make_post("Fresh")], tmp_path / "blog.html") is False
        assert any(r.levelno == logging.WARNING and "skipping index update" in r.getMessage() for r in caplog.records)

    def test_missing_container_leaves_file_untouched(self, tmp_path, caplog):
        caplog.set_level(logging.INFO, logger="postgen")
        index = tmp_path / "blog.html"
        index.write_text("<html><body>No list here</body></html>", encoding="utf-8")
        assert update_index_file([make_post("Fresh")], index) is False
        assert index.read_text(encoding="utf-8") == "<html><body>No list here</body></html>"
        assert any(r.levelno == logging.WARNING for r in caplog.records)
