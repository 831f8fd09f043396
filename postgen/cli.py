from __future__ import annotations

import argparse
import sys
import time
from pathlib import Path
from typing import Optional

from .cache import build_state, load_lock, orphaned_pages, prune_pages, source_key, write_lock
from .config import Settings, load_config, parse_bool, parse_int
from .content import ParsedPost, load_post
from .errors import PostgenError
from .log import logger, setup_logger, success
from .pages import update_index_file, write_post
from .render import POST_TEMPLATE, ensure_dir, read_template


def load_template(settings: Settings) -> str:
    if settings.template_path is None:
        return POST_TEMPLATE
    return read_template(settings.template_path)


def generate_post(path: Path, settings: Settings, template: str) -> ParsedPost:
    post = load_post(path, settings.words_per_minute, settings.excerpt_length)
    write_post(
        post,
        settings.output_dir,
        template,
        site_name=settings.site_name,
        author=settings.author,
        site_url=settings.site_url,
    )
    return post


def generate_single(path: Path, settings: Settings) -> ParsedPost:
    ensure_dir(settings.output_dir)
    return generate_post(path, settings, load_template(settings))


def generate_all(settings: Settings) -> list[ParsedPost]:
    posts_dir = settings.posts_dir
    if not posts_dir.is_dir():
        raise PostgenError(f"Posts directory not found: {posts_dir}")
    ensure_dir(settings.output_dir)
    template = load_template(settings)

    markdown_files = sorted(posts_dir.glob("*.md"), key=lambda p: p.name)
    if not markdown_files:
        logger.warning("No markdown files found in %s", posts_dir)
        return []
    logger.info("Found %d markdown files to process", len(markdown_files))

    posts = []
    failed = []
    for md_file in markdown_files:
        try:
            posts.append(generate_post(md_file, settings, template))
        except PostgenError as exc:
            logger.error("Skipping %s due to error: %s", md_file.name, exc)
            failed.append(md_file)

    if posts:
        update_index_file(posts, settings.index_path, settings.index_selector, settings.link_root)
        success("Successfully generated %d blog posts", len(posts))
    if settings.lock_path is not None:
        update_lock(posts, failed, settings)
    return posts


def update_lock(posts: list[ParsedPost], failed: list[Path], settings: Settings) -> None:
    previous = load_lock(settings.lock_path)
    current = build_state(posts, settings.posts_dir)
    # Failed sources keep their last good page until they parse again.
    for path in failed:
        key = source_key(path, settings.posts_dir)
        if key in previous.get("posts", {}):
            current["posts"][key] = previous["posts"][key]
    if previous and settings.prune:
        prune_pages(orphaned_pages(previous, current, settings.output_dir))
    try:
        write_lock(settings.lock_path, current)
    except PostgenError as exc:
        logger.warning("%s", exc)


def build_parser(config: dict, config_path: str) -> argparse.ArgumentParser:
    def cfg_str(key: str, default: str) -> str:
        value = config.get(key)
        return default if value is None else str(value)

    def cfg_int(key: str, default: int) -> int:
        return parse_int(config.get(key), default)

    def cfg_bool(key: str, default: bool) -> bool:
        value = config.get(key)
        return default if value is None else parse_bool(value)

    parser = argparse.ArgumentParser(
        prog="generate",
        description="Generate blog pages from Markdown posts.",
        epilog="Examples:\n  generate --all          # Generate all posts\n  generate <file.md>      # Generate single post",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("file", nargs="?", help="Markdown post to generate.")
    parser.add_argument("--all", action="store_true", help="Generate every post and rebuild the blog index.")
    parser.add_argument("--config", default=config_path, help="Path to site config file (TOML/YAML/JSON).")
    parser.add_argument("--posts", default=cfg_str("posts", "posts"), help="Directory containing Markdown posts.")
    parser.add_argument("--output", default=cfg_str("output", "blog"), help="Output directory for post pages.")
    parser.add_argument("--index", default=cfg_str("index", "blog.html"), help="Blog index page to update.")
    parser.add_argument(
        "--index-selector",
        default=cfg_str("index_selector", "div.blog-posts"),
        help="CSS selector of the post list container in the index page.",
    )
    parser.add_argument("--template", default=cfg_str("template", ""), help="Custom post template file.")
    parser.add_argument("--site-name", default=cfg_str("site_name", "Moses Omondi"), help="Site title.")
    parser.add_argument("--author", default=cfg_str("author", "Moses Omondi"), help="Author meta value.")
    parser.add_argument(
        "--site-url",
        default=cfg_str("site_url", "https://mosesomondi.dev"),
        help="Public site URL used in Open Graph tags.",
    )
    parser.add_argument(
        "--words-per-minute",
        default=cfg_int("words_per_minute", 200),
        type=int,
        help="Reading speed used for read time.",
    )
    parser.add_argument(
        "--excerpt-length",
        default=cfg_int("excerpt_length", 200),
        type=int,
        help="Characters kept in derived excerpts.",
    )
    parser.add_argument(
        "--lock-file",
        default=cfg_str("lock_file", "build.lock.json"),
        help="Path to build lock JSON (empty to disable).",
    )
    parser.add_argument(
        "--prune",
        action=argparse.BooleanOptionalAction,
        default=cfg_bool("prune", True),
        help="Remove pages whose source post was deleted or renamed.",
    )
    parser.add_argument("--log-level", default=cfg_str("log_level", "INFO"), help="Console log level.")
    return parser


def main(argv: Optional[list[str]] = None) -> None:
    pre_parser = argparse.ArgumentParser(add_help=False)
    pre_parser.add_argument("--config", default="site.toml")
    pre_args, _ = pre_parser.parse_known_args(argv)

    setup_logger()
    try:
        config = load_config(Path(pre_args.config))
    except PostgenError as exc:
        logger.error("%s", exc)
        sys.exit(1)

    parser = build_parser(config, pre_args.config)
    args = parser.parse_args(argv)
    setup_logger(args.log_level)

    if not args.all and not args.file:
        parser.print_help(sys.stdout)
        return

    settings = Settings.from_args(args)
    start = time.perf_counter()
    try:
        if args.all:
            generate_all(settings)
        else:
            generate_single(Path(args.file).resolve(), settings)
    except PostgenError as exc:
        logger.error("Failed to generate blog: %s", exc)
        sys.exit(1)
    logger.info("Build completed in %.2fs.", time.perf_counter() - start)


if __name__ == "__main__":
    main()
