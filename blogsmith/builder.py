from __future__ import annotations

import logging
import os
import threading
from concurrent.futures import Future, ThreadPoolExecutor
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from .config import SiteConfig
from .content import Post, PostStore
from .errors import BuildError
from .highlight import Highlighter
from .markdown_render import MarkdownRenderer
from .pages import PageRenderer
from .paginate import paginate, page_path_from_pattern
from .render import clean_output_dir, copy_assets, write_text

logger = logging.getLogger(__name__)

MAX_WORKERS = 32


@dataclass
class BuildResult:
    posts_written: list[Path] = field(default_factory=list)
    posts_failed: list[Path] = field(default_factory=list)
    posts_skipped: list[Path] = field(default_factory=list)
    pages_written: list[Path] = field(default_factory=list)


def resolve_workers(value: int) -> int:
    if value <= 0:
        value = os.cpu_count() or 1
    return max(1, min(value, MAX_WORKERS))


def output_path(output_dir: Path, url_path: str) -> Path:
    """Map a site URL to its ``index.html`` under ``output_dir``.

    Raises ``BuildError`` when the URL would land outside the output root,
    e.g. a title made of ``..`` segments.
    """
    relative = url_path.strip("/")
    target = output_dir / relative / "index.html" if relative else output_dir / "index.html"
    if not target.resolve().is_relative_to(output_dir.resolve()):
        raise BuildError(f"Refusing to write {url_path!r} outside {output_dir}")
    return target


def render_post_pages(
    store: PostStore,
    pages: PageRenderer,
    output_dir: Path,
    workers: int,
) -> tuple[list[Post], list[Path]]:
    """Render every post on a bounded pool and wait for all of them.

    Submissions block once ``workers`` tasks are outstanding, so the queue
    never grows past the pool size. Returns the posts that were written and
    the sources that failed.
    """
    slots = threading.BoundedSemaphore(workers)
    futures: list[tuple[Post, Future]] = []

    def render_one(post: Post) -> Path:
        target = output_path(output_dir, post.permalink)
        logger.info("Generating %s", target)
        write_text(target, pages.render_post(post, store.render(post)))
        return target

    with ThreadPoolExecutor(max_workers=workers) as executor:
        for post in store.posts:
            slots.acquire()
            future = executor.submit(render_one, post)
            future.add_done_callback(lambda _: slots.release())
            futures.append((post, future))

    written: list[Post] = []
    failed: list[Path] = []
    for post, future in futures:
        exc = future.exception()
        if exc is not None:
            logger.error("Failed to render %s: %s", post.source, exc)
            failed.append(post.source)
        else:
            written.append(post)
    return written, failed


def build_site(
    config: SiteConfig,
    highlighter: Optional[Highlighter] = None,
    project_root: Optional[Path] = None,
) -> BuildResult:
    output_dir = config.output
    workers = resolve_workers(config.workers)
    result = BuildResult()

    logger.info("Clearing output directory %s...", output_dir)
    clean_output_dir(output_dir, project_root or Path.cwd())

    highlighter = highlighter or Highlighter(config.highlight_theme)
    store = PostStore(config, MarkdownRenderer(highlighter), workers=workers)
    page_renderer = PageRenderer(config, minify=config.minify)

    logger.info("Reading posts from %s...", config.posts)
    store.discover()
    result.posts_skipped = list(store.skipped)

    logger.info("Processing %d posts with %d workers...", len(store.posts), workers)
    written, failed = render_post_pages(store, page_renderer, output_dir, workers)
    result.posts_failed = failed
    result.posts_written = [output_path(output_dir, post.permalink) for post in written]

    # Listings only include posts whose page made it to disk.
    summaries = [post.summary() for post in written]

    logger.info("Processing index pages...")
    page_path = page_path_from_pattern(config.paginate_path)
    for page in paginate(summaries, config.paginate, page_path):
        target = output_path(output_dir, "/" if page.is_first else page_path(page.number))
        logger.info("Generating %s", target)
        write_text(target, page_renderer.render_listing(page))
        result.pages_written.append(target)

    logger.info("Processing archive page...")
    archive_target = output_path(output_dir, "/archive")
    write_text(archive_target, page_renderer.render_archive(summaries))
    result.pages_written.append(archive_target)

    logger.info("Moving assets to %s/assets...", output_dir)
    write_text(output_dir / "assets" / "css" / "highlight.css", highlighter.stylesheet())
    copy_assets(config.assets, output_dir / "assets")

    logger.info(
        "Done: %d posts written, %d failed, %d skipped.",
        len(result.posts_written),
        len(result.posts_failed),
        len(result.posts_skipped),
    )
    return result
