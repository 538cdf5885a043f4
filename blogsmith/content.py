from __future__ import annotations

import datetime as dt
import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Protocol

import yaml

from .cache import RenderCache
from .config import DEFAULT_PERMALINK, SiteConfig
from .errors import BuildError, ParseError
from .permalink import resolve

logger = logging.getLogger(__name__)

MARKDOWN_SUFFIXES = {".md", ".markdown"}


class BodyRenderer(Protocol):
    def render(self, body: str) -> str: ...

    async def render_async(self, body: str) -> str: ...


@dataclass(frozen=True)
class Post:
    source: Path
    title: str
    date: dt.datetime
    tags: tuple[str, ...] = ()
    description: str = ""
    body: str = ""
    permalink_pattern: str = DEFAULT_PERMALINK

    @property
    def permalink(self) -> str:
        return resolve(self.date, self.title, self.permalink_pattern)

    @property
    def display_date(self) -> str:
        return format_date(self.date)

    @property
    def publish_time(self) -> str:
        return self.date.isoformat()

    def summary(self) -> "PostSummary":
        return PostSummary(
            url=self.permalink,
            title=self.title,
            date=self.display_date,
            description=self.description,
        )


@dataclass(frozen=True)
class PostSummary:
    url: str
    title: str
    date: str
    description: str = ""


def format_date(value: dt.datetime) -> str:
    """Format as ``1 May 2023``."""
    return f"{value.day} {value.strftime('%b %Y')}"


def parse_front_matter(text: str) -> tuple[dict, str]:
    clean_text = text.lstrip("\ufeff")
    lines = clean_text.splitlines()
    if not lines or lines[0].strip() != "---":
        raise ParseError("missing front matter block")

    end = None
    for i in range(1, len(lines)):
        if lines[i].strip() == "---":
            end = i
            break
    if end is None:
        raise ParseError("front matter block is not closed")

    try:
        meta = yaml.safe_load("\n".join(lines[1:end]))
    except yaml.YAMLError as exc:
        raise ParseError(f"malformed front matter: {exc}") from exc
    if meta is None:
        meta = {}
    if not isinstance(meta, dict):
        raise ParseError("front matter must be a mapping")
    body = "\n".join(lines[end + 1 :])
    return meta, body


def parse_list(value: object) -> tuple[str, ...]:
    if value is None:
        return ()
    if isinstance(value, str):
        items = [item.strip() for item in value.split(",")]
    elif isinstance(value, (list, tuple)):
        items = [str(item).strip() for item in value]
    else:
        raise ParseError(f"tags must be a list of strings, got {type(value).__name__}")
    return tuple(item for item in items if item)


def parse_date(value: object, tz: dt.tzinfo) -> dt.datetime:
    if isinstance(value, dt.datetime):
        parsed = value
    elif isinstance(value, dt.date):
        parsed = dt.datetime.combine(value, dt.time())
    elif isinstance(value, str):
        try:
            parsed = dt.datetime.fromisoformat(value.strip())
        except ValueError:
            raise ParseError(f"invalid date: {value!r}") from None
    else:
        raise ParseError(f"invalid date: {value!r}")
    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=tz)
    return parsed.astimezone(tz)


def parse_post(path: Path, tz: dt.tzinfo = dt.timezone.utc, permalink: str = DEFAULT_PERMALINK) -> Post:
    try:
        meta, body = parse_front_matter(path.read_text(encoding="utf-8"))
    except ParseError as exc:
        raise ParseError(str(exc), path) from exc

    try:
        title = meta.get("title")
        if title is None or not str(title).strip():
            raise ParseError("missing required field 'title'")
        if meta.get("date") is None:
            raise ParseError("missing required field 'date'")
        date = parse_date(meta["date"], tz)
        tags = parse_list(meta.get("tags"))
    except ParseError as exc:
        raise ParseError(str(exc), path) from exc

    return Post(
        source=path,
        title=str(title).strip(),
        date=date,
        tags=tags,
        description=str(meta.get("description") or ""),
        body=body,
        permalink_pattern=permalink,
    )


def list_post_files(posts_dir: Path) -> list[Path]:
    if not posts_dir.is_dir():
        raise BuildError(f"Posts directory not found: {posts_dir}")
    files = [
        path
        for path in posts_dir.iterdir()
        if path.is_file() and path.suffix.lower() in MARKDOWN_SUFFIXES
    ]
    return sorted(files, key=lambda p: p.name, reverse=True)


class PostStore:
    """Discovered posts plus their lazily rendered bodies."""

    def __init__(self, config: SiteConfig, renderer: BodyRenderer, workers: int = 0):
        self.config = config
        self.renderer = renderer
        self.workers = workers or config.workers
        self.cache: RenderCache[str] = RenderCache()
        self._posts: list[Post] = []
        self._by_permalink: dict[str, Post] = {}
        self.skipped: list[Path] = []

    @property
    def posts(self) -> list[Post]:
        return list(self._posts)

    def discover(self) -> list[Post]:
        post_files = list_post_files(self.config.posts)
        tz = self.config.tzinfo

        def load(path: Path) -> Optional[Post]:
            try:
                return parse_post(path, tz, self.config.permalink)
            except ParseError as exc:
                logger.warning("Skipping post: %s", exc)
                return None
            except (OSError, UnicodeDecodeError) as exc:
                logger.warning("Skipping unreadable post %s: %s", path, exc)
                return None

        workers = max(1, min(self.workers or len(post_files) or 1, 32, len(post_files) or 1))
        if workers > 1:
            with ThreadPoolExecutor(max_workers=workers) as executor:
                parsed = list(executor.map(load, post_files))
        else:
            parsed = [load(path) for path in post_files]

        posts: list[Post] = []
        by_permalink: dict[str, Post] = {}
        skipped: list[Path] = []
        for path, post in zip(post_files, parsed):
            if post is None:
                skipped.append(path)
                continue
            existing = by_permalink.get(post.permalink)
            if existing is not None:
                logger.warning(
                    "Skipping %s: permalink %s already used by %s",
                    path.name,
                    post.permalink,
                    existing.source.name,
                )
                skipped.append(path)
                continue
            by_permalink[post.permalink] = post
            posts.append(post)

        self._posts = posts
        self._by_permalink = by_permalink
        self.skipped = skipped
        logger.info("Discovered %d posts (%d skipped)", len(posts), len(skipped))
        return list(posts)

    def get(self, permalink: str) -> Optional[Post]:
        return self._by_permalink.get(permalink)

    def summaries(self) -> list[PostSummary]:
        return [post.summary() for post in self._posts]

    def render(self, post: Post) -> str:
        return self.cache.get_or_compute(post.source, lambda: self.renderer.render(post.body))

    async def render_async(self, post: Post) -> str:
        return await self.cache.get_or_compute_async(
            post.source, lambda: self.renderer.render_async(post.body)
        )
