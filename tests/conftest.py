import asyncio
import threading
import time
from pathlib import Path

import pytest

from blogsmith.config import Author, SiteConfig


def write_post(
    posts_dir: Path,
    filename: str,
    title: str,
    date: str,
    body: str = "Some text.",
    tags=None,
    description: str = "",
) -> Path:
    lines = ["---", f"title: {title}", f"date: {date}"]
    if tags is not None:
        lines.append(f"tags: [{', '.join(tags)}]")
    if description:
        lines.append(f"description: {description}")
    lines.append("---")
    path = posts_dir / filename
    path.write_text("\n".join(lines) + "\n" + body + "\n", encoding="utf-8")
    return path


class CountingRenderer:
    """Renderer double that records how often it is asked to render."""

    def __init__(self, delay: float = 0.0, fail_times: int = 0):
        self.delay = delay
        self.fail_times = fail_times
        self.calls = 0
        self._lock = threading.Lock()

    def _count(self) -> int:
        with self._lock:
            self.calls += 1
            return self.calls

    def render(self, body: str) -> str:
        call = self._count()
        if self.delay:
            time.sleep(self.delay)
        if call <= self.fail_times:
            raise RuntimeError("render failed")
        return f"<p>{body.strip()}</p>"

    async def render_async(self, body: str) -> str:
        call = self._count()
        if self.delay:
            await asyncio.sleep(self.delay)
        if call <= self.fail_times:
            raise RuntimeError("render failed")
        return f"<p>{body.strip()}</p>"


@pytest.fixture
def posts_dir(tmp_path):
    path = tmp_path / "_posts"
    path.mkdir()
    return path


@pytest.fixture
def assets_dir(tmp_path):
    path = tmp_path / "assets"
    (path / "css").mkdir(parents=True)
    (path / "css" / "main.css").write_text("body { margin: 0; }\n", encoding="utf-8")
    return path


@pytest.fixture
def site_config(tmp_path, posts_dir, assets_dir):
    return SiteConfig(
        name="Test Blog",
        domain="https://example.com",
        author=Author(twitter="tweeter", github="octo", email="me@example.com"),
        copyright_year="2016-2024",
        copyright_name="tester",
        paginate=2,
        output=tmp_path / "dist",
        posts=posts_dir,
        assets=assets_dir,
        workers=2,
    )
