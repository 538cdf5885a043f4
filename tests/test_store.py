import asyncio
from concurrent.futures import ThreadPoolExecutor

import pytest

from blogsmith.content import PostStore
from blogsmith.errors import BuildError
from tests.conftest import CountingRenderer, write_post


def test_discover_orders_by_filename_descending(site_config, posts_dir):
    write_post(posts_dir, "2021-01-01-a.md", "First", "2021-01-01")
    write_post(posts_dir, "2023-01-01-c.md", "Third", "2023-01-01")
    # Front matter date disagrees with the filename; filename order still wins.
    write_post(posts_dir, "2022-01-01-b.md", "Second", "2024-06-01")

    posts = PostStore(site_config, CountingRenderer()).discover()

    assert [p.title for p in posts] == ["Third", "Second", "First"]
    assert posts[1].permalink == "/2024-06-01/second"


def test_discover_ignores_other_files_and_subdirectories(site_config, posts_dir):
    write_post(posts_dir, "2023-01-01-a.md", "Kept", "2023-01-01")
    (posts_dir / "notes.txt").write_text("---\ntitle: No\ndate: 2023-01-01\n---\n", encoding="utf-8")
    nested = posts_dir / "drafts"
    nested.mkdir()
    write_post(nested, "2023-02-01-b.md", "Nested", "2023-02-01")

    posts = PostStore(site_config, CountingRenderer()).discover()

    assert [p.title for p in posts] == ["Kept"]


def test_discover_skips_unparseable_posts(site_config, posts_dir):
    write_post(posts_dir, "2023-01-01-a.md", "Good", "2023-01-01")
    bad = posts_dir / "2023-01-02-bad.md"
    bad.write_text("no front matter here\n", encoding="utf-8")

    store = PostStore(site_config, CountingRenderer())
    posts = store.discover()

    assert [p.title for p in posts] == ["Good"]
    assert store.skipped == [bad]


def test_discover_rejects_permalink_collisions(site_config, posts_dir):
    write_post(posts_dir, "2023-01-01-a.md", "Same Title", "2023-01-01")
    newer = write_post(posts_dir, "2023-01-01-b.md", "Same Title", "2023-01-01")
    older = posts_dir / "2023-01-01-a.md"

    store = PostStore(site_config, CountingRenderer())
    posts = store.discover()

    assert [p.source for p in posts] == [newer]
    assert store.skipped == [older]
    assert store.get("/2023-01-01/same-title").source == newer


def test_discover_requires_posts_directory(site_config, tmp_path):
    config = site_config.with_overrides(posts=tmp_path / "missing")

    with pytest.raises(BuildError):
        PostStore(config, CountingRenderer()).discover()


def test_summaries_project_posts(site_config, posts_dir):
    write_post(posts_dir, "2023-05-01-a.md", "Hello World", "2023-05-01", description="Desc")
    store = PostStore(site_config, CountingRenderer())
    store.discover()

    (summary,) = store.summaries()

    assert summary.url == "/2023-05-01/hello-world"
    assert summary.title == "Hello World"
    assert summary.date == "1 May 2023"
    assert summary.description == "Desc"


def test_render_is_cached(site_config, posts_dir):
    write_post(posts_dir, "2023-05-01-a.md", "Hello", "2023-05-01", body="Cached body")
    renderer = CountingRenderer()
    store = PostStore(site_config, renderer)
    (post,) = store.discover()

    first = store.render(post)
    second = store.render(post)

    assert first == second == "<p>Cached body</p>"
    assert renderer.calls == 1


def test_render_once_under_thread_contention(site_config, posts_dir):
    write_post(posts_dir, "2023-05-01-a.md", "Hello", "2023-05-01")
    renderer = CountingRenderer(delay=0.05)
    store = PostStore(site_config, renderer)
    (post,) = store.discover()

    with ThreadPoolExecutor(max_workers=8) as executor:
        results = list(executor.map(lambda _: store.render(post), range(8)))

    assert len(set(results)) == 1
    assert renderer.calls == 1


def test_concurrent_async_first_access_renders_once(site_config, posts_dir):
    write_post(posts_dir, "2023-05-01-a.md", "Hello", "2023-05-01")
    renderer = CountingRenderer(delay=0.05)
    store = PostStore(site_config, renderer)
    (post,) = store.discover()

    async def fetch_both():
        return await asyncio.gather(store.render_async(post), store.render_async(post))

    first, second = asyncio.run(fetch_both())

    assert first == second
    assert renderer.calls == 1
    assert store.render(post) == first


def test_failed_render_is_not_cached(site_config, posts_dir):
    write_post(posts_dir, "2023-05-01-a.md", "Hello", "2023-05-01")
    renderer = CountingRenderer(fail_times=1)
    store = PostStore(site_config, renderer)
    (post,) = store.discover()

    with pytest.raises(RuntimeError):
        asyncio.run(store.render_async(post))

    assert asyncio.run(store.render_async(post)) == "<p>Some text.</p>"
    assert renderer.calls == 2
