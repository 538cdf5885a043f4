import asyncio
import logging

import pytest

from blogsmith.highlight import Highlighter
from blogsmith.markdown_render import MarkdownRenderer


@pytest.fixture
def renderer():
    return MarkdownRenderer(Highlighter("one-dark"))


def test_renders_plain_markdown(renderer):
    html = renderer.render("# Title\n\nSome *emphasis* here.\n")

    assert '<h1 id="title">Title</h1>' in html
    assert "<em>emphasis</em>" in html


def test_fenced_javascript_block_is_highlighted_once(renderer):
    body = "Intro\n\n```javascript\nconst a = 1;\n```\n\nOutro\n"

    html = renderer.render(body)

    assert html.count('class="code-block"') == 1
    assert 'data-theme="one-dark"' in html
    assert 'class="codehilite"' in html
    assert "<p>Intro</p>" in html
    assert "<p>Outro</p>" in html


def test_unknown_language_falls_back_to_plain_block(renderer, caplog):
    body = "Before\n\n```nosuchlang\nif a < b: pass\n```\n\nAfter the code.\n"

    with caplog.at_level(logging.WARNING, logger="blogsmith.markdown_render"):
        html = renderer.render(body)

    assert '<pre><code class="language-nosuchlang">if a &lt; b: pass\n</code></pre>' in html
    assert "<p>After the code.</p>" in html
    assert "code-block" not in html
    assert "nosuchlang" in caplog.text
    assert "if a < b: pass" in caplog.text


def test_block_without_language_is_not_highlighted(renderer):
    html = renderer.render("```\n<b>raw</b>\n```\n")

    assert "<pre><code>&lt;b&gt;raw&lt;/b&gt;\n</code></pre>" in html
    assert "codehilite" not in html


def test_tables_extension_enabled(renderer):
    html = renderer.render("| a | b |\n|---|---|\n| 1 | 2 |\n")
    assert "<table>" in html


def test_render_async_matches_render(renderer):
    body = "```python\nprint('hi')\n```\n"
    assert asyncio.run(renderer.render_async(body)) == renderer.render(body)
