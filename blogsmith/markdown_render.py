from __future__ import annotations

import asyncio
import html
import logging
import re

import markdown
from markdown.extensions import Extension
from markdown.preprocessors import Preprocessor

from .errors import HighlightError
from .highlight import Highlighter

logger = logging.getLogger(__name__)

FENCED_BLOCK_RE = re.compile(
    r"(?P<fence>^(?:~{3,}|`{3,}))[ ]*(?P<lang>[\w#.+-]*)[^\n]*\n"
    r"(?P<code>.*?)(?<=\n)(?P=fence)[ ]*$",
    re.MULTILINE | re.DOTALL,
)


def plain_code_block(code: str, language: str = "") -> str:
    class_attr = f' class="language-{html.escape(language, quote=True)}"' if language else ""
    return f"<pre><code{class_attr}>{html.escape(code)}</code></pre>"


class HighlightedFenceProcessor(Preprocessor):
    def __init__(self, md, highlighter: Highlighter):
        super().__init__(md)
        self.highlighter = highlighter

    def run(self, lines):
        text = "\n".join(lines)
        while True:
            m = FENCED_BLOCK_RE.search(text)
            if m is None:
                break
            placeholder = self.md.htmlStash.store(self.format_block(m.group("code"), m.group("lang")))
            text = f"{text[:m.start()]}\n{placeholder}\n{text[m.end():]}"
        return text.split("\n")

    def format_block(self, code: str, language: str) -> str:
        if not language:
            return plain_code_block(code)
        try:
            return self.highlighter.highlight(code, language)
        except HighlightError as exc:
            logger.warning("Highlight failed for language %r (%s); code:\n%s", language, exc, code)
            return plain_code_block(code, language)


class HighlightedFenceExtension(Extension):
    def __init__(self, highlighter: Highlighter, **kwargs):
        super().__init__(**kwargs)
        self.highlighter = highlighter

    def extendMarkdown(self, md):
        md.preprocessors.register(
            HighlightedFenceProcessor(md, self.highlighter),
            "highlighted_fence",
            25,
        )


class MarkdownRenderer:
    """Markdown to HTML with fenced code routed through the highlighter."""

    def __init__(self, highlighter: Highlighter):
        self.highlighter = highlighter

    def render(self, body: str) -> str:
        # Markdown instances carry per-document state; one per call.
        md = markdown.Markdown(
            extensions=["tables", "toc", HighlightedFenceExtension(self.highlighter)],
        )
        return md.convert(body)

    async def render_async(self, body: str) -> str:
        return await asyncio.to_thread(self.render, body)
