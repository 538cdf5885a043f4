from __future__ import annotations

import html
import logging
import threading
from typing import Iterable

from pygments import highlight as pygments_highlight
from pygments.formatters import HtmlFormatter
from pygments.lexer import Lexer
from pygments.lexers import get_lexer_by_name
from pygments.styles import get_style_by_name
from pygments.util import ClassNotFound

from .errors import ConfigError, HighlightError

logger = logging.getLogger(__name__)

CSS_CLASS = "codehilite"


class Highlighter:
    """Pygments wrapper shared by every render in the process.

    The formatter is built once for the configured theme. Lexers are looked up
    the first time a language is seen and kept until ``shutdown``.
    """

    def __init__(self, theme: str = "one-dark"):
        try:
            get_style_by_name(theme)
        except ClassNotFound:
            raise ConfigError(f"Unknown highlight theme: {theme}") from None
        self.theme = theme
        self.formatter = HtmlFormatter(style=theme, cssclass=CSS_CLASS, wrapcode=True)
        self._lexers: dict[str, Lexer] = {}
        self._lock = threading.Lock()

    @property
    def loaded_languages(self) -> list[str]:
        return sorted(self._lexers)

    def _lexer(self, language: str) -> Lexer:
        key = language.strip().lower()
        lexer = self._lexers.get(key)
        if lexer is not None:
            return lexer
        with self._lock:
            lexer = self._lexers.get(key)
            if lexer is None:
                try:
                    lexer = get_lexer_by_name(key, stripnl=False)
                except ClassNotFound:
                    raise HighlightError(f"Unsupported language: {language}", language) from None
                logger.debug("Loaded lexer for %s", key)
                self._lexers[key] = lexer
        return lexer

    def warm(self, languages: Iterable[str]) -> None:
        for language in languages:
            try:
                self._lexer(language)
            except HighlightError as exc:
                logger.warning("Cannot preload %s: %s", language, exc)

    def highlight(self, code: str, language: str) -> str:
        if not language or not language.strip():
            raise HighlightError("No language given", language)
        lexer = self._lexer(language)
        body = pygments_highlight(code, lexer, self.formatter)
        lang = html.escape(language.strip().lower(), quote=True)
        return (
            f'<div class="code-block" data-lang="{lang}" data-theme="{html.escape(self.theme, quote=True)}">'
            f"{body}</div>"
        )

    def stylesheet(self) -> str:
        return self.formatter.get_style_defs(f".{CSS_CLASS}")

    def shutdown(self) -> None:
        with self._lock:
            self._lexers.clear()
