from __future__ import annotations

import logging
import os
import re
import shutil
import tempfile
from pathlib import Path

from .errors import BuildError, ConfigError

logger = logging.getLogger(__name__)

PRESERVE_RE = re.compile(r"(?is)<(pre|code|textarea|script|style)\b.*?>.*?</\1>")
COMMENT_RE = re.compile(r"(?s)<!--(?!__KEEP_).*?-->")
TAG_GAP_RE = re.compile(r"(<[/!]?([a-zA-Z][\w:-]*)[^>]*>)\s+(?=</?([a-zA-Z][\w:-]*))")
RUN_OF_SPACE_RE = re.compile(r"\s{2,}")
SLOT_RE = re.compile(r"\{\{\s*(\w+)\s*\}\}")

# Whitespace touching these tags never renders, so it can go entirely.
BLOCK_TAGS = frozenset(
    {
        "doctype", "html", "head", "body", "title", "meta", "link", "main", "header", "footer",
        "nav", "section", "article", "aside", "div", "p", "hr", "br", "ul", "ol", "li",
        "dl", "dt", "dd", "table", "thead", "tbody", "tfoot", "tr", "th", "td",
        "blockquote", "figure", "figcaption", "h1", "h2", "h3", "h4", "h5", "h6",
        "pre", "form", "details", "summary",
    }
)


def render_template(template: str, **slots: str) -> str:
    """Fill ``{{slot}}`` markers in a single pass.

    Substituted values are never rescanned, so a post body that happens to
    contain ``{{head}}`` stays literal. Unknown markers are left as they are.
    """
    return SLOT_RE.sub(lambda m: slots.get(m.group(1), m.group(0)), template)


def read_template(path: Path) -> str:
    try:
        return path.read_text(encoding="utf-8")
    except FileNotFoundError:
        raise ConfigError(f"Layout template not found: {path}") from None


def _collapse_gap(m: re.Match) -> str:
    before, after = m.group(2).lower(), m.group(3).lower()
    if before in BLOCK_TAGS or after in BLOCK_TAGS:
        return m.group(1)
    # Between inline elements the space is visible text.
    return m.group(1) + " "


def minify_html(text: str) -> str:
    """Strip comments and layout whitespace, leaving preformatted blocks alone."""
    keep: list[str] = []

    def stash(m: re.Match) -> str:
        keep.append(m.group(0))
        return f"<!--__KEEP_{len(keep) - 1}__-->"

    text = PRESERVE_RE.sub(stash, text)
    text = COMMENT_RE.sub("", text)
    text = TAG_GAP_RE.sub(_collapse_gap, text)
    text = RUN_OF_SPACE_RE.sub(" ", text).strip()
    for i, block in enumerate(keep):
        text = text.replace(f"<!--__KEEP_{i}__-->", block)
    return text


def write_text(path: Path, text: str) -> None:
    """Write through a temporary sibling so readers never see a partial file."""
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.", suffix=".tmp")
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as handle:
            handle.write(text)
        os.replace(tmp_name, path)
    except BaseException:
        Path(tmp_name).unlink(missing_ok=True)
        raise


def clean_output_dir(output_dir: Path, project_root: Path) -> None:
    output_resolved = output_dir.resolve()
    if output_resolved == project_root.resolve():
        raise BuildError("Refusing to clean the project root.")
    try:
        shutil.rmtree(output_dir)
    except FileNotFoundError:
        pass
    except OSError as exc:
        logger.warning("Could not clear %s: %s", output_dir, exc)


def copy_assets(assets_dir: Path, dest: Path) -> None:
    if not assets_dir.is_dir():
        logger.warning("Assets directory not found, skipping copy: %s", assets_dir)
        return
    try:
        shutil.copytree(assets_dir, dest, dirs_exist_ok=True)
    except (OSError, shutil.Error) as exc:
        raise BuildError(f"Failed to copy assets from {assets_dir}: {exc}") from exc
