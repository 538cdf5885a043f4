from __future__ import annotations

import datetime as dt

from .config import DEFAULT_PERMALINK


def slugify(title: str) -> str:
    # Only spaces are replaced; other punctuation passes through untouched.
    return title.lower().replace(" ", "-")


def resolve(date: dt.date, title: str, pattern: str = DEFAULT_PERMALINK) -> str:
    """Map a post's publish date and title to its URL path.

    >>> resolve(dt.date(2023, 5, 1), "Hello World")
    '/2023-05-01/hello-world'
    """
    path = (
        pattern.replace(":year", f"{date.year:04d}")
        .replace(":month", f"{date.month:02d}")
        .replace(":day", f"{date.day:02d}")
        .replace(":title", slugify(title))
    )
    if len(path) > 1:
        path = path.rstrip("/")
    if not path.startswith("/"):
        path = "/" + path
    return path
