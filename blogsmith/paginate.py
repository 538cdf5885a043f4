from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Callable, Optional, Sequence

from .config import DEFAULT_PAGINATE_PATH
from .content import PostSummary


@dataclass(frozen=True)
class Page:
    number: int
    posts: tuple[PostSummary, ...]
    previous_path: Optional[str] = None
    next_path: Optional[str] = None

    @property
    def is_first(self) -> bool:
        return self.number == 1


def page_path_from_pattern(pattern: str = DEFAULT_PAGINATE_PATH) -> Callable[[int], str]:
    def page_path(number: int) -> str:
        return pattern.replace(":num", str(number))

    return page_path


def server_page_path(number: int) -> str:
    return f"/page/{number}"


def page_count(total: int, page_size: int) -> int:
    return max(1, math.ceil(total / page_size))


def paginate(
    summaries: Sequence[PostSummary],
    page_size: int,
    page_path: Optional[Callable[[int], str]] = None,
) -> list[Page]:
    """Split ordered summaries into pages of ``page_size``.

    An empty sequence still yields one (empty) page so the listing can show
    its "no post found" state. Links point at 1-based page numbers; the
    second page links back to the site root rather than to page one.
    """
    if page_size < 1:
        raise ValueError(f"page_size must be positive, got {page_size}")
    if page_path is None:
        page_path = page_path_from_pattern()

    total_pages = page_count(len(summaries), page_size)
    pages = []
    for i in range(total_pages):
        chunk = tuple(summaries[i * page_size : (i + 1) * page_size])
        if i == 0:
            previous_path = None
        elif i == 1:
            previous_path = "/"
        else:
            previous_path = page_path(i)
        next_path = page_path(i + 2) if i < total_pages - 1 else None
        pages.append(Page(i + 1, chunk, previous_path, next_path))
    return pages
