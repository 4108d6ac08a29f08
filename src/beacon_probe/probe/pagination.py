"""
Cursor pagination walker.

Pages are fetched strictly one after another, threading the server's
opaque ``nextCursor`` back verbatim, and yielded as soon as they arrive
so the caller can persist each page before the next request is made.
"""

import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, Iterator, Mapping, Optional

from beacon_probe.data.artifact_store import failure_marker

logger = logging.getLogger(__name__)

DEFAULT_MAX_PAGES = 1000


@dataclass(frozen=True)
class Page:
    number: int
    cursor: Optional[str]
    data: Any
    failed: bool = False

    @property
    def items(self):
        if not isinstance(self.data, Mapping):
            return []
        for key in ("items", "nodes"):
            value = self.data.get(key)
            if isinstance(value, list):
                return value
        return []


def next_cursor(response: Any) -> Optional[str]:
    """Return the continuation cursor, or None when the walk should stop."""
    if not isinstance(response, Mapping):
        return None
    if response.get("hasMore") is not True:
        return None
    cursor = response.get("nextCursor")
    if cursor is None or cursor == "":
        return None
    return cursor


def walk_pages(
    fetch: Callable[..., Any],
    base_args: Dict[str, Any] = None,
    page_size: int = 500,
    max_pages: int = DEFAULT_MAX_PAGES,
    label: str = "walk",
) -> Iterator[Page]:
    """
    Walk a cursor-paginated listing to completion.

    Args:
        fetch: Callable issuing one listing call; receives ``base_args`` plus
            ``limit`` and, after the first page, ``cursor`` as keyword arguments
        base_args: Arguments repeated on every call (e.g. dimension)
        page_size: Value sent as ``limit``
        max_pages: Hard ceiling on the number of requests
        label: Operation label for logs

    Yields:
        One Page per request. A failed request yields a page whose data is a
        ``{"success": False, "error": ...}`` marker, and the walk ends there.
    """
    cursor = None
    seen_cursors = []
    number = 0

    while number < max_pages:
        number += 1
        args = dict(base_args or {})
        args["limit"] = page_size
        if cursor is not None:
            args["cursor"] = cursor

        try:
            response = fetch(**args)
        except Exception as e:
            logger.error(f"[{label}] page {number} failed: {e}")
            yield Page(number=number, cursor=cursor, data=failure_marker(e), failed=True)
            return

        yield Page(number=number, cursor=cursor, data=response)

        following = next_cursor(response)
        if following is None:
            logger.info(f"[{label}] walk complete after {number} page(s)")
            return
        if following in seen_cursors:
            logger.warning(f"[{label}] server repeated cursor {following!r}, stopping walk")
            return
        seen_cursors.append(following)
        cursor = following

    logger.warning(f"[{label}] reached max pages ({max_pages}), stopping walk")
