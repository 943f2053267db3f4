"""Cursor-driven enumeration over paged listing endpoints."""

from dataclasses import dataclass, field
from typing import Any, Callable, Generic, Iterable, Iterator, TypeVar

T = TypeVar("T")
R = TypeVar("R")

DEFAULT_PAGE_SIZE = 50


@dataclass
class Page(Generic[T]):
    items: list[T] = field(default_factory=list)
    next_cursor: str | None = None


def iter_cursor_pages(
    fetch_page: Callable[[dict[str, Any]], Page[T]],
    page_size: int = DEFAULT_PAGE_SIZE,
    **filters: Any,
) -> Iterator[Page[T]]:
    """
    Walk a cursor-paginated endpoint one page at a time.

    `fetch_page` receives the query for one request: `limit`, the cursor from
    the previous page (left out on the first request) and every filter that is
    not None. The walk ends after the first page without a `next_cursor`.
    Nothing is fetched until the caller pulls, and stopping early issues no
    further requests.
    """
    cursor: str | None = None
    while True:
        query = {"limit": page_size, "cursor": cursor, **filters}
        query = {k: v for k, v in query.items() if v is not None}
        page = fetch_page(query)
        yield page

        cursor = page.next_cursor
        if not cursor:
            break


def iter_items(
    fetch_page: Callable[[dict[str, Any]], Page[T]],
    page_size: int = DEFAULT_PAGE_SIZE,
    **filters: Any,
) -> Iterator[T]:
    """Yield every item of every page, in server order. No deduplication."""
    for page in iter_cursor_pages(fetch_page, page_size, **filters):
        yield from page.items


def iter_batched(
    fetch_page: Callable[[dict[str, Any]], Page[T]],
    lookup: Callable[[list[str]], Iterable[R]],
    key: Callable[[T], str | None],
    page_size: int = DEFAULT_PAGE_SIZE,
    **filters: Any,
) -> Iterator[R]:
    """
    Fan each page out to a secondary endpoint before moving the cursor.

    For every page, `key` extracts the identifiers (items without one are
    skipped) and `lookup` is called once with the whole batch; its results are
    yielded before the next page is requested. A page with no identifiers
    never triggers a lookup.
    """
    for page in iter_cursor_pages(fetch_page, page_size, **filters):
        ids = [item_id for item_id in map(key, page.items) if item_id is not None]
        if not ids:
            continue
        yield from lookup(ids)
