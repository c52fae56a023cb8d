from __future__ import annotations

import asyncio
import logging
from typing import AsyncIterator, Awaitable, Callable, Generic, TypeVar

from quantum_jobs.errors import OperationCancelled
from quantum_jobs.models import Page

logger = logging.getLogger(__name__)

T = TypeVar("T")
R = TypeVar("R")

FetchPage = Callable[[str | None], Awaitable[Page[T]]]


class PagedLister(Generic[T, R]):
    """Lazy async sequence over a paged remote collection.

    Every ``async for`` starts again from the first page. A page is only
    requested once the items of the previous one have been consumed, so
    stopping early never costs an extra fetch. ``cancel_event`` is checked
    before each fetch.
    """

    def __init__(
        self,
        fetch_page: FetchPage[T],
        convert: Callable[[T], R] | None = None,
        cancel_event: asyncio.Event | None = None,
        name: str = "items",
    ) -> None:
        self._fetch_page = fetch_page
        self._convert = convert
        self._cancel_event = cancel_event
        self._name = name
        self.fetch_count = 0

    def __aiter__(self) -> AsyncIterator[R]:
        return self._iterate()

    async def _iterate(self) -> AsyncIterator[R]:
        cursor: str | None = None
        while True:
            if self._cancel_event is not None and self._cancel_event.is_set():
                raise OperationCancelled(f"listing {self._name} was cancelled")
            page = await self._fetch_page(cursor)
            self.fetch_count += 1
            logger.debug(
                "fetched page of %d %s (more=%s)", len(page.value), self._name, bool(page.next_link)
            )
            for item in page.value:
                yield self._convert(item) if self._convert else item  # type: ignore[misc]
            if not page.next_link:
                return
            cursor = page.next_link

    async def collect(self, limit: int | None = None) -> list[R]:
        """Gather the first ``limit`` items, or all of them."""
        items: list[R] = []
        if limit is not None and limit <= 0:
            return items
        async for item in self:
            items.append(item)
            if limit is not None and len(items) >= limit:
                break
        return items
