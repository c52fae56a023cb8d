import asyncio

import pytest

from quantum_jobs.errors import OperationCancelled, WorkspaceClientError
from quantum_jobs.models import Page
from quantum_jobs.paging import PagedLister


class PageBackend:
    def __init__(self, pages, fail_at=None):
        self.pages = pages
        self.fail_at = fail_at
        self.cursors = []

    async def fetch(self, cursor):
        self.cursors.append(cursor)
        index = int(cursor) if cursor else 0
        if index == self.fail_at:
            raise WorkspaceClientError(500, "server error")
        next_link = str(index + 1) if index + 1 < len(self.pages) else None
        return Page(value=self.pages[index], next_link=next_link)


async def take(lister, count):
    items = []
    async for item in lister:
        items.append(item)
        if len(items) == count:
            break
    return items


def test_full_iteration_fetches_every_page_once():
    backend = PageBackend([["a", "b"], ["c"]])
    lister = PagedLister(backend.fetch)

    items = asyncio.run(lister.collect())

    assert items == ["a", "b", "c"]
    assert lister.fetch_count == 2
    assert backend.cursors == [None, "1"]


def test_partial_iteration_stops_fetching():
    backend = PageBackend([["a", "b"], ["c"]])
    lister = PagedLister(backend.fetch)

    assert asyncio.run(take(lister, 1)) == ["a"]
    assert lister.fetch_count == 1


def test_prefix_within_first_page_needs_one_fetch():
    backend = PageBackend([["a", "b"], ["c"]])
    lister = PagedLister(backend.fetch)

    assert asyncio.run(lister.collect(limit=2)) == ["a", "b"]
    assert lister.fetch_count == 1


def test_each_iteration_restarts_from_first_page():
    backend = PageBackend([["a"], ["b"]])
    lister = PagedLister(backend.fetch)

    async def scenario():
        first = await lister.collect()
        second = await lister.collect()
        return first, second

    assert asyncio.run(scenario()) == (["a", "b"], ["a", "b"])
    assert backend.cursors == [None, "1", None, "1"]


def test_empty_page_with_cursor_continues():
    backend = PageBackend([[], ["a"], []])
    assert asyncio.run(PagedLister(backend.fetch).collect()) == ["a"]


def test_convert_maps_items():
    backend = PageBackend([[1, 2], [3]])
    lister = PagedLister(backend.fetch, convert=lambda value: value * 10)
    assert asyncio.run(lister.collect()) == [10, 20, 30]


def test_cancelled_before_first_fetch():
    backend = PageBackend([["a"]])

    async def scenario():
        event = asyncio.Event()
        event.set()
        return await PagedLister(backend.fetch, cancel_event=event).collect()

    with pytest.raises(OperationCancelled):
        asyncio.run(scenario())
    assert backend.cursors == []


def test_cancelled_between_pages():
    backend = PageBackend([["a", "b"], ["c"]])
    seen = []

    async def scenario():
        event = asyncio.Event()
        lister = PagedLister(backend.fetch, cancel_event=event)
        async for item in lister:
            seen.append(item)
            if item == "b":
                event.set()

    with pytest.raises(OperationCancelled):
        asyncio.run(scenario())
    assert seen == ["a", "b"]
    assert backend.cursors == [None]


def test_fetch_error_surfaces_after_earlier_items():
    backend = PageBackend([["a"], ["b"]], fail_at=1)
    seen = []

    async def scenario():
        async for item in PagedLister(backend.fetch):
            seen.append(item)

    with pytest.raises(WorkspaceClientError) as excinfo:
        asyncio.run(scenario())
    assert excinfo.value.status == 500
    assert seen == ["a"]
