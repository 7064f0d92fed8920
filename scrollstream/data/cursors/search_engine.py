# Copyright DataStax, Inc.
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
# http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

from __future__ import annotations

import copy
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Generic, Sequence

from typing_extensions import Self, override
from uuid6 import uuid7

from scrollstream.constants import T, TotalCountRelation
from scrollstream.data.cursors.page import ScrollPage
from scrollstream.data.cursors.skipping_cursor import (
    AsyncSkippingCursorIterator,
    SkippingCursorIterator,
    validate_cursor_bounds,
)
from scrollstream.exceptions import InvalidCursorException
from scrollstream.settings.defaults import UNBOUNDED_MAX_COUNT
from scrollstream.utils.scroll_options import (
    FullScrollOptions,
    ScrollOptions,
    defaultScrollOptions,
)
from scrollstream.utils.unset import _UNSET, UnsetType

logger = logging.getLogger(__name__)


@dataclass
class ScrollQuery:
    """
    A search to run as a scroll. The query body is opaque to scrollstream:
    it is handed over, untouched, to the search engine.

    Attributes:
        body: the backend-specific query (for instance a request payload).
        max_results: if a positive integer, the maximum number of results
            to read, counted from the first result (skipped ones included).
        scroll_time_ms: how long the backend should keep the scroll alive
            between page requests. If None, the engine options apply.
        page_size: a hint for the number of results per page, if any.
    """

    body: Any = None
    max_results: int | None = None
    scroll_time_ms: int | None = None
    page_size: int | None = None

    @property
    def is_limiting(self) -> bool:
        return self.max_results is not None and self.max_results > 0


def _stream_parameters(
    query: ScrollQuery,
    from_index: int,
    options: FullScrollOptions,
) -> tuple[int, int]:
    """Return (max_count, scroll_time_ms), validating the bounds first."""
    max_count = (
        query.max_results
        if query.is_limiting and query.max_results is not None
        else UNBOUNDED_MAX_COUNT
    )
    # no scroll must be opened if the cursor cannot be created afterwards
    validate_cursor_bounds(max_count=max_count, from_index=from_index)
    scroll_time_ms = (
        query.scroll_time_ms
        if query.scroll_time_ms is not None
        else options.scroll_time_ms
    )
    return max_count, scroll_time_ms


class ScrollSearchEngine(ABC, Generic[T]):
    """
    The seam between scroll cursors and a specific search backend.

    Subclasses implement the three scroll primitives against their backend
    (starting a scroll, continuing it, releasing cursor identities) and get
    `search_for_stream`, returning a skipping cursor over the results.

    Args:
        scroll_options: a `ScrollOptions` object overriding the defaults.
    """

    scroll_options: FullScrollOptions

    def __init__(self, *, scroll_options: ScrollOptions | None = None) -> None:
        self.scroll_options = defaultScrollOptions().with_override(scroll_options)

    def with_options(
        self,
        *,
        scroll_options: ScrollOptions | UnsetType = _UNSET,
    ) -> Self:
        """
        Return a copy of this engine with some options overridden.
        The copy shares the backend connection (if any) with the original.
        """

        new_engine = copy.copy(self)
        if not isinstance(scroll_options, UnsetType):
            new_engine.scroll_options = self.scroll_options.with_override(
                scroll_options
            )
        return new_engine

    @abstractmethod
    def search_scroll_start(
        self,
        query: ScrollQuery,
        scroll_time_ms: int,
    ) -> ScrollPage[T]:
        """Issue the initial search and return its first page."""
        ...

    @abstractmethod
    def search_scroll_continue(
        self,
        cursor_id: str,
        scroll_time_ms: int,
    ) -> ScrollPage[T]:
        """Return the page following the one that carried `cursor_id`."""
        ...

    @abstractmethod
    def search_scroll_clear(self, cursor_ids: list[str]) -> None:
        """Release the given cursor identities on the backend."""
        ...

    def search_for_stream(
        self,
        query: ScrollQuery,
        from_index: int = 0,
        *,
        scroll_options: ScrollOptions | None = None,
    ) -> SkippingCursorIterator[T]:
        """
        Run a search as a scroll and return a cursor over its results,
        starting at the desired index.

        Args:
            query: the search to run. If it is limiting, its `max_results`
                bounds the cursor.
            from_index: the logical index of the first result to yield.
            scroll_options: a `ScrollOptions` object overriding, for this
                search only, the options of the engine.

        Returns:
            a SkippingCursorIterator, already positioned at `from_index`.

        Raises:
            InvalidArgumentException: if `from_index` is out of contract
                (in which case no search is issued at all).
        """

        options = self.scroll_options.with_override(scroll_options)
        max_count, scroll_time_ms = _stream_parameters(query, from_index, options)
        logger.info(f"starting scroll search (from_index={from_index})")
        first_page = self.search_scroll_start(query, scroll_time_ms)
        logger.info(f"finished starting scroll search (from_index={from_index})")
        return SkippingCursorIterator(
            max_count=max_count,
            from_index=from_index,
            first_page=first_page,
            fetch_next_page=lambda cursor_id: self.search_scroll_continue(
                cursor_id, scroll_time_ms
            ),
            release_cursors=self.search_scroll_clear,
            options=options,
        )


class AsyncScrollSearchEngine(ABC, Generic[T]):
    """
    The async counterpart of `ScrollSearchEngine`: the scroll primitives are
    coroutines and `search_for_stream` returns an `AsyncSkippingCursorIterator`.

    Args:
        scroll_options: a `ScrollOptions` object overriding the defaults.
    """

    scroll_options: FullScrollOptions

    def __init__(self, *, scroll_options: ScrollOptions | None = None) -> None:
        self.scroll_options = defaultScrollOptions().with_override(scroll_options)

    def with_options(
        self,
        *,
        scroll_options: ScrollOptions | UnsetType = _UNSET,
    ) -> Self:
        """
        Return a copy of this engine with some options overridden.
        The copy shares the backend connection (if any) with the original.
        """

        new_engine = copy.copy(self)
        if not isinstance(scroll_options, UnsetType):
            new_engine.scroll_options = self.scroll_options.with_override(
                scroll_options
            )
        return new_engine

    @abstractmethod
    async def search_scroll_start(
        self,
        query: ScrollQuery,
        scroll_time_ms: int,
    ) -> ScrollPage[T]:
        """Issue the initial search and return its first page."""
        ...

    @abstractmethod
    async def search_scroll_continue(
        self,
        cursor_id: str,
        scroll_time_ms: int,
    ) -> ScrollPage[T]:
        """Return the page following the one that carried `cursor_id`."""
        ...

    @abstractmethod
    async def search_scroll_clear(self, cursor_ids: list[str]) -> None:
        """Release the given cursor identities on the backend."""
        ...

    async def search_for_stream(
        self,
        query: ScrollQuery,
        from_index: int = 0,
        *,
        scroll_options: ScrollOptions | None = None,
    ) -> AsyncSkippingCursorIterator[T]:
        """
        Run a search as a scroll and return an async cursor over its results.
        Skipping to `from_index` happens when the cursor is first used.

        See `ScrollSearchEngine.search_for_stream` for details.
        """

        options = self.scroll_options.with_override(scroll_options)
        max_count, scroll_time_ms = _stream_parameters(query, from_index, options)
        logger.info(f"starting scroll search (from_index={from_index}), async")
        first_page = await self.search_scroll_start(query, scroll_time_ms)
        logger.info(
            f"finished starting scroll search (from_index={from_index}), async"
        )

        async def _fetch_next_page(cursor_id: str) -> ScrollPage[T]:
            return await self.search_scroll_continue(cursor_id, scroll_time_ms)

        return AsyncSkippingCursorIterator(
            max_count=max_count,
            from_index=from_index,
            first_page=first_page,
            fetch_next_page=_fetch_next_page,
            release_cursors=self.search_scroll_clear,
            options=options,
        )


class _InMemoryScrollStore(Generic[T]):
    """
    The scroll bookkeeping of the in-memory engines: open scrolls are tracked
    by cursor identity, and each page is issued under a fresh identity
    (all of which stay open until cleared).
    """

    items: list[T]
    default_page_size: int
    open_scrolls: dict[str, tuple[list[T], int, int]]

    def __init__(self, items: Sequence[T], default_page_size: int) -> None:
        if default_page_size <= 0:
            raise ValueError("The page size must be a positive integer.")
        self.items = list(items)
        self.default_page_size = default_page_size
        self.open_scrolls = {}

    def _issue_page(
        self,
        results: list[T],
        offset: int,
        page_size: int,
    ) -> ScrollPage[T]:
        cursor_id = str(uuid7())
        elements = results[offset : offset + page_size]
        self.open_scrolls[cursor_id] = (results, offset + len(elements), page_size)
        return ScrollPage(
            elements=elements,
            cursor_id=cursor_id,
            total_count=len(results),
            total_count_relation=TotalCountRelation.EXACT,
        )

    def start(self, query: ScrollQuery) -> ScrollPage[T]:
        results = (
            [item for item in self.items if query.body(item)]
            if callable(query.body)
            else list(self.items)
        )
        return self._issue_page(
            results,
            0,
            query.page_size or self.default_page_size,
        )

    def resume(self, cursor_id: str) -> ScrollPage[T]:
        if cursor_id not in self.open_scrolls:
            raise InvalidCursorException(
                text=f"Unknown or released cursor identity '{cursor_id}'.",
                cursor_id=cursor_id,
            )
        results, offset, page_size = self.open_scrolls[cursor_id]
        return self._issue_page(results, offset, page_size)

    def clear(self, cursor_ids: list[str]) -> None:
        for cursor_id in cursor_ids:
            self.open_scrolls.pop(cursor_id, None)


class InMemoryScrollSearchEngine(Generic[T], ScrollSearchEngine[T]):
    """
    A search engine scrolling over a list of items held in memory.

    The query body, if a callable, is used as a filter predicate on the items
    (otherwise all items match). Pages have the size requested by the query
    (`page_size`) or, failing that, the engine default. Every page is issued
    with a new cursor identity, and all identities stay open until cleared:
    `open_cursor_ids` can be inspected to verify they were released.

    Args:
        items: the items to search through, in the order they are returned.
        page_size: the default number of items per page.
        scroll_options: a `ScrollOptions` object overriding the defaults.

    Example:
        >>> engine = InMemoryScrollSearchEngine(range(100), page_size=20)
        >>> cursor = engine.search_for_stream(
        ...     ScrollQuery(body=lambda n: n % 2 == 0, max_results=10),
        ...     from_index=7,
        ... )
        >>> cursor.to_list()
        [14, 16, 18]
        >>> engine.open_cursor_ids
        []
    """

    _store: _InMemoryScrollStore[T]

    def __init__(
        self,
        items: Sequence[T],
        *,
        page_size: int = 10,
        scroll_options: ScrollOptions | None = None,
    ) -> None:
        ScrollSearchEngine.__init__(self, scroll_options=scroll_options)
        self._store = _InMemoryScrollStore(items, page_size)

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}(<{len(self._store.items)} items>, "
            f"open cursors: {len(self._store.open_scrolls)})"
        )

    @property
    def open_cursor_ids(self) -> list[str]:
        return list(self._store.open_scrolls)

    @override
    def search_scroll_start(
        self,
        query: ScrollQuery,
        scroll_time_ms: int,
    ) -> ScrollPage[T]:
        return self._store.start(query)

    @override
    def search_scroll_continue(
        self,
        cursor_id: str,
        scroll_time_ms: int,
    ) -> ScrollPage[T]:
        return self._store.resume(cursor_id)

    @override
    def search_scroll_clear(self, cursor_ids: list[str]) -> None:
        self._store.clear(cursor_ids)


class AsyncInMemoryScrollSearchEngine(Generic[T], AsyncScrollSearchEngine[T]):
    """
    The async counterpart of `InMemoryScrollSearchEngine`.

    Args:
        items: the items to search through, in the order they are returned.
        page_size: the default number of items per page.
        scroll_options: a `ScrollOptions` object overriding the defaults.
    """

    _store: _InMemoryScrollStore[T]

    def __init__(
        self,
        items: Sequence[T],
        *,
        page_size: int = 10,
        scroll_options: ScrollOptions | None = None,
    ) -> None:
        AsyncScrollSearchEngine.__init__(self, scroll_options=scroll_options)
        self._store = _InMemoryScrollStore(items, page_size)

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}(<{len(self._store.items)} items>, "
            f"open cursors: {len(self._store.open_scrolls)})"
        )

    @property
    def open_cursor_ids(self) -> list[str]:
        return list(self._store.open_scrolls)

    @override
    async def search_scroll_start(
        self,
        query: ScrollQuery,
        scroll_time_ms: int,
    ) -> ScrollPage[T]:
        return self._store.start(query)

    @override
    async def search_scroll_continue(
        self,
        cursor_id: str,
        scroll_time_ms: int,
    ) -> ScrollPage[T]:
        return self._store.resume(cursor_id)

    @override
    async def search_scroll_clear(self, cursor_ids: list[str]) -> None:
        self._store.clear(cursor_ids)
