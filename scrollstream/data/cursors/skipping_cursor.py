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

import logging
from abc import ABC
from enum import Enum
from inspect import iscoroutinefunction
from types import TracebackType
from typing import Any, Awaitable, Callable, Generic, List, Sequence

from scrollstream.constants import T, TotalCountRelation, is_bounded
from scrollstream.data.cursors.cursor_state import CursorState
from scrollstream.data.cursors.page import ScrollPage
from scrollstream.event_observers.events import (
    ObservableCursorsReleased,
    ObservableEvent,
    ObservableExhausted,
    ObservablePageFetched,
)
from scrollstream.event_observers.observers import dispatch_event
from scrollstream.exceptions import (
    CursorExhaustedException,
    InvalidArgumentException,
    UnsupportedOperationException,
)
from scrollstream.utils.scroll_options import (
    FullScrollOptions,
    ScrollOptions,
    defaultScrollOptions,
)

FetchNextPageFunction = Callable[[str], ScrollPage[Any]]
ReleaseCursorsFunction = Callable[[List[str]], None]
AsyncFetchNextPageFunction = Callable[[str], Awaitable[ScrollPage[Any]]]
AsyncReleaseCursorsFunction = Callable[[List[str]], Awaitable[None]]


logger = logging.getLogger(__name__)


class CursorStatus(Enum):
    """
    This enum expresses the possible statuses for a scroll cursor.

    Values:
        IDLE: No item has been yielded yet (skipping may have taken place).
        STARTED: Items are being yielded, *can* still yield more.
        CLOSED: Exhausted or forcibly stopped, cursor identities released.
    """

    IDLE = "idle"
    STARTED = "started"
    CLOSED = "closed"


def validate_cursor_bounds(*, max_count: int, from_index: int) -> None:
    """Check the starting index against the bound, before any search is issued."""

    if from_index < 0:
        raise InvalidArgumentException(
            text=f"from_index must be non-negative (got {from_index}).",
            argument_name="from_index",
        )
    if is_bounded(max_count) and from_index >= max_count:
        raise InvalidArgumentException(
            text=(
                f"from_index must be less than max_count if the latter is "
                f"positive (got from_index={from_index}, max_count={max_count})."
            ),
            argument_name="from_index",
        )


def validate_cursor_arguments(
    *,
    max_count: int,
    from_index: int,
    first_page: ScrollPage[Any] | None,
    fetch_next_page: Callable[..., Any] | None,
    release_cursors: Callable[..., Any] | None,
) -> None:
    """
    Check the arguments for the creation of a skipping cursor, raising an
    `InvalidArgumentException` on the first one found out of contract.
    """

    validate_cursor_bounds(max_count=max_count, from_index=from_index)
    if first_page is None:
        raise InvalidArgumentException(
            text="first_page must not be None.",
            argument_name="first_page",
        )
    if not first_page.cursor_id:
        raise InvalidArgumentException(
            text="The cursor_id of first_page must be a non-empty string.",
            argument_name="first_page",
        )
    if fetch_next_page is None or not callable(fetch_next_page):
        raise InvalidArgumentException(
            text="fetch_next_page must be a callable.",
            argument_name="fetch_next_page",
        )
    if release_cursors is None or not callable(release_cursors):
        raise InvalidArgumentException(
            text="release_cursors must be a callable.",
            argument_name="release_cursors",
        )


class _AbstractSkippingCursor(ABC, Generic[T]):
    """
    The state machine shared by the sync and async skipping cursors.

    It holds the current page (as a buffer and a read position), the count
    of logical positions consumed so far (skipped plus yielded), the cursor
    identity bookkeeping and the metadata frozen from the first page.
    All methods here are free of I/O: fetching and releasing happen in the
    concrete subclasses, which drive this state machine.
    """

    _max_count: int
    _from_index: int
    _options: FullScrollOptions
    _cursor_state: CursorState
    _buffer: Sequence[T]
    _position: int
    _consumed: int
    _pages_retrieved: int
    _exhausted: bool
    _skip_done: bool
    _status: CursorStatus
    _total_count: int
    _max_score: float
    _aggregations: Any | None
    _total_count_relation: TotalCountRelation

    def __init__(
        self,
        *,
        max_count: int,
        from_index: int,
        first_page: ScrollPage[T],
        options: ScrollOptions | None,
    ) -> None:
        self._max_count = max_count
        self._from_index = from_index
        if isinstance(options, FullScrollOptions):
            self._options = options
        else:
            self._options = defaultScrollOptions().with_override(options)
        self._cursor_state = CursorState(first_page.cursor_id)
        self._total_count = first_page.total_count
        self._max_score = first_page.max_score
        self._aggregations = first_page.aggregations
        self._total_count_relation = first_page.total_count_relation
        self._buffer = first_page.elements
        self._position = 0
        self._consumed = 0
        self._pages_retrieved = 1
        self._exhausted = False
        self._skip_done = False
        self._status = CursorStatus.IDLE
        if not self._buffer:
            self._mark_exhausted("empty_page")

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}({self._status.value}, "
            f"consumed so far: {self._consumed})"
        )

    @property
    def status(self) -> CursorStatus:
        """
        The current status of this cursor.

        Returns:
            a value in `scrollstream.cursors.CursorStatus`.
        """

        return self._status

    @property
    def consumed(self) -> int:
        """
        The number of logical positions consumed so far, counting both
        the items skipped to reach `from_index` and those yielded.
        """

        return self._consumed

    @property
    def max_count(self) -> int:
        return self._max_count

    @property
    def from_index(self) -> int:
        return self._from_index

    @property
    def pages_retrieved(self) -> int:
        """The number of pages obtained so far, the first page included."""

        return self._pages_retrieved

    @property
    def buffered_count(self) -> int:
        """
        The number of items of the current page still to be read. Reading this
        property never triggers new page requests.
        """

        return len(self._buffer) - self._position

    @property
    def cursor_ids(self) -> list[str]:
        """All server-side cursor identities this cursor has observed."""

        return self._cursor_state.all_known_ids()

    @property
    def total_count(self) -> int:
        """The total count of matching items, as reported by the first page."""

        return self._total_count

    @property
    def max_score(self) -> float:
        """The maximum score, as reported by the first page."""

        return self._max_score

    @property
    def aggregations(self) -> Any | None:
        """The aggregations payload, as reported by the first page."""

        return self._aggregations

    @property
    def total_count_relation(self) -> TotalCountRelation:
        """Whether `total_count` is exact or a lower bound (from the first page)."""

        return self._total_count_relation

    def remove(self) -> None:
        """
        Removal of items is not supported: scroll cursors are read-only.

        Raises:
            UnsupportedOperationException: always.
        """

        raise UnsupportedOperationException(
            text="Scroll cursors are read-only: items cannot be removed."
        )

    def _dispatch(self, event: ObservableEvent, function_name: str) -> None:
        if self._options.observers:
            dispatch_event(
                self._options.observers,
                event,
                sender=self,
                function_name=function_name,
            )

    def _within_bound(self) -> bool:
        return not is_bounded(self._max_count) or self._consumed < self._max_count

    def _buffer_drained(self) -> bool:
        return self._position >= len(self._buffer)

    def _total_reached(self) -> bool:
        # a lower-bound total cannot be trusted to stop fetching
        return (
            self._options.strict_total_bound
            and self._total_count_relation == TotalCountRelation.EXACT
            and self._consumed >= self._total_count
        )

    def _mark_exhausted(self, reason: str) -> None:
        if not self._exhausted:
            self._exhausted = True
            logger.debug(f"cursor exhausted ({reason}) after {self._consumed} items")
            self._dispatch(
                ObservableExhausted(consumed=self._consumed, reason=reason),
                function_name="has_next",
            )

    def _needs_skipping(self) -> bool:
        return not self._exhausted and self._consumed < self._from_index

    def _skip_within_page(self) -> bool:
        """
        Skip as much as possible of the current page towards `from_index`.
        A page entirely covered by the skip is counted whole, without visiting
        its items. Return True if the next page is needed to continue skipping.
        """

        to_skip = self._from_index - self._consumed
        left_in_page = len(self._buffer) - self._position
        if to_skip >= left_in_page:
            self._consumed += left_in_page
            self._position = len(self._buffer)
            return True
        else:
            self._position += to_skip
            self._consumed = self._from_index
            return False

    def _apply_page(
        self,
        requested_cursor_id: str,
        page: ScrollPage[T],
        *,
        skipping: bool,
    ) -> None:
        self._cursor_state.advance(page.cursor_id)
        self._buffer = page.elements
        self._position = 0
        self._pages_retrieved += 1
        self._dispatch(
            ObservablePageFetched(
                requested_cursor_id=requested_cursor_id,
                cursor_id=page.cursor_id,
                page_size=len(self._buffer),
                skipping=skipping,
            ),
            function_name="has_next",
        )
        if not self._buffer:
            self._mark_exhausted("empty_page")

    def _check_exhaustion(self) -> bool:
        """
        Settle exhaustion due to the bound or to the total count, which
        do not require any page request. Return True if exhausted.
        """

        if not self._within_bound():
            self._mark_exhausted("bound")
        elif self._buffer_drained() and self._total_reached():
            self._mark_exhausted("total")
        return self._exhausted

    def _take(self) -> T:
        item = self._buffer[self._position]
        self._position += 1
        self._consumed += 1
        self._status = CursorStatus.STARTED
        return item

    def _begin_close(self) -> list[str] | None:
        """
        Mark the cursor as closed and return the identities to release,
        or None if the cursor had been closed already.
        """

        if self._status == CursorStatus.CLOSED:
            return None
        self._status = CursorStatus.CLOSED
        self._buffer = []
        self._position = 0
        cursor_ids = self._cursor_state.all_known_ids()
        self._dispatch(ObservableCursorsReleased(cursor_ids), function_name="close")
        return cursor_ids

    def _exhausted_exception(self) -> CursorExhaustedException:
        return CursorExhaustedException(
            text="The cursor has no more items.",
            cursor_status=self._status.value,
        )


class SkippingCursorIterator(Generic[T], _AbstractSkippingCursor[T]):
    """
    A synchronous cursor streaming all results of a scrolling search, starting
    at an arbitrary logical index and optionally bounded in length.

    The cursor is built from a first page already obtained from the backend,
    a function to fetch the next page given a cursor identity, and a function
    to release a list of cursor identities. It never performs I/O on its own:
    it calls these functions when a new page is needed and when releasing.

    Upon creation, the cursor skips to `from_index` right away, requesting
    only the pages needed to get there: pages entirely covered by the skip are
    counted as a whole, without visiting their items.

    All cursor identities ever observed are released exactly once, with a single
    call to `release_cursors`, when the cursor is closed. This happens when
    `close()` is called explicitly, when leaving a `with` block, or as soon as
    the cursor finds out it has nothing more to yield.

    A cursor is meant to be consumed by a single thread: it has no internal
    locking, as the backend scroll is inherently sequential.

    Args:
        max_count: if positive, the cursor stops after this many logical
            positions counted from the start of the result set (i.e. the skipped
            positions count toward this bound). Zero or negative means no bound.
        from_index: the logical index of the first item to yield.
        first_page: the first page of results, which must carry a cursor identity.
            Its metadata (total count, max score, etc.) are exposed by the cursor
            for its whole lifetime.
        fetch_next_page: a function accepting a cursor identity and returning the
            next `ScrollPage`. When there are no more results, it must return
            a page with no elements.
        release_cursors: a function accepting a list of cursor identities
            and releasing them on the backend.
        options: a `ScrollOptions` object, overriding the default options.

    Raises:
        InvalidArgumentException: if any argument is out of contract.

    Example:
        >>> cursor = SkippingCursorIterator(
        ...     max_count=0,
        ...     from_index=2,
        ...     first_page=ScrollPage(["a", "b", "c"], cursor_id="c1", total_count=4),
        ...     fetch_next_page=lambda c_id: ScrollPage(["d"], cursor_id="c2"),
        ...     release_cursors=lambda c_ids: print(f"releasing {c_ids}"),
        ... )
        >>> for item in cursor:
        ...     print(item)
        ...
        c
        d
        releasing ['c1', 'c2']
    """

    _fetch_next_page: FetchNextPageFunction
    _release_cursors: ReleaseCursorsFunction

    def __init__(
        self,
        *,
        max_count: int,
        from_index: int,
        first_page: ScrollPage[T],
        fetch_next_page: Callable[[str], ScrollPage[T]],
        release_cursors: ReleaseCursorsFunction,
        options: ScrollOptions | None = None,
    ) -> None:
        validate_cursor_arguments(
            max_count=max_count,
            from_index=from_index,
            first_page=first_page,
            fetch_next_page=fetch_next_page,
            release_cursors=release_cursors,
        )
        self._fetch_next_page = fetch_next_page
        self._release_cursors = release_cursors
        _AbstractSkippingCursor.__init__(
            self,
            max_count=max_count,
            from_index=from_index,
            first_page=first_page,
            options=options,
        )
        try:
            self._skip_to_start()
        except Exception:
            logger.warning(
                "cursor failed while skipping to the start index: "
                "releasing the cursor identities observed so far"
            )
            try:
                self.close()
            except Exception as release_exc:
                logger.warning(
                    f"cursor failed to release its cursor identities: {release_exc}"
                )
            raise

    def __iter__(self: SkippingCursorIterator[T]) -> SkippingCursorIterator[T]:
        return self

    def __next__(self) -> T:
        if not self.has_next():
            raise StopIteration
        return self._take()

    def __enter__(self: SkippingCursorIterator[T]) -> SkippingCursorIterator[T]:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None = None,
        exc_value: BaseException | None = None,
        traceback: TracebackType | None = None,
    ) -> None:
        self.close()

    def _skip_to_start(self) -> None:
        if self._from_index:
            logger.debug(f"cursor skipping to index {self._from_index}")
        while self._needs_skipping():
            if self._skip_within_page():
                self._advance_page(skipping=True)
        self._skip_done = True

    def _advance_page(self, *, skipping: bool) -> None:
        if self._total_reached():
            self._mark_exhausted("total")
            return
        requested_cursor_id = self._cursor_state.current()
        logger.info(f"cursor fetching a page: cursor id '{requested_cursor_id}'")
        page = self._fetch_next_page(requested_cursor_id)
        logger.info(
            f"cursor finished fetching a page: cursor id '{requested_cursor_id}'"
        )
        self._apply_page(requested_cursor_id, page, skipping=skipping)

    def has_next(self) -> bool:
        """
        Whether the cursor actually has more items to return.

        This method can trigger the request of a new page, if the current
        page has been entirely read. Calling it repeatedly without consuming
        items does not trigger further requests.

        If no more items are available, the cursor is closed (and its cursor
        identities released) before this method returns False. An error raised
        by the page-fetching function propagates unchanged and leaves the cursor
        open: the call can be retried, or `close()` invoked to release resources.

        Returns:
            a boolean value of True if there is at least one further item
                available to consume; False otherwise (including the case of CLOSED
                cursor).
        """

        if self._status == CursorStatus.CLOSED:
            return False
        if not self._check_exhaustion() and self._buffer_drained():
            self._advance_page(skipping=False)
        if not self._exhausted:
            return True
        self.close()
        return False

    def next(self) -> T:
        """
        Return the next item of the cursor.

        Raises:
            CursorExhaustedException: if the cursor has no more items.
        """

        if not self.has_next():
            raise self._exhausted_exception()
        return self._take()

    def close(self) -> None:
        """
        Close the cursor, releasing all cursor identities it has observed
        with a single call to the release function. A cursor can be closed at
        any time, discarding the portion of results not yet consumed, if any.

        Closing is idempotent: the release function is called at most once.
        If it raises, the error propagates, but the cursor is closed anyhow
        and no further release attempts are made.
        """

        cursor_ids = self._begin_close()
        if cursor_ids is None:
            return
        logger.info(f"cursor releasing {len(cursor_ids)} cursor id(s)")
        self._release_cursors(cursor_ids)
        logger.info(f"cursor finished releasing {len(cursor_ids)} cursor id(s)")

    def for_each(self, function: Callable[[T], bool | None]) -> None:
        """
        Consume the remaining items in the cursor, invoking a provided callback
        function on each of them.

        The callback function can return any value. The return value is generally
        discarded, with the following exception: if the function returns the boolean
        `False`, it is taken to signify that the method should quit early, leaving the
        cursor half-consumed (and open). If this does not occur, this method
        results in the cursor being closed once it is exhausted.

        Args:
            function: a callback function whose only parameter is of the type returned
                by the cursor. If the callback returns a `False`, the `for_each`
                invocation stops early and returns without consuming further items.
        """

        for item in self:
            if function(item) is False:
                break

    def to_list(self) -> list[T]:
        """
        Materialize all items that remain to be consumed from a cursor into a list.
        The cursor ends up exhausted and closed.

        Calling this method is not recommended if a huge list of results is
        anticipated: lazily iterating over the cursor is to be preferred.

        Returns:
            a list of the items that were left to be consumed on the cursor.
        """

        return [item for item in self]


class AsyncSkippingCursorIterator(Generic[T], _AbstractSkippingCursor[T]):
    """
    An asynchronous cursor streaming all results of a scrolling search,
    starting at an arbitrary logical index and optionally bounded in length.

    This class is the async counterpart of the SkippingCursorIterator, for use
    with coroutine functions to fetch pages and release cursor identities.
    See the synchronous class for details. The one difference is in when
    skipping to `from_index` occurs: since creation cannot await, skipping
    happens on the first `has_next` (or the first item being requested).
    If skipping fails, the cursor identities observed so far are released and
    the error is raised.

    Args:
        max_count: if positive, the cursor stops after this many logical
            positions counted from the start of the result set.
            Zero or negative means no bound.
        from_index: the logical index of the first item to yield.
        first_page: the first page of results, which must carry a cursor identity.
        fetch_next_page: a coroutine function accepting a cursor identity and
            returning the next `ScrollPage`.
        release_cursors: a coroutine function accepting a list of cursor identities
            and releasing them on the backend.
        options: a `ScrollOptions` object, overriding the default options.

    Raises:
        InvalidArgumentException: if any argument is out of contract.
    """

    _fetch_next_page: AsyncFetchNextPageFunction
    _release_cursors: AsyncReleaseCursorsFunction

    def __init__(
        self,
        *,
        max_count: int,
        from_index: int,
        first_page: ScrollPage[T],
        fetch_next_page: Callable[[str], Awaitable[ScrollPage[T]]],
        release_cursors: AsyncReleaseCursorsFunction,
        options: ScrollOptions | None = None,
    ) -> None:
        validate_cursor_arguments(
            max_count=max_count,
            from_index=from_index,
            first_page=first_page,
            fetch_next_page=fetch_next_page,
            release_cursors=release_cursors,
        )
        self._fetch_next_page = fetch_next_page
        self._release_cursors = release_cursors
        _AbstractSkippingCursor.__init__(
            self,
            max_count=max_count,
            from_index=from_index,
            first_page=first_page,
            options=options,
        )

    def __aiter__(
        self: AsyncSkippingCursorIterator[T],
    ) -> AsyncSkippingCursorIterator[T]:
        return self

    async def __anext__(self) -> T:
        if not await self.has_next():
            raise StopAsyncIteration
        return self._take()

    async def __aenter__(
        self: AsyncSkippingCursorIterator[T],
    ) -> AsyncSkippingCursorIterator[T]:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None = None,
        exc_value: BaseException | None = None,
        traceback: TracebackType | None = None,
    ) -> None:
        await self.close()

    async def _ensure_skipped(self) -> None:
        if self._skip_done:
            return
        if self._from_index:
            logger.debug(f"cursor skipping to index {self._from_index}, async")
        try:
            while self._needs_skipping():
                if self._skip_within_page():
                    await self._advance_page(skipping=True)
        except Exception:
            logger.warning(
                "cursor failed while skipping to the start index: "
                "releasing the cursor identities observed so far"
            )
            try:
                await self.close()
            except Exception as release_exc:
                logger.warning(
                    "cursor failed to release its cursor identities, "
                    f"async: {release_exc}"
                )
            raise
        self._skip_done = True

    async def _advance_page(self, *, skipping: bool) -> None:
        if self._total_reached():
            self._mark_exhausted("total")
            return
        requested_cursor_id = self._cursor_state.current()
        logger.info(
            f"cursor fetching a page: cursor id '{requested_cursor_id}', async"
        )
        page = await self._fetch_next_page(requested_cursor_id)
        logger.info(
            f"cursor finished fetching a page: cursor id '{requested_cursor_id}', async"
        )
        self._apply_page(requested_cursor_id, page, skipping=skipping)

    async def has_next(self) -> bool:
        """
        Whether the cursor actually has more items to return.

        This method can trigger the request of a new page (and, on its first
        invocation, the skipping to `from_index`). See the synchronous
        `SkippingCursorIterator.has_next` for details.

        Returns:
            a boolean value of True if there is at least one further item
                available to consume; False otherwise (including the case of CLOSED
                cursor).
        """

        if self._status == CursorStatus.CLOSED:
            return False
        await self._ensure_skipped()
        if not self._check_exhaustion() and self._buffer_drained():
            await self._advance_page(skipping=False)
        if not self._exhausted:
            return True
        await self.close()
        return False

    async def next(self) -> T:
        """
        Return the next item of the cursor.

        Raises:
            CursorExhaustedException: if the cursor has no more items.
        """

        if not await self.has_next():
            raise self._exhausted_exception()
        return self._take()

    async def close(self) -> None:
        """
        Close the cursor, releasing all cursor identities it has observed
        with a single call to the release function. Idempotent; see the
        synchronous `SkippingCursorIterator.close` for details.
        """

        cursor_ids = self._begin_close()
        if cursor_ids is None:
            return
        logger.info(f"cursor releasing {len(cursor_ids)} cursor id(s), async")
        await self._release_cursors(cursor_ids)
        logger.info(
            f"cursor finished releasing {len(cursor_ids)} cursor id(s), async"
        )

    async def for_each(
        self,
        function: Callable[[T], bool | None] | Callable[[T], Awaitable[bool | None]],
    ) -> None:
        """
        Consume the remaining items in the cursor, invoking a provided callback
        function -- or coroutine -- on each of them.

        If the callback returns the boolean `False`, the method quits early,
        leaving the cursor half-consumed (and open). Otherwise the cursor ends
        up exhausted and closed.

        Args:
            function: a callback function, or a coroutine, whose only parameter is of
                the type returned by the cursor.
        """

        is_coro = iscoroutinefunction(function)
        async for item in self:
            if is_coro:
                res = await function(item)  # type: ignore[misc]
            else:
                res = function(item)
            if res is False:
                break

    async def to_list(self) -> list[T]:
        """
        Materialize all items that remain to be consumed from a cursor into a list.
        The cursor ends up exhausted and closed.

        Returns:
            a list of the items that were left to be consumed on the cursor.
        """

        return [item async for item in self]
