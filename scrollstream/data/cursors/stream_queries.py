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

from typing import Awaitable, Callable

from scrollstream.constants import T
from scrollstream.data.cursors.page import ScrollPage
from scrollstream.data.cursors.skipping_cursor import (
    AsyncReleaseCursorsFunction,
    AsyncSkippingCursorIterator,
    ReleaseCursorsFunction,
    SkippingCursorIterator,
)
from scrollstream.utils.scroll_options import ScrollOptions


def stream_results(
    max_count: int,
    from_index: int,
    first_page: ScrollPage[T],
    fetch_next_page: Callable[[str], ScrollPage[T]],
    release_cursors: ReleaseCursorsFunction,
    *,
    options: ScrollOptions | None = None,
) -> SkippingCursorIterator[T]:
    """
    Create a synchronous cursor streaming the results of a scrolling search.

    Args:
        max_count: if positive, a bound on the logical positions to read,
            counted from the start of the results (`from_index` included).
            Zero or negative means no bound.
        from_index: the logical index of the first item to yield.
        first_page: the page obtained by issuing the initial search request.
        fetch_next_page: a function returning the next page given a cursor identity.
        release_cursors: a function releasing a list of cursor identities.
        options: a `ScrollOptions` object, overriding the default options.

    Returns:
        a SkippingCursorIterator, already positioned at `from_index`.

    Raises:
        InvalidArgumentException: if any argument is out of contract.
    """

    return SkippingCursorIterator(
        max_count=max_count,
        from_index=from_index,
        first_page=first_page,
        fetch_next_page=fetch_next_page,
        release_cursors=release_cursors,
        options=options,
    )


def async_stream_results(
    max_count: int,
    from_index: int,
    first_page: ScrollPage[T],
    fetch_next_page: Callable[[str], Awaitable[ScrollPage[T]]],
    release_cursors: AsyncReleaseCursorsFunction,
    *,
    options: ScrollOptions | None = None,
) -> AsyncSkippingCursorIterator[T]:
    """
    Create an asynchronous cursor streaming the results of a scrolling search.

    This is the async counterpart of `stream_results`: the page-fetching and
    releasing functions are coroutine functions, and skipping to `from_index`
    happens when the cursor is first used.

    Raises:
        InvalidArgumentException: if any argument is out of contract.
    """

    return AsyncSkippingCursorIterator(
        max_count=max_count,
        from_index=from_index,
        first_page=first_page,
        fetch_next_page=fetch_next_page,
        release_cursors=release_cursors,
        options=options,
    )
