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

"""
Main conftest for shared fixtures: fake scroll backends recording the calls
the cursors make to fetch pages and release cursor identities.
"""

from __future__ import annotations

from typing import Any, Sequence

import pytest

from scrollstream.constants import TotalCountRelation
from scrollstream.data.cursors.page import ScrollPage


class CountingList(list):  # type: ignore[type-arg]
    """A list counting how many times its items are accessed."""

    def __init__(self, items: Sequence[Any]) -> None:
        super().__init__(items)
        self.item_reads = 0

    def __getitem__(self, index: Any) -> Any:
        self.item_reads += 1
        return super().__getitem__(index)

    def __iter__(self) -> Any:
        for index in range(len(self)):
            yield self[index]


class FakeScrollBackend:
    """
    A scroll backend serving a fixed list of pages. Page number `i` (zero-based)
    carries the cursor identity "c{i+1}", and continuing with "c{i+1}" returns
    page `i+1`. Past the last page, empty pages are returned.

    The metadata differ on each page (max_score, aggregations), so that the
    cursor exposing the first page's values can be verified.
    """

    def __init__(
        self,
        pages: Sequence[Sequence[Any]],
        *,
        total_count: int | None = None,
        total_count_relation: TotalCountRelation = TotalCountRelation.EXACT,
        rotate_cursor_ids: bool = True,
    ) -> None:
        self.pages = [CountingList(page) for page in pages]
        self.total_count = (
            total_count
            if total_count is not None
            else sum(len(page) for page in pages)
        )
        self.total_count_relation = total_count_relation
        self.rotate_cursor_ids = rotate_cursor_ids
        self.fetch_calls: list[str] = []
        self.release_calls: list[list[str]] = []
        self.fetch_errors: list[Exception] = []
        self.release_error: Exception | None = None
        self.empty_cursor_id_from: int | None = None
        self.pages_served = 0

    def _cursor_id(self, page_index: int) -> str:
        if (
            self.empty_cursor_id_from is not None
            and page_index >= self.empty_cursor_id_from
        ):
            return ""
        return f"c{page_index + 1}" if self.rotate_cursor_ids else "c1"

    def page(self, page_index: int) -> ScrollPage[Any]:
        elements = (
            self.pages[page_index] if page_index < len(self.pages) else CountingList([])
        )
        return ScrollPage(
            elements=elements,
            cursor_id=self._cursor_id(page_index),
            total_count=self.total_count,
            max_score=float(page_index + 1),
            aggregations={"page": page_index},
            total_count_relation=self.total_count_relation,
        )

    def first_page(self) -> ScrollPage[Any]:
        return self.page(0)

    def fetch_next_page(self, cursor_id: str) -> ScrollPage[Any]:
        self.fetch_calls.append(cursor_id)
        if self.fetch_errors:
            raise self.fetch_errors.pop(0)
        self.pages_served += 1
        if self.rotate_cursor_ids:
            return self.page(int(cursor_id[1:]))
        return self.page(self.pages_served)

    def release_cursors(self, cursor_ids: list[str]) -> None:
        self.release_calls.append(cursor_ids)
        if self.release_error is not None:
            raise self.release_error

    async def async_fetch_next_page(self, cursor_id: str) -> ScrollPage[Any]:
        return self.fetch_next_page(cursor_id)

    async def async_release_cursors(self, cursor_ids: list[str]) -> None:
        self.release_cursors(cursor_ids)

    @property
    def visited_items(self) -> int:
        return sum(page.item_reads for page in self.pages)


def numbered_pages(total: int, page_size: int) -> list[list[int]]:
    """Pages holding the integers 0 ... total-1, i.e. each item is its position."""
    return [
        list(range(start, min(start + page_size, total)))
        for start in range(0, total, page_size)
    ]


@pytest.fixture
def three_page_backend() -> FakeScrollBackend:
    return FakeScrollBackend(numbered_pages(30, 10))


__all__ = [
    "CountingList",
    "FakeScrollBackend",
    "numbered_pages",
]
