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

import pytest

from scrollstream.constants import TotalCountRelation
from scrollstream.cursors import CursorStatus, SkippingCursorIterator
from scrollstream.exceptions import (
    CursorExhaustedException,
    InvalidArgumentException,
    InvalidCursorException,
    UnsupportedOperationException,
)
from scrollstream.utils.scroll_options import ScrollOptions

from ..conftest import FakeScrollBackend, numbered_pages


def _cursor(
    backend: FakeScrollBackend,
    *,
    max_count: int = 0,
    from_index: int = 0,
    options: ScrollOptions | None = None,
) -> SkippingCursorIterator[int]:
    return SkippingCursorIterator(
        max_count=max_count,
        from_index=from_index,
        first_page=backend.first_page(),
        fetch_next_page=backend.fetch_next_page,
        release_cursors=backend.release_cursors,
        options=options,
    )


class TestSkippingCursorScenarios:
    @pytest.mark.describe("test of first item read without any page request")
    def test_first_item_no_fetch(self) -> None:
        backend = FakeScrollBackend([list(range(10))])
        cursor = _cursor(backend)

        assert next(cursor) == 0
        assert backend.fetch_calls == []
        assert cursor.status == CursorStatus.STARTED

    @pytest.mark.describe("test of skipping into the second page")
    def test_skip_into_second_page(self) -> None:
        backend = FakeScrollBackend(numbered_pages(20, 10))
        cursor = _cursor(backend, from_index=15)

        assert backend.fetch_calls == ["c1"]
        assert cursor.consumed == 15
        assert cursor.buffered_count == 5
        assert cursor.status == CursorStatus.IDLE
        assert next(cursor) == 15
        assert cursor.consumed == 16

    @pytest.mark.describe("test of exhaustion on an empty page releasing all ids")
    def test_empty_page_releases_all_ids(self) -> None:
        backend = FakeScrollBackend(
            [list(range(10))],
            total_count_relation=TotalCountRelation.GREATER_THAN_OR_EQUAL,
        )
        cursor = _cursor(backend)
        for _ in range(10):
            next(cursor)
        assert backend.fetch_calls == []

        assert cursor.has_next() is False
        assert backend.fetch_calls == ["c1"]
        assert backend.release_calls == [["c1", "c2"]]
        assert cursor.status == CursorStatus.CLOSED

    @pytest.mark.describe("test of out-of-contract start index and bound")
    def test_invalid_from_index(self) -> None:
        backend = FakeScrollBackend(numbered_pages(30, 10))
        with pytest.raises(InvalidArgumentException):
            _cursor(backend, from_index=-1)
        with pytest.raises(InvalidArgumentException):
            _cursor(backend, max_count=1, from_index=2)
        with pytest.raises(ValueError):
            _cursor(backend, max_count=5, from_index=5)
        assert backend.fetch_calls == []
        assert backend.release_calls == []

    @pytest.mark.describe("test of closing twice releasing once")
    def test_close_twice(self, three_page_backend: FakeScrollBackend) -> None:
        cursor = _cursor(three_page_backend)
        cursor.close()
        cursor.close()

        assert three_page_backend.release_calls == [["c1"]]


class TestSkippingCursorProperties:
    @pytest.mark.parametrize(
        "from_index", [0, 1, 9, 10, 11, 19, 20, 25, 29, 30, 31, 45]
    )
    @pytest.mark.describe("test of the first item yielded after skipping")
    def test_skip_correctness(
        self,
        three_page_backend: FakeScrollBackend,
        from_index: int,
    ) -> None:
        cursor = _cursor(three_page_backend, from_index=from_index)
        if from_index < 30:
            assert next(cursor) == from_index
        else:
            assert cursor.has_next() is False
            assert three_page_backend.fetch_calls == ["c1", "c2"]
            assert three_page_backend.release_calls == [["c1", "c2", "c3"]]

    @pytest.mark.parametrize(
        "max_count,from_index",
        [(5, 0), (5, 3), (10, 9), (15, 2), (30, 0), (45, 10), (31, 29)],
    )
    @pytest.mark.describe("test of the number of items yielded with a bound")
    def test_bound_correctness(
        self,
        three_page_backend: FakeScrollBackend,
        max_count: int,
        from_index: int,
    ) -> None:
        cursor = _cursor(three_page_backend, max_count=max_count, from_index=from_index)
        items = list(cursor)

        assert len(items) == min(max_count, 30) - from_index
        assert items == list(range(from_index, min(max_count, 30)))
        assert len(three_page_backend.release_calls) == 1

    @pytest.mark.describe("test of no page request past the bound")
    def test_bound_spares_fetch(self, three_page_backend: FakeScrollBackend) -> None:
        cursor = _cursor(three_page_backend, max_count=10)

        assert cursor.to_list() == list(range(10))
        assert three_page_backend.fetch_calls == []
        assert three_page_backend.release_calls == [["c1"]]

    @pytest.mark.describe("test of release exactly once with all ids, on exhaustion")
    def test_release_once_on_exhaustion(
        self,
        three_page_backend: FakeScrollBackend,
    ) -> None:
        cursor = _cursor(three_page_backend)
        assert list(cursor) == list(range(30))
        assert three_page_backend.release_calls == [["c1", "c2", "c3"]]

        cursor.close()
        assert cursor.has_next() is False
        cursor.close()
        assert three_page_backend.release_calls == [["c1", "c2", "c3"]]

    @pytest.mark.describe("test of has_next being idempotent")
    def test_has_next_idempotent(self) -> None:
        backend = FakeScrollBackend(numbered_pages(20, 10))
        cursor = _cursor(backend)
        for _ in range(10):
            next(cursor)

        assert cursor.has_next() is True
        assert cursor.has_next() is True
        assert backend.fetch_calls == ["c1"]

        for _ in range(10):
            next(cursor)
        assert cursor.has_next() is False
        assert cursor.has_next() is False
        assert backend.fetch_calls == ["c1"]
        assert backend.release_calls == [["c1", "c2"]]

    @pytest.mark.describe("test of whole-page skipping without visiting items")
    def test_whole_page_skip(self) -> None:
        backend = FakeScrollBackend(numbered_pages(40, 10))
        cursor = _cursor(backend, from_index=35)

        assert backend.fetch_calls == ["c1", "c2", "c3"]
        assert cursor.pages_retrieved == 4
        assert backend.visited_items == 0
        assert next(cursor) == 35
        assert backend.visited_items == 1

    @pytest.mark.describe("test of metadata frozen at the first page")
    def test_frozen_metadata(self, three_page_backend: FakeScrollBackend) -> None:
        cursor = _cursor(three_page_backend, from_index=25)
        cursor.to_list()

        assert three_page_backend.fetch_calls == ["c1", "c2"]
        assert cursor.total_count == 30
        assert cursor.max_score == 1.0
        assert cursor.aggregations == {"page": 0}
        assert cursor.total_count_relation == TotalCountRelation.EXACT


class TestSkippingCursorTermination:
    @pytest.mark.describe("test of the exact total count sparing the last request")
    def test_strict_total_bound(self, three_page_backend: FakeScrollBackend) -> None:
        cursor = _cursor(three_page_backend)
        cursor.to_list()

        assert three_page_backend.fetch_calls == ["c1", "c2"]

    @pytest.mark.describe("test of the total count not trusted if disabled")
    def test_no_strict_total_bound(
        self,
        three_page_backend: FakeScrollBackend,
    ) -> None:
        cursor = _cursor(
            three_page_backend,
            options=ScrollOptions(strict_total_bound=False),
        )

        assert cursor.to_list() == list(range(30))
        assert three_page_backend.fetch_calls == ["c1", "c2", "c3"]
        assert three_page_backend.release_calls == [["c1", "c2", "c3", "c4"]]

    @pytest.mark.describe("test of a lower-bound total count not trusted")
    def test_lower_bound_total(self) -> None:
        backend = FakeScrollBackend(
            numbered_pages(30, 10),
            total_count=10,
            total_count_relation=TotalCountRelation.GREATER_THAN_OR_EQUAL,
        )
        cursor = _cursor(backend)

        assert cursor.to_list() == list(range(30))
        assert backend.fetch_calls == ["c1", "c2", "c3"]

    @pytest.mark.describe("test of an empty first page")
    def test_empty_first_page(self) -> None:
        backend = FakeScrollBackend([[]])
        cursor = _cursor(backend, from_index=3)

        assert cursor.has_next() is False
        assert backend.fetch_calls == []
        assert backend.release_calls == [["c1"]]

    @pytest.mark.describe("test of a backend reusing the same cursor id")
    def test_non_rotating_cursor_ids(self) -> None:
        backend = FakeScrollBackend(numbered_pages(25, 10), rotate_cursor_ids=False)
        cursor = _cursor(backend)

        assert cursor.to_list() == list(range(25))
        assert backend.fetch_calls == ["c1", "c1"]
        assert cursor.cursor_ids == ["c1"]
        assert backend.release_calls == [["c1"]]

    @pytest.mark.describe("test of the status transitions")
    def test_status(self, three_page_backend: FakeScrollBackend) -> None:
        cursor = _cursor(three_page_backend, from_index=12)
        assert cursor.status == CursorStatus.IDLE
        assert "idle" in repr(cursor)
        next(cursor)
        assert cursor.status == CursorStatus.STARTED
        cursor.to_list()
        assert cursor.status == CursorStatus.CLOSED


class TestSkippingCursorErrors:
    @pytest.mark.describe("test of a fetch error propagating, then a retry")
    def test_fetch_error_and_retry(self) -> None:
        backend = FakeScrollBackend(numbered_pages(20, 10))
        cursor = _cursor(backend)
        for _ in range(10):
            next(cursor)
        backend.fetch_errors = [ConnectionError("network down")]

        with pytest.raises(ConnectionError):
            cursor.has_next()
        assert cursor.status != CursorStatus.CLOSED
        assert backend.release_calls == []

        assert cursor.has_next() is True
        assert next(cursor) == 10
        assert backend.fetch_calls == ["c1", "c1"]

    @pytest.mark.describe("test of a fetch error while skipping releasing the ids")
    def test_fetch_error_while_skipping(
        self,
        three_page_backend: FakeScrollBackend,
    ) -> None:
        three_page_backend.fetch_errors = [ConnectionError("network down")]

        with pytest.raises(ConnectionError):
            _cursor(three_page_backend, from_index=15)
        assert three_page_backend.release_calls == [["c1"]]

    @pytest.mark.describe("test of a release error on explicit close")
    def test_release_error_on_close(
        self,
        three_page_backend: FakeScrollBackend,
    ) -> None:
        three_page_backend.release_error = RuntimeError("cannot clear")
        cursor = _cursor(three_page_backend)

        with pytest.raises(RuntimeError):
            cursor.close()
        assert cursor.status == CursorStatus.CLOSED
        cursor.close()
        assert cursor.has_next() is False
        assert len(three_page_backend.release_calls) == 1

    @pytest.mark.describe("test of a release error on exhaustion")
    def test_release_error_on_exhaustion(self) -> None:
        backend = FakeScrollBackend([[1, 2]])
        backend.release_error = RuntimeError("cannot clear")
        cursor = _cursor(backend)
        next(cursor)
        next(cursor)

        with pytest.raises(RuntimeError):
            cursor.has_next()
        assert cursor.has_next() is False
        assert len(backend.release_calls) == 1

    @pytest.mark.describe("test of a page without cursor id")
    def test_page_without_cursor_id(self) -> None:
        backend = FakeScrollBackend(numbered_pages(20, 10))
        backend.empty_cursor_id_from = 1
        cursor = _cursor(backend)
        for _ in range(10):
            next(cursor)

        with pytest.raises(InvalidCursorException):
            cursor.has_next()
        cursor.close()
        assert backend.release_calls == [["c1"]]

    @pytest.mark.describe("test of reading from a closed cursor")
    def test_next_after_close(self, three_page_backend: FakeScrollBackend) -> None:
        cursor = _cursor(three_page_backend)
        cursor.close()

        assert cursor.has_next() is False
        with pytest.raises(CursorExhaustedException) as exc:
            cursor.next()
        assert exc.value.cursor_status == "closed"
        with pytest.raises(StopIteration):
            next(cursor)
        assert next(cursor, "default") == "default"
        assert list(cursor) == []

    @pytest.mark.describe("test of the explicit next method")
    def test_explicit_next(self) -> None:
        backend = FakeScrollBackend([[1, 2]])
        cursor = _cursor(backend)

        assert cursor.next() == 1
        assert cursor.next() == 2
        with pytest.raises(CursorExhaustedException) as exc:
            cursor.next()
        assert exc.value.cursor_status == "closed"
        assert backend.release_calls == [["c1"]]

    @pytest.mark.describe("test of a skip failure surviving a release failure")
    def test_skip_failure_and_release_failure(
        self,
        three_page_backend: FakeScrollBackend,
        caplog: pytest.LogCaptureFixture,
    ) -> None:
        three_page_backend.fetch_errors = [ConnectionError("network down")]
        three_page_backend.release_error = RuntimeError("cannot clear")

        with caplog.at_level(logging.WARNING):
            with pytest.raises(ConnectionError):
                _cursor(three_page_backend, from_index=15)
        assert three_page_backend.release_calls == [["c1"]]
        assert "cannot clear" in caplog.text

    @pytest.mark.describe("test of item removal not supported")
    def test_remove(self, three_page_backend: FakeScrollBackend) -> None:
        cursor = _cursor(three_page_backend)
        with pytest.raises(UnsupportedOperationException):
            cursor.remove()


class TestSkippingCursorConsumption:
    @pytest.mark.describe("test of the context manager releasing on early exit")
    def test_context_manager(self, three_page_backend: FakeScrollBackend) -> None:
        with _cursor(three_page_backend, from_index=4) as cursor:
            assert next(cursor) == 4

        assert cursor.status == CursorStatus.CLOSED
        assert three_page_backend.release_calls == [["c1"]]

    @pytest.mark.describe("test of for_each stopping early, then to_list")
    def test_for_each_and_to_list(
        self,
        three_page_backend: FakeScrollBackend,
    ) -> None:
        cursor = _cursor(three_page_backend)
        collected: list[int] = []

        def _collect(item: int) -> bool:
            collected.append(item)
            return item < 3

        cursor.for_each(_collect)
        assert collected == [0, 1, 2, 3]
        assert cursor.status == CursorStatus.STARTED
        assert three_page_backend.release_calls == []

        assert cursor.to_list() == list(range(4, 30))
        assert cursor.status == CursorStatus.CLOSED
