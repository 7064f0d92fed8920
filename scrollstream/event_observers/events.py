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

from abc import ABC
from dataclasses import dataclass

from scrollstream.utils.str_enum import StrEnum


class ObservableEventType(StrEnum):
    """
    Enum for the possible values of the event type for observable events
    """

    PAGE_FETCHED = "page_fetched"
    CURSORS_RELEASED = "cursors_released"
    EXHAUSTED = "exhausted"


@dataclass
class ObservableEvent(ABC):
    """
    Class that represents the most general 'event' that is sent to observers.

    Attributes:
        event_type: the type of the event, such as "page_fetched".
    """

    event_type: ObservableEventType


@dataclass
class ObservablePageFetched(ObservableEvent):
    """
    An event representing a further page having been obtained from the backend
    by a scroll cursor, during either the skip phase or regular consumption.

    Attributes:
        event_type: it has value ObservableEventType.PAGE_FETCHED in this case.
        requested_cursor_id: the cursor identity the page was requested with.
        cursor_id: the cursor identity carried by the new page.
        page_size: the number of items on the new page.
        skipping: whether the page was fetched while skipping to the start index.
    """

    requested_cursor_id: str
    cursor_id: str
    page_size: int
    skipping: bool

    def __init__(
        self,
        *,
        requested_cursor_id: str,
        cursor_id: str,
        page_size: int,
        skipping: bool,
    ) -> None:
        self.event_type = ObservableEventType.PAGE_FETCHED
        self.requested_cursor_id = requested_cursor_id
        self.cursor_id = cursor_id
        self.page_size = page_size
        self.skipping = skipping


@dataclass
class ObservableCursorsReleased(ObservableEvent):
    """
    An event representing the (single) release call a scroll cursor makes
    when it is closed. It is dispatched just before the release function runs.

    Attributes:
        event_type: it has value ObservableEventType.CURSORS_RELEASED in this case.
        cursor_ids: all cursor identities passed to the release function.
    """

    cursor_ids: list[str]

    def __init__(self, cursor_ids: list[str]) -> None:
        self.event_type = ObservableEventType.CURSORS_RELEASED
        self.cursor_ids = cursor_ids


@dataclass
class ObservableExhausted(ObservableEvent):
    """
    An event representing a scroll cursor finding out it has nothing more to yield.

    Attributes:
        event_type: it has value ObservableEventType.EXHAUSTED in this case.
        consumed: the number of logical positions consumed (skipped or yielded).
        reason: either "bound" (max count reached), "total" (the exact total
            count was reached) or "empty_page" (the backend returned no items).
    """

    consumed: int
    reason: str

    def __init__(self, *, consumed: int, reason: str) -> None:
        self.event_type = ObservableEventType.EXHAUSTED
        self.consumed = consumed
        self.reason = reason
