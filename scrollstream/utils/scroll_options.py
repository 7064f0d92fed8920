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

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from scrollstream.settings.defaults import (
    DEFAULT_SCROLL_TIME_MS,
    DEFAULT_STRICT_TOTAL_BOUND,
)
from scrollstream.utils.unset import _UNSET, UnsetType

if TYPE_CHECKING:
    from scrollstream.event_observers.observers import Observer


@dataclass
class ScrollOptions:
    """
    The group of settings governing how scroll cursors are created and consumed.

    This class is used to override default settings, for instance when
    creating a search engine or calling `stream_results`. Values that are left
    unspecified keep the values inherited from the options being overridden
    (ultimately, from `defaultScrollOptions`).

    Attributes:
        scroll_time_ms: how long, in milliseconds, the backend is asked to keep
            a scroll alive between two page requests. It is used by search
            engines when issuing the first and the subsequent page requests,
            unless the query itself specifies a scroll time. Defaults to 60 s.
        strict_total_bound: if True, a cursor stops requesting pages as soon as
            it has consumed as many items as the exact total count reported by
            the first page, sparing the round trip that would return an empty
            page. This is never applied if the total count is only a lower bound.
            Defaults to True.
        observers: a dictionary of `Observer` objects, keyed by arbitrary
            identifiers, which will receive the events emitted by the cursors.
            When overriding, these are merged with (and take precedence over)
            the observers already present.
    """

    scroll_time_ms: int | UnsetType = _UNSET
    strict_total_bound: bool | UnsetType = _UNSET
    observers: dict[str, Observer] | UnsetType = _UNSET


@dataclass
class FullScrollOptions(ScrollOptions):
    """
    The fully-specified counterpart of `ScrollOptions`: all settings have a value.
    This is what scroll cursors actually consume.

    See `ScrollOptions` for the meaning of the attributes.
    """

    scroll_time_ms: int
    strict_total_bound: bool
    observers: dict[str, Observer] = field(default_factory=dict)

    def __init__(
        self,
        *,
        scroll_time_ms: int,
        strict_total_bound: bool,
        observers: dict[str, Observer] | None = None,
    ) -> None:
        ScrollOptions.__init__(
            self,
            scroll_time_ms=scroll_time_ms,
            strict_total_bound=strict_total_bound,
            observers=observers or {},
        )

    def with_override(self, other: ScrollOptions | None) -> FullScrollOptions:
        """
        Given an "overriding" set of options, possibly not defined in all its
        attributes, apply the override logic and return a new full options object.

        Args:
            other: a not-necessarily-fully-specified options object. All its defined
                settings take precedence. If None, a copy of this object is returned.
        """

        if other is None:
            return FullScrollOptions(
                scroll_time_ms=self.scroll_time_ms,
                strict_total_bound=self.strict_total_bound,
                observers=dict(self.observers),
            )
        return FullScrollOptions(
            scroll_time_ms=(
                other.scroll_time_ms
                if not isinstance(other.scroll_time_ms, UnsetType)
                else self.scroll_time_ms
            ),
            strict_total_bound=(
                other.strict_total_bound
                if not isinstance(other.strict_total_bound, UnsetType)
                else self.strict_total_bound
            ),
            observers=(
                {**self.observers, **other.observers}
                if not isinstance(other.observers, UnsetType)
                else dict(self.observers)
            ),
        )


def defaultScrollOptions() -> FullScrollOptions:
    """
    Return the default ScrollOptions object, based on the
    'grand defaults' hardcoded in scrollstream.
    """

    return FullScrollOptions(
        scroll_time_ms=DEFAULT_SCROLL_TIME_MS,
        strict_total_bound=DEFAULT_STRICT_TOTAL_BOUND,
        observers={},
    )
