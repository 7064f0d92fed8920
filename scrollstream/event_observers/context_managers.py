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

from contextlib import contextmanager
from typing import Iterable, Iterator, Protocol, TypeVar

from typing_extensions import Self
from uuid6 import uuid7

from scrollstream.event_observers.events import ObservableEvent, ObservableEventType
from scrollstream.event_observers.observers import Observer
from scrollstream.utils.scroll_options import ScrollOptions
from scrollstream.utils.unset import _UNSET, UnsetType


class OptionAwareScrollObject(Protocol):
    def with_options(
        self,
        *,
        scroll_options: ScrollOptions | UnsetType = _UNSET,
    ) -> Self: ...


SCROLL_OBJ = TypeVar("SCROLL_OBJ", bound=OptionAwareScrollObject)


@contextmanager
def event_collector(
    target: SCROLL_OBJ,
    *,
    destination: list[ObservableEvent]
    | dict[ObservableEventType, list[ObservableEvent]],
    event_types: Iterable[ObservableEventType] | None = None,
) -> Iterator[SCROLL_OBJ]:
    """
    A context manager yielding a copy of the target (e.g. a search engine)
    with an additional observer that collects events into the destination.

    Args:
        target: an object with a `with_options(scroll_options=...)` method.
        destination: a list, or a dict grouping events by type, where
            the events are collected.
        event_types: if provided, only events of these types are collected.

    Example:
        >>> events = []
        >>> with event_collector(engine, destination=events) as c_engine:
        ...     results = c_engine.search_for_stream(query).to_list()
        ...
        >>> [event.event_type.value for event in events][-1]
        'cursors_released'
    """

    observer_id_ = f"observer_{str(uuid7())}"
    observer_: Observer
    if isinstance(destination, list):
        observer_ = Observer.from_event_list(destination, event_types=event_types)
    else:
        observer_ = Observer.from_event_dict(destination, event_types=event_types)
    scroll_options = ScrollOptions(observers={observer_id_: observer_})
    target_ = target.with_options(scroll_options=scroll_options)
    try:
        yield target_
    finally:
        del observer_
