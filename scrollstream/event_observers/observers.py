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
from abc import ABC, abstractmethod
from typing import Any, Callable, Iterable, Mapping

from scrollstream.event_observers.events import ObservableEvent, ObservableEventType

logger = logging.getLogger(__name__)


class Observer(ABC):
    """
    An observer that can be attached to scroll cursor events through
    the scroll options.

    Users can subclass Observer and provide their implementation
    of the `receive` method. Scroll cursors dispatch events (page fetches,
    exhaustion, cursor release) to the observers registered in their options.

    This class offers factory static methods for common use-cases:
    `from_event_list` and `from_event_dict`.
    """

    @abstractmethod
    def receive(
        self,
        event: ObservableEvent,
        sender: Any = None,
        function_name: str | None = None,
    ) -> None:
        """Receive an event.

        Args:
            event: the event being dispatched to the observer.
            sender: the object directly responsible for generating the event
                (typically a scroll cursor).
            function_name: when applicable, the name of the function/method
                that triggered the event.
        """
        ...

    @staticmethod
    def from_event_list(
        event_list: list[ObservableEvent],
        *,
        event_types: Iterable[ObservableEventType] | None = None,
    ) -> Observer:
        """
        Create an Observer appending the events it receives to a
        caller-provided list.

        Args:
            event_list: the list where the caller will find the received events.
            event_types: if provided, only events of these types are collected.
        """

        return _CollectingObserver(event_list.append, event_types)

    @staticmethod
    def from_event_dict(
        event_dict: dict[ObservableEventType, list[ObservableEvent]],
        *,
        event_types: Iterable[ObservableEventType] | None = None,
    ) -> Observer:
        """
        Create an Observer collecting the events it receives into a
        caller-provided dictionary, as lists grouped by event type.

        Args:
            event_dict: the dict where the caller will find the received events.
            event_types: if provided, only events of these types are collected.
        """

        def _store(event: ObservableEvent) -> None:
            event_dict.setdefault(event.event_type, []).append(event)

        return _CollectingObserver(_store, event_types)


class _CollectingObserver(Observer):
    """Hands over to a storing function the events of the accepted types."""

    def __init__(
        self,
        store: Callable[[ObservableEvent], None],
        event_types: Iterable[ObservableEventType] | None,
    ) -> None:
        self.store = store
        self.event_types = (
            set(ObservableEventType.__members__.values())
            if event_types is None
            else set(event_types)
        )

    def receive(
        self,
        event: ObservableEvent,
        sender: Any = None,
        function_name: str | None = None,
    ) -> None:
        if event.event_type in self.event_types:
            self.store(event)


def dispatch_event(
    observers: Mapping[str, Observer],
    event: ObservableEvent,
    *,
    sender: Any = None,
    function_name: str | None = None,
) -> None:
    """
    Deliver an event to all observers. A failing observer is logged and
    skipped, so that it cannot alter the course of the cursor operation.
    """
    for observer_id, observer in observers.items():
        try:
            observer.receive(event, sender=sender, function_name=function_name)
        except Exception as exc:
            logger.warning(
                f"observer '{observer_id}' failed to receive "
                f"{event.event_type.value} event: {exc}"
            )
