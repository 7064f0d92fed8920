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

import pytest

from scrollstream.event_observers import ObservableEvent, Observer
from scrollstream.utils.scroll_options import (
    FullScrollOptions,
    ScrollOptions,
    defaultScrollOptions,
)
from scrollstream.utils.unset import _UNSET


class TestScrollOptions:
    @pytest.mark.describe("test of default scroll options")
    def test_default_options(self) -> None:
        defaults = defaultScrollOptions()

        assert defaults.scroll_time_ms == 60000
        assert defaults.strict_total_bound is True
        assert defaults.observers == {}

    @pytest.mark.describe("test of partial scroll options")
    def test_partial_options(self) -> None:
        opts = ScrollOptions(scroll_time_ms=100)

        assert opts.strict_total_bound is _UNSET
        assert not opts.strict_total_bound
        assert repr(_UNSET) == "(unset)"

    @pytest.mark.describe("test of overriding scroll options")
    def test_override(self) -> None:
        defaults = defaultScrollOptions()
        overridden = defaults.with_override(ScrollOptions(strict_total_bound=False))

        assert isinstance(overridden, FullScrollOptions)
        assert overridden.strict_total_bound is False
        assert overridden.scroll_time_ms == 60000
        assert defaults.strict_total_bound is True
        assert defaults.with_override(None) == defaults
        assert defaults.with_override(None) is not defaults

    @pytest.mark.describe("test of overriding scroll options merging observers")
    def test_override_observers(self) -> None:
        ev_list1: list[ObservableEvent] = []
        ev_list2: list[ObservableEvent] = []
        obs1 = Observer.from_event_list(ev_list1)
        obs2 = Observer.from_event_list(ev_list2)
        base = FullScrollOptions(
            scroll_time_ms=10,
            strict_total_bound=True,
            observers={"a": obs1},
        )

        merged = base.with_override(ScrollOptions(observers={"b": obs2}))
        assert merged.observers == {"a": obs1, "b": obs2}
        replaced = base.with_override(ScrollOptions(observers={"a": obs2}))
        assert replaced.observers == {"a": obs2}
        assert base.observers == {"a": obs1}
