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

from typing import TypeVar

from scrollstream.settings.defaults import UNBOUNDED_MAX_COUNT
from scrollstream.utils.str_enum import StrEnum

# The element type yielded by a scroll cursor
T = TypeVar("T")


class TotalCountRelation(StrEnum):
    """
    How the total count reported by the backend relates to the true number
    of matching results.

    Values:
        EXACT: the total count is exact.
        GREATER_THAN_OR_EQUAL: the total count is a lower bound (for instance
            because the backend stopped counting past a threshold).
    """

    EXACT = "eq"
    GREATER_THAN_OR_EQUAL = "gte"


class MaxCount:
    """
    Admitted special values for the `max_count` parameter of the scroll
    cursors. Any positive integer is a bound on the logical positions read.
    """

    def __init__(self) -> None:
        raise NotImplementedError

    UNBOUNDED = UNBOUNDED_MAX_COUNT


def is_bounded(max_count: int) -> bool:
    return max_count > UNBOUNDED_MAX_COUNT
