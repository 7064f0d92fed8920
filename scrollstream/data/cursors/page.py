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

import math
from dataclasses import dataclass, field
from typing import Any, Generic

from scrollstream.constants import T, TotalCountRelation


@dataclass
class ScrollPage(Generic[T]):
    """
    A whole pageful of results obtained from a scrolling search, together with
    the cursor identity to request the following page. Pages are produced by
    the backend-facing collaborators (e.g. a `ScrollSearchEngine`) and consumed
    by the scroll cursors.

    Attributes:
        elements: the list of items on this page, in the order given by the
            backend (relevance or sort order), which is preserved by the cursors.
        cursor_id: the opaque identity of the server-side cursor, to be used to
            request the next page. It must be a non-empty string.
        total_count: the total number of matching items as known when this
            page was produced. Depending on `total_count_relation`, this may
            be a lower bound rather than an exact count.
        max_score: the maximum relevance score across the results (NaN if the
            backend did not report one).
        aggregations: an opaque aggregations payload, if any.
        total_count_relation: whether `total_count` is exact or a lower bound.
            Strings (such as "eq", "gte" or member names) are coerced.
    """

    elements: list[T]
    cursor_id: str
    total_count: int = 0
    max_score: float = math.nan
    aggregations: Any | None = None
    total_count_relation: TotalCountRelation = field(
        default=TotalCountRelation.EXACT
    )

    def __post_init__(self) -> None:
        self.total_count_relation = TotalCountRelation.coerce(
            self.total_count_relation
        )

    def __len__(self) -> int:
        return len(self.elements)

    def __repr__(self) -> str:
        pieces = [
            pc
            for pc in (
                f"elements=<{len(self.elements)} entries>",
                f'cursor_id="{self.cursor_id}"' if self.cursor_id else None,
                f"total_count={self.total_count}",
                "aggregations=..." if self.aggregations is not None else None,
            )
            if pc is not None
        ]
        return f"{self.__class__.__name__}({', '.join(pieces)})"
