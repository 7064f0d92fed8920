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

from scrollstream.constants import TotalCountRelation
from scrollstream.data.cursors.cursor_state import CursorState
from scrollstream.data.cursors.page import ScrollPage
from scrollstream.data.cursors.search_engine import (
    AsyncInMemoryScrollSearchEngine,
    AsyncScrollSearchEngine,
    InMemoryScrollSearchEngine,
    ScrollQuery,
    ScrollSearchEngine,
)
from scrollstream.data.cursors.skipping_cursor import (
    AsyncSkippingCursorIterator,
    CursorStatus,
    SkippingCursorIterator,
)
from scrollstream.data.cursors.stream_queries import (
    async_stream_results,
    stream_results,
)

__all__ = [
    "AsyncInMemoryScrollSearchEngine",
    "AsyncScrollSearchEngine",
    "AsyncSkippingCursorIterator",
    "CursorState",
    "CursorStatus",
    "InMemoryScrollSearchEngine",
    "ScrollPage",
    "ScrollQuery",
    "ScrollSearchEngine",
    "SkippingCursorIterator",
    "TotalCountRelation",
    "async_stream_results",
    "stream_results",
]
