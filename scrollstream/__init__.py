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

__version__: str = "1.0.0"


import scrollstream.constants  # noqa: E402
import scrollstream.cursors  # noqa: E402
from scrollstream.cursors import (  # noqa: E402
    AsyncScrollSearchEngine,
    AsyncSkippingCursorIterator,
    ScrollPage,
    ScrollQuery,
    ScrollSearchEngine,
    SkippingCursorIterator,
    async_stream_results,
    stream_results,
)
from scrollstream.utils.scroll_options import ScrollOptions  # noqa: E402

__all__ = [
    "AsyncScrollSearchEngine",
    "AsyncSkippingCursorIterator",
    "ScrollOptions",
    "ScrollPage",
    "ScrollQuery",
    "ScrollSearchEngine",
    "SkippingCursorIterator",
    "async_stream_results",
    "stream_results",
    "__version__",
]


__pdoc__ = {
    "data": False,
    "settings": False,
    "utils": False,
}
