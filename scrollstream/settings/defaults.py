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

# How long the backend keeps a scroll alive between two page requests
DEFAULT_SCROLL_TIME_MS = 60000

# Whether to stop fetching once an exact total count has been consumed,
# saving the final (empty) page round trip
DEFAULT_STRICT_TOTAL_BOUND = True

# A max_count less than or equal to this means "no bound"
UNBOUNDED_MAX_COUNT = 0
