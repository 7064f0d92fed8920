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

from scrollstream.exceptions import InvalidCursorException


class CursorState:
    """
    Bookkeeping of the server-side cursor identities observed by a scroll cursor.

    Some backends mint a new cursor identity with each page, and every one of
    them may pin server resources until released: for this reason, all
    identities ever seen are retained (in first-seen order, without duplicates)
    and not just the latest one.

    Args:
        cursor_id: the cursor identity carried by the first page.

    Raises:
        InvalidCursorException: if the identity is empty or None.
    """

    _current_cursor_id: str
    _seen_cursor_ids: dict[str, None]

    def __init__(self, cursor_id: str) -> None:
        self._seen_cursor_ids = {}
        self.advance(cursor_id)

    def __repr__(self) -> str:
        return (
            f'{self.__class__.__name__}(current="{self._current_cursor_id}", '
            f"seen: {len(self._seen_cursor_ids)})"
        )

    def advance(self, new_cursor_id: str) -> None:
        """
        Record a new cursor identity and make it the current one.

        Raises:
            InvalidCursorException: if the identity is empty or None.
        """

        if not new_cursor_id:
            raise InvalidCursorException(
                text="A cursor identity must be a non-empty string.",
                cursor_id=new_cursor_id,
            )
        self._seen_cursor_ids[new_cursor_id] = None
        self._current_cursor_id = new_cursor_id

    def current(self) -> str:
        """The cursor identity to present when requesting the next page."""
        return self._current_cursor_id

    def all_known_ids(self) -> list[str]:
        """All cursor identities seen so far, the first one included."""
        return list(self._seen_cursor_ids)
