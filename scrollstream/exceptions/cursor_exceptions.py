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

from dataclasses import dataclass


class ScrollStreamException(Exception):
    """
    Any exception specific to the scroll cursors of this package, such as:
      - invalid arguments when creating a cursor,
      - a page returned by the backend without a cursor identity,
      - attempting to read past the end of an exhausted cursor,
    but not, for instance,
      - a network error raised by a page-fetching function, which is
        propagated unchanged to the caller.
    """

    pass


@dataclass
class InvalidArgumentException(ScrollStreamException, ValueError):
    """
    A scroll cursor was requested with out-of-contract parameters: a negative
    starting index, a starting index at or beyond a positive max count,
    a missing first page (or first cursor identity), or a missing callback.

    Attributes:
        text: a text message about the exception.
        argument_name: the name of the offending argument, if applicable.
    """

    text: str
    argument_name: str | None

    def __init__(
        self,
        text: str,
        *,
        argument_name: str | None = None,
    ) -> None:
        super().__init__(text)
        self.text = text
        self.argument_name = argument_name


@dataclass
class InvalidCursorException(ScrollStreamException):
    """
    A cursor identity supplied by the backend is empty or absent.
    This signals a contract violation by the page-fetching collaborator.

    Attributes:
        text: a text message about the exception.
        cursor_id: the offending value (an empty string or None).
    """

    text: str
    cursor_id: str | None

    def __init__(
        self,
        text: str,
        *,
        cursor_id: str | None,
    ) -> None:
        super().__init__(text)
        self.text = text
        self.cursor_id = cursor_id


@dataclass
class CursorExhaustedException(ScrollStreamException):
    """
    An item was requested from a cursor that has no further items to yield,
    either because its bound is reached, the backend has no more results
    or the cursor has been closed.

    This is raised by the explicit `next()` method of the cursors. Iterating
    with `for` (or the builtin `next`) ends with a plain StopIteration instead.

    Attributes:
        text: a text message about the exception.
        cursor_status: a string description of the current status
            of the cursor. See `CursorStatus`.
    """

    text: str
    cursor_status: str

    def __init__(
        self,
        text: str,
        *,
        cursor_status: str,
    ) -> None:
        super().__init__(text)
        self.text = text
        self.cursor_status = cursor_status


@dataclass
class UnsupportedOperationException(ScrollStreamException, NotImplementedError):
    """
    The requested operation is not available on scroll cursors, which are
    read-only (e.g. removing an item).

    Attributes:
        text: a text message about the exception.
    """

    text: str

    def __init__(self, text: str) -> None:
        super().__init__(text)
        self.text = text
