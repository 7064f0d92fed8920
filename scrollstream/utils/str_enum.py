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

from enum import Enum, EnumMeta
from typing import TypeVar

T = TypeVar("T", bound="StrEnum")


class StrEnumMeta(EnumMeta):
    def _member_name_for(cls, value: str) -> str | None:
        """
        Find the member name matching a string, trying in order: the exact
        member name, the member name ignoring case, the member value ignoring case.
        """
        if value in cls._member_map_:
            return value
        u_value = value.upper()
        for name, member in cls._member_map_.items():
            if name.upper() == u_value:
                return name
        for name, member in cls._member_map_.items():
            if str(member.value).upper() == u_value:
                return name
        return None

    def __contains__(cls, value: object) -> bool:
        if isinstance(value, str):
            return cls._member_name_for(value) is not None
        return isinstance(value, cls)


class StrEnum(Enum, metaclass=StrEnumMeta):
    @classmethod
    def coerce(cls: type[T], value: str | T) -> T:
        """
        Accept either a member of the enum or a string naming one (by name
        or by value, case-insensitive) and return the enum member.

        Raises:
            ValueError: if the value cannot be matched to any member.
        """

        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            member_name = cls._member_name_for(value)
            if member_name is not None:
                return cls[member_name]
        raise ValueError(
            f"Invalid value '{value}' for {cls.__name__}. "
            f"Allowed values are: {[e.value for e in cls]}"
        )
