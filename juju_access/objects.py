#
# Copyright (C) 2023 Canonical Ltd.
#
# This program is free software: you can redistribute it and/or modify
# it under the terms of the GNU Affero General Public License as
# published by the Free Software Foundation, either version 3 of the
# License, or (at your option) any later version.
#
# This program is distributed in the hope that it will be useful,
# but WITHOUT ANY WARRANTY; without even the implied warranty of
# MERCHANTABILITY or FITNESS FOR A PARTICULAR PURPOSE.  See the
# GNU Affero General Public License for more details.
#
# You should have received a copy of the GNU Affero General Public License
# along with this program. If not, see <https://www.gnu.org/licenses/>.
#

"""Shared objects for the access resources, activities and workflows."""

import enum
from typing import Iterable, Optional, Set

from pydantic import BaseModel, field_serializer

from juju_access.exceptions import InvalidAccessError, InvalidGrantError


class Access(str, enum.Enum):
    """Access levels a user can hold on a model.

    The levels are ordered, each one includes the ones before it.
    """
    READ = "read"
    WRITE = "write"
    ADMIN = "admin"

    @classmethod
    def parse(cls, value: str) -> "Access":
        """Return the Access for the given string.

        :param value: the access level string
        :return: the matching Access
        :raises InvalidAccessError: if the value is not a known level
        """
        try:
            return cls(value)
        except ValueError:
            raise InvalidAccessError(value, [a.value for a in cls]) from None

    @property
    def rank(self) -> int:
        return list(Access).index(self)

    def below(self) -> Optional["Access"]:
        """Returns the next lower access level, None for read."""
        if self.rank == 0:
            return None
        return list(Access)[self.rank - 1]

    def above(self) -> Optional["Access"]:
        """Returns the next higher access level, None for admin."""
        levels = list(Access)
        if self.rank == len(levels) - 1:
            return None
        return levels[self.rank + 1]

    def __lt__(self, other):
        if not isinstance(other, Access):
            return NotImplemented
        return self.rank < other.rank

    def __le__(self, other):
        if not isinstance(other, Access):
            return NotImplemented
        return self.rank <= other.rank

    def __gt__(self, other):
        if not isinstance(other, Access):
            return NotImplemented
        return self.rank > other.rank

    def __ge__(self, other):
        if not isinstance(other, Access):
            return NotImplemented
        return self.rank >= other.rank


class AccessModelConfig(BaseModel):
    """The declared configuration of a juju_access_model resource.

    Values are kept as declared so that validation can happen as a
    separate step before anything is sent to the controller.
    """
    model: str
    access: str
    users: Set[str] = set()


class GrantState(BaseModel):
    """The recorded state of an access grant."""
    model: str
    access: Access
    users: Set[str]

    @property
    def id(self) -> str:
        return f"{self.model}:{self.access.value}:{','.join(sorted(self.users))}"

    @field_serializer("users")
    def _serialize_users(self, users: Set[str]):
        return sorted(users)

    def with_users(self, users: Iterable[str]) -> "GrantState":
        return GrantState(model=self.model, access=self.access, users=set(users))


def validate_config(config: AccessModelConfig) -> GrantState:
    """Validate the declared configuration into a GrantState.

    No controller calls are made.

    :param config: the declared configuration
    :return: the validated grant
    :raises InvalidAccessError: if the access level is unknown
    :raises InvalidGrantError: if the model or users are missing
    """
    access = Access.parse(config.access)
    if not config.model:
        raise InvalidGrantError("A model name is required")
    if not config.users:
        raise InvalidGrantError(f"No users given for access to model '{config.model}'")
    if any(not user for user in config.users):
        raise InvalidGrantError("User names must not be empty")

    return GrantState(model=config.model, access=access, users=set(config.users))
