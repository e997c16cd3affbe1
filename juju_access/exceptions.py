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

"""Exceptions raised while managing model access grants."""


class AccessError(Exception):
    """Base exception for access grant failures."""


class ValidationError(AccessError):
    """The declared grant is not valid."""


class InvalidAccessError(ValidationError):
    """The access level is not one of the supported levels."""

    def __init__(self, access: str, valid=()):
        self.access = access
        msg = f"Invalid access level '{access}'"
        if valid:
            msg += f", must be one of: {', '.join(valid)}"
        super().__init__(msg)


class InvalidGrantError(ValidationError):
    """The grant is missing a required attribute."""


class PreApplyRefreshError(AccessError):
    """Validating or refreshing the grants before an apply failed."""

    def __init__(self, reason):
        self.reason = reason
        super().__init__(f"Error running pre-apply refresh: {reason}")


class ParseError(AccessError):
    """An import identifier could not be parsed."""


class NotFoundError(AccessError):
    """A model, user or grant does not exist on the controller."""


class RemoteError(AccessError):
    """The controller rejected or failed a request."""
