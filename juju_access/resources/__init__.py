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

"""Resources managed declaratively against the controller."""

import enum

from oslo_log import log as logging

from juju_access.controller import ControllerClient

LOG = logging.getLogger(__name__)


class ResourceStatus(str, enum.Enum):
    """Lifecycle of a resource during an apply."""
    PLANNED = "planned"
    VALIDATING = "validating"
    INVALID = "invalid"
    CREATING = "creating"
    CREATED = "created"
    READING = "reading"
    DESTROYING = "destroying"
    DESTROYED = "destroyed"


class Resource:
    """A resource which is reconciled against the controller."""

    type_name: str = None

    def __init__(self, client: ControllerClient):
        self.client = client
        self.status = ResourceStatus.PLANNED

    def _set_status(self, status: ResourceStatus) -> None:
        LOG.debug(f"{self.type_name}: {self.status.value} -> {status.value}")
        self.status = status
