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

"""Clients for the Juju controller holding the actual grants."""

import abc
from typing import Dict

from oslo_log import log as logging

import juju_access.conf
from juju_access.objects import Access

LOG = logging.getLogger(__name__)
CONF = juju_access.conf.CONF


class ControllerClient(abc.ABC):
    """The controller primitives the access resources are built on.

    Missing models or users are reported with NotFoundError and any other
    failure of the controller with RemoteError.
    """

    @abc.abstractmethod
    async def model_exists(self, model: str) -> bool:
        """Returns True if the model exists on the controller."""

    @abc.abstractmethod
    async def user_exists(self, user: str) -> bool:
        """Returns True if the user exists on the controller."""

    @abc.abstractmethod
    async def get_model_access(self, model: str) -> Dict[str, Access]:
        """Returns the access level of every user of the model.

        :param model: the name of the model
        :return: a mapping of user name to the access held on the model
        :raises NotFoundError: if the model does not exist
        """

    @abc.abstractmethod
    async def grant_model(self, model: str, user: str, access: Access) -> None:
        """Grants the user the access level on the model.

        Like the juju CLI, granting a level the user already holds or
        exceeds is an error.
        """

    @abc.abstractmethod
    async def revoke_model(self, model: str, user: str, access: Access) -> None:
        """Revokes the access level of the user on the model.

        The user keeps the level below the revoked one, revoking read
        removes the user's access to the model.
        """

    @abc.abstractmethod
    async def add_model(self, name: str) -> None:
        """Creates a model."""

    @abc.abstractmethod
    async def destroy_model(self, name: str) -> None:
        """Destroys a model."""

    @abc.abstractmethod
    async def add_user(self, name: str, password: str) -> None:
        """Creates a user."""

    @abc.abstractmethod
    async def remove_user(self, name: str) -> None:
        """Removes a user."""

    async def close(self) -> None:
        """Releases the connection to the controller."""


_memory_controller = None


def get_client() -> ControllerClient:
    """Returns the controller client configured in the controller group.

    The memory driver shares one controller for the whole process so that
    state is kept between activities.
    """
    global _memory_controller

    if CONF.controller.driver == "memory":
        from juju_access.controller.memory import MemoryController
        if _memory_controller is None:
            LOG.warning("Using the in-memory controller, grants are not persisted.")
            _memory_controller = MemoryController()
        return _memory_controller

    from juju_access.controller.libjuju import JujuController
    return JujuController()
