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

"""An in-process controller with the grant semantics of Juju."""

from typing import Dict

from oslo_log import log as logging

from juju_access.controller import ControllerClient
from juju_access.exceptions import NotFoundError, RemoteError
from juju_access.objects import Access

LOG = logging.getLogger(__name__)


class MemoryController(ControllerClient):
    """Keeps models, users and grants in memory."""

    def __init__(self):
        self.models: Dict[str, Dict[str, Access]] = {}
        self.users: Dict[str, str] = {}

    def _model(self, model: str) -> Dict[str, Access]:
        try:
            return self.models[model]
        except KeyError:
            raise NotFoundError(f"model '{model}' not found") from None

    def _check_user(self, user: str) -> None:
        if user not in self.users:
            raise NotFoundError(f"user '{user}' not found")

    async def model_exists(self, model: str) -> bool:
        return model in self.models

    async def user_exists(self, user: str) -> bool:
        return user in self.users

    async def get_model_access(self, model: str) -> Dict[str, Access]:
        return dict(self._model(model))

    async def grant_model(self, model: str, user: str, access: Access) -> None:
        grants = self._model(model)
        self._check_user(user)

        current = grants.get(user)
        if current is not None and current >= access:
            raise RemoteError(f"user already has \"{current.value}\" access or greater")

        LOG.debug(f"Granting {access.value} on {model} to {user}")
        grants[user] = access

    async def revoke_model(self, model: str, user: str, access: Access) -> None:
        grants = self._model(model)
        self._check_user(user)

        current = grants.get(user)
        if current is None or current < access:
            raise RemoteError(f"user does not have \"{access.value}\" access")

        LOG.debug(f"Revoking {access.value} on {model} from {user}")
        below = access.below()
        if below is None:
            del grants[user]
        else:
            grants[user] = below

    async def add_model(self, name: str) -> None:
        if name in self.models:
            raise RemoteError(f"model '{name}' already exists")
        self.models[name] = {}

    async def destroy_model(self, name: str) -> None:
        self._model(name)
        del self.models[name]

    async def add_user(self, name: str, password: str) -> None:
        if name in self.users:
            raise RemoteError(f"user '{name}' already exists")
        self.users[name] = password

    async def remove_user(self, name: str) -> None:
        self._check_user(name)
        del self.users[name]
        for grants in self.models.values():
            grants.pop(name, None)
