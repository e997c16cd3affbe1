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

"""Controller client backed by python-libjuju."""

from typing import Dict

from juju import tag
from juju.client import client
from juju.controller import Controller
from juju.errors import JujuError
from oslo_log import log as logging

import juju_access.conf
from juju_access.controller import ControllerClient
from juju_access.exceptions import NotFoundError, RemoteError
from juju_access.objects import Access

LOG = logging.getLogger(__name__)
CONF = juju_access.conf.CONF


class JujuController(ControllerClient):
    """Talks to a Juju controller with the connection options from CONF.

    The connection is opened on first use.
    """

    def __init__(self):
        self._controller = None

    async def _connect(self) -> Controller:
        if self._controller is not None:
            return self._controller

        controller = Controller()
        kwargs = {}
        if CONF.controller.endpoint:
            kwargs = dict(
                endpoint=CONF.controller.endpoint,
                username=CONF.controller.username,
                password=CONF.controller.password,
            )
            if CONF.controller.ca_cert:
                with open(CONF.controller.ca_cert) as f:
                    kwargs["cacert"] = f.read()

        LOG.info(f"Connecting to controller {CONF.controller.endpoint or '(current)'}")
        try:
            await controller.connect(**kwargs)
        except JujuError as e:
            LOG.exception("Failed to connect to the controller.")
            raise RemoteError(f"Unable to connect to the controller: {e}") from e

        self._controller = controller
        return controller

    async def _model_uuid(self, model: str) -> str:
        controller = await self._connect()
        uuids = await controller.model_uuids()
        try:
            return uuids[model]
        except KeyError:
            raise NotFoundError(f"model '{model}' not found") from None

    async def model_exists(self, model: str) -> bool:
        controller = await self._connect()
        return model in await controller.list_models()

    async def user_exists(self, user: str) -> bool:
        controller = await self._connect()
        return await controller.get_user(user) is not None

    async def get_model_access(self, model: str) -> Dict[str, Access]:
        uuid = await self._model_uuid(model)
        controller = await self._connect()
        facade = client.ModelManagerFacade.from_connection(controller.connection())
        try:
            response = await facade.ModelInfo(entities=[client.Entity(tag.model(uuid))])
        except JujuError as e:
            LOG.exception(f"Failed to read the users of model {model}.")
            raise RemoteError(str(e)) from e

        info = response.results[0]
        if info.error:
            raise RemoteError(info.error.message)

        return {u.user: Access.parse(u.access) for u in info.result.users}

    async def grant_model(self, model: str, user: str, access: Access) -> None:
        uuid = await self._model_uuid(model)
        controller = await self._connect()
        try:
            await controller.grant_model(user, uuid, access.value)
        except JujuError as e:
            raise RemoteError(str(e)) from e

    async def revoke_model(self, model: str, user: str, access: Access) -> None:
        uuid = await self._model_uuid(model)
        controller = await self._connect()
        try:
            await controller.revoke_model(user, uuid, access.value)
        except JujuError as e:
            raise RemoteError(str(e)) from e

    async def add_model(self, name: str) -> None:
        controller = await self._connect()
        try:
            model = await controller.add_model(name)
        except JujuError as e:
            raise RemoteError(str(e)) from e
        await model.disconnect()

    async def destroy_model(self, name: str) -> None:
        uuid = await self._model_uuid(name)
        controller = await self._connect()
        try:
            await controller.destroy_models(uuid)
        except JujuError as e:
            raise RemoteError(str(e)) from e

    async def add_user(self, name: str, password: str) -> None:
        controller = await self._connect()
        try:
            await controller.add_user(name, password=password)
        except JujuError as e:
            raise RemoteError(str(e)) from e

    async def remove_user(self, name: str) -> None:
        if not await self.user_exists(name):
            raise NotFoundError(f"user '{name}' not found")
        controller = await self._connect()
        try:
            await controller.remove_user(name)
        except JujuError as e:
            raise RemoteError(str(e)) from e

    async def close(self) -> None:
        if self._controller is not None:
            await self._controller.disconnect()
            self._controller = None
