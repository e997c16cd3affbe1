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

"""The juju_access_model resource.

Grants users an access level on a model. The resource owns the grant
only, the model and the users are expected to exist already and are
never created or removed here.
"""

from typing import Dict, List, Optional, Set

from oslo_log import log as logging

from juju_access.exceptions import (
    InvalidAccessError,
    NotFoundError,
    ParseError,
    RemoteError,
    ValidationError,
)
from juju_access.objects import Access, AccessModelConfig, GrantState, validate_config
from juju_access.resources import Resource, ResourceStatus

LOG = logging.getLogger(__name__)

ID_SEPARATOR = ":"


def parse_import_id(import_id: str) -> GrantState:
    """Parses an import identifier of the form model:access:user.

    :param import_id: the identifier to parse
    :return: the grant described by the identifier
    :raises ParseError: if the identifier is malformed
    :raises InvalidAccessError: if the access level is unknown
    """
    fields = import_id.split(ID_SEPARATOR)
    if len(fields) != 3 or not all(fields):
        raise ParseError(f"Invalid import id '{import_id}', expected "
                         "<model>:<access>:<user>")

    model, access, user = fields
    return GrantState(model=model, access=Access.parse(access), users={user})


def format_import_id(model: str, access: Access, user: str) -> str:
    return ID_SEPARATOR.join([model, access.value, user])


class AccessModelResource(Resource):
    """Reconciles a (model, access, users) grant against the controller."""

    type_name = "juju_access_model"

    def validate(self, config: AccessModelConfig) -> GrantState:
        """Validates the declared configuration.

        Nothing is sent to the controller, an invalid configuration leaves
        the resource in the INVALID status.
        """
        self._set_status(ResourceStatus.VALIDATING)
        try:
            grant = validate_config(config)
        except ValidationError:
            self._set_status(ResourceStatus.INVALID)
            raise

        self._set_status(ResourceStatus.PLANNED)
        return grant

    async def _set_level(self, model: str, user: str, current: Optional[Access],
                         access: Optional[Access]) -> None:
        """Moves the user's level on the model from current to access.

        A None level means no access at all.
        """
        if current == access:
            return

        if access is not None and (current is None or current < access):
            await self.client.grant_model(model, user, access)
            return

        # Revoking a level leaves the level below it, so revoke the level
        # just above the target.
        revoke = access.above() if access is not None else Access.READ
        await self.client.revoke_model(model, user, revoke)

    async def _set_levels(self, model: str, current: Dict[str, Access],
                          targets: Dict[str, Optional[Access]]) -> None:
        """Sets the level of several users, restoring all of them on failure."""
        changed: List[str] = []
        try:
            for user in sorted(targets):
                await self._set_level(model, user, current.get(user), targets[user])
                changed.append(user)
        except (RemoteError, NotFoundError):
            LOG.error(f"Failed to change access on model {model}, rolling back "
                      f"users {changed}")
            for user in reversed(changed):
                try:
                    await self._set_level(model, user, targets[user], current.get(user))
                except (RemoteError, NotFoundError):
                    LOG.exception(f"Unable to restore access of {user} on {model}")
            raise

    async def _check_exists(self, grant: GrantState) -> None:
        if not await self.client.model_exists(grant.model):
            raise NotFoundError(f"model '{grant.model}' not found")

        for user in sorted(grant.users):
            if not await self.client.user_exists(user):
                raise NotFoundError(f"user '{user}' not found")

    async def create(self, grant: GrantState) -> GrantState:
        """Grants the access level on the model to every user.

        Users already holding another level on the model are moved to the
        requested one. Either every user ends up with the level or none of
        them is changed.
        """
        self._set_status(ResourceStatus.CREATING)
        LOG.info(f"Granting {grant.access.value} access on model {grant.model} "
                 f"to {sorted(grant.users)}")
        await self._check_exists(grant)

        current = await self.client.get_model_access(grant.model)
        await self._set_levels(grant.model, current,
                               {user: grant.access for user in grant.users})

        self._set_status(ResourceStatus.CREATED)
        return grant

    async def read(self, grant: GrantState) -> GrantState:
        """Refreshes the grant from the controller.

        :param grant: the recorded grant
        :return: the grant restricted to the users still holding the level
        :raises NotFoundError: if the model is gone or no user holds the
            level anymore
        """
        self._set_status(ResourceStatus.READING)
        current = await self.client.get_model_access(grant.model)

        users: Set[str] = {u for u in grant.users if current.get(u) == grant.access}
        if not users:
            raise NotFoundError(f"No users hold {grant.access.value} access on "
                                f"model {grant.model}")

        if users != grant.users:
            LOG.info(f"Access of {sorted(grant.users - users)} on model {grant.model} "
                     "has changed outside of juju-access")

        self._set_status(ResourceStatus.CREATED)
        return grant.with_users(users)

    async def update(self, current: GrantState, desired: GrantState) -> GrantState:
        """Changes the set of users holding the grant.

        The model and access level of both grants must be the same.
        """
        if (current.model, current.access) != (desired.model, desired.access):
            raise ValueError("Only the users of a grant can be updated")

        added = desired.users - current.users
        removed = current.users - desired.users
        LOG.info(f"Updating {desired.access.value} access on model {desired.model}: "
                 f"adding {sorted(added)}, removing {sorted(removed)}")

        for user in added:
            if not await self.client.user_exists(user):
                raise NotFoundError(f"user '{user}' not found")

        levels = await self.client.get_model_access(desired.model)
        targets: Dict[str, Optional[Access]] = {user: desired.access for user in added}
        for user in removed:
            if levels.get(user) == current.access:
                targets[user] = current.access.below()
        await self._set_levels(desired.model, levels, targets)

        self._set_status(ResourceStatus.CREATED)
        return desired

    async def destroy(self, grant: GrantState) -> None:
        """Revokes the access level from every user of the grant.

        Only users holding exactly the granted level are changed, like in
        read. Models or users which no longer exist are skipped.
        """
        self._set_status(ResourceStatus.DESTROYING)
        LOG.info(f"Revoking {grant.access.value} access on model {grant.model} "
                 f"from {sorted(grant.users)}")
        try:
            current = await self.client.get_model_access(grant.model)
        except NotFoundError:
            LOG.info(f"Model {grant.model} is already gone, nothing to revoke")
            self._set_status(ResourceStatus.DESTROYED)
            return

        for user in sorted(grant.users):
            level = current.get(user)
            if level != grant.access:
                LOG.info(f"User {user} no longer holds {grant.access.value} access "
                         f"on model {grant.model}")
                continue
            try:
                await self.client.revoke_model(grant.model, user, grant.access)
            except NotFoundError:
                LOG.info(f"User {user} or model {grant.model} is already gone")

        self._set_status(ResourceStatus.DESTROYED)

    async def import_state(self, import_id: str) -> GrantState:
        """Imports an existing grant from a model:access:user identifier."""
        LOG.info(f"Importing {self.type_name} {import_id}")
        try:
            grant = parse_import_id(import_id)
        except InvalidAccessError as e:
            raise ParseError(f"Invalid import id '{import_id}': {e}") from e

        return await self.read(grant)
