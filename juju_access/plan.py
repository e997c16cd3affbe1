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

"""Planning and applying access grant configurations.

An apply runs in three phases:

1. pre-apply refresh: every declared grant is validated and every grant
   recorded in the state is read back from the controller,
2. diff: the desired grants are compared to the refreshed state,
3. apply: the resulting changes are executed one at a time.

Nothing is sent to the controller before every declared grant is valid.
"""

import enum
from typing import Dict, List, Optional

from oslo_log import log as logging
from pydantic import BaseModel

from juju_access.exceptions import (
    AccessError,
    NotFoundError,
    PreApplyRefreshError,
    ValidationError,
)
from juju_access.objects import AccessModelConfig, GrantState
from juju_access.resources.access_model import AccessModelResource

LOG = logging.getLogger(__name__)

State = Dict[str, GrantState]


class Action(str, enum.Enum):
    NOOP = "noop"
    CREATE = "create"
    UPDATE = "update"
    REPLACE = "replace"
    DELETE = "delete"


# Deletes run first so that a replaced grant is gone before its
# successor is created.
ACTION_ORDER = [Action.DELETE, Action.REPLACE, Action.UPDATE, Action.CREATE]


class ApplyResult(BaseModel):
    """The state reached by an apply, and the error which stopped it."""
    state: State = {}
    error: Optional[str] = None


class Change(BaseModel):
    """A change to a single resource address."""
    address: str
    action: Action
    desired: Optional[GrantState] = None
    actual: Optional[GrantState] = None


def diff(desired: Optional[GrantState], actual: Optional[GrantState]) -> Action:
    """Returns the action needed to move from the actual to the desired grant.

    :param desired: the declared grant, None if it is no longer declared
    :param actual: the refreshed grant, None if it does not exist
    :return: the Action to perform
    """
    if desired is None and actual is None:
        return Action.NOOP
    if actual is None:
        return Action.CREATE
    if desired is None:
        return Action.DELETE
    if (desired.model, desired.access) != (actual.model, actual.access):
        return Action.REPLACE
    if desired.users != actual.users:
        return Action.UPDATE
    return Action.NOOP


def validate(resource: AccessModelResource,
             configs: Dict[str, AccessModelConfig]) -> State:
    """Validates the declared configurations.

    :raises PreApplyRefreshError: if any configuration is invalid
    """
    desired: State = {}
    for address, config in sorted(configs.items()):
        try:
            desired[address] = resource.validate(config)
        except ValidationError as e:
            LOG.error(f"Invalid configuration for {address}: {e}")
            raise PreApplyRefreshError(f"{address}: {e}") from e
    return desired


async def refresh(resource: AccessModelResource, state: State) -> State:
    """Reads every recorded grant back from the controller.

    Grants which no longer exist are dropped from the returned state so
    that the next apply creates them again.
    """
    refreshed: State = {}
    for address, grant in sorted(state.items()):
        try:
            refreshed[address] = await resource.read(grant)
        except NotFoundError as e:
            LOG.warning(f"{address} no longer exists and will be recreated: {e}")
    return refreshed


def compute_changes(desired: State, actual: State) -> List[Change]:
    """Returns the changes needed to reach the desired state, in apply order."""
    changes = []
    for address in sorted(set(desired) | set(actual)):
        action = diff(desired.get(address), actual.get(address))
        if action == Action.NOOP:
            continue
        changes.append(Change(address=address, action=action,
                              desired=desired.get(address), actual=actual.get(address)))

    return sorted(changes, key=lambda c: ACTION_ORDER.index(c.action))


async def apply_change(resource: AccessModelResource, change: Change) -> Optional[GrantState]:
    """Executes a single change.

    :return: the new grant state for the address, None if it was deleted
    """
    LOG.info(f"{change.address}: {change.action.value}")
    if change.action == Action.CREATE:
        return await resource.create(change.desired)

    if change.action == Action.UPDATE:
        return await resource.update(change.actual, change.desired)

    if change.action == Action.REPLACE:
        await resource.destroy(change.actual)
        return await resource.create(change.desired)

    if change.action == Action.DELETE:
        await resource.destroy(change.actual)
        return None

    return change.actual


async def apply(resource: AccessModelResource, configs: Dict[str, AccessModelConfig],
                state: State) -> ApplyResult:
    """Applies the declared configurations.

    Changes are applied one at a time. The first failing change stops the
    apply, the state reached so far is returned along with the error so
    that the grants already applied stay tracked.

    :raises PreApplyRefreshError: if a declared grant is invalid
    """
    desired = validate(resource, configs)
    actual = await refresh(resource, state)

    result = ApplyResult(state=dict(actual))
    for change in compute_changes(desired, actual):
        try:
            grant = await apply_change(resource, change)
        except (AccessError, ValueError) as e:
            LOG.error(f"Failed to {change.action.value} {change.address}: {e}")
            result.error = f"{change.address}: {e}"
            break

        if grant is None:
            result.state.pop(change.address, None)
        else:
            result.state[change.address] = grant

    return result


async def import_grant(resource: AccessModelResource, address: str, import_id: str,
                       state: State) -> State:
    """Imports an existing grant into the state under the given address."""
    if address in state:
        raise ValueError(f"{address} is already managed, remove it before importing")

    new_state = dict(state)
    new_state[address] = await resource.import_state(import_id)
    return new_state
