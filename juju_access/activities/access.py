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

"""Activities applying access grants on the controller.

Exceptions are raised as is, Temporal reports them with their class name
which the workflow retry policy uses to tell validation failures from
transient controller failures.
"""

from typing import Dict, Optional

from temporalio import activity, workflow

with workflow.unsafe.imports_passed_through():
    from oslo_log import log as logging

    from juju_access import controller, plan
    from juju_access.objects import AccessModelConfig, GrantState
    from juju_access.resources.access_model import AccessModelResource


LOG = logging.getLogger(__name__)


@activity.defn
async def validate_grants(configs: Dict[str, AccessModelConfig]) -> Dict[str, GrantState]:
    """Validates the declared grants without contacting the controller.

    :param configs: the declared configuration per resource address
    :return: the validated grants per resource address
    """
    resource = AccessModelResource(None)
    return plan.validate(resource, configs)


@activity.defn
async def refresh_grants(state: Dict[str, GrantState]) -> Dict[str, GrantState]:
    """Reads the recorded grants back from the controller.

    :param state: the recorded grants per resource address
    :return: the grants which still exist, as found on the controller
    """
    client = controller.get_client()
    try:
        return await plan.refresh(AccessModelResource(client), state)
    finally:
        await client.close()


@activity.defn
async def apply_change(change: plan.Change) -> Optional[GrantState]:
    """Applies a single change.

    :param change: the change to apply
    :return: the resulting grant, None when the grant was removed
    """
    LOG.info(f"Applying {change.action.value} of {change.address} "
             f"(attempt {activity.info().attempt})")
    client = controller.get_client()
    try:
        return await plan.apply_change(AccessModelResource(client), change)
    finally:
        await client.close()


@activity.defn
async def import_grant(import_id: str) -> GrantState:
    """Imports an existing grant.

    :param import_id: the identifier in the form model:access:user
    :return: the imported grant
    """
    client = controller.get_client()
    try:
        return await AccessModelResource(client).import_state(import_id)
    finally:
        await client.close()
