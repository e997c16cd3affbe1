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

import pytest

from juju_access import plan
from juju_access.exceptions import PreApplyRefreshError
from juju_access.objects import Access, AccessModelConfig, GrantState
from juju_access.plan import Action

RESOURCE_NAME = "juju_access_model.test"


def access_model(user: str, model: str, access: str):
    return {RESOURCE_NAME: AccessModelConfig(model=model, access=access, users=[user])}


def test_diff():
    grant = GrantState(model="testing", access="write", users={"alice"})

    assert plan.diff(None, None) == Action.NOOP
    assert plan.diff(grant, None) == Action.CREATE
    assert plan.diff(None, grant) == Action.DELETE
    assert plan.diff(grant, grant) == Action.NOOP
    assert plan.diff(grant, grant.with_users({"bob"})) == Action.UPDATE
    assert plan.diff(grant, GrantState(model="other", access="write",
                                       users={"alice"})) == Action.REPLACE
    assert plan.diff(grant, GrantState(model="testing", access="read",
                                       users={"alice"})) == Action.REPLACE


def test_compute_changes_orders_deletes_first():
    desired = {
        "a": GrantState(model="m1", access="read", users={"alice"}),
        "b": GrantState(model="m2", access="admin", users={"bob"}),
    }
    actual = {
        "b": GrantState(model="m2", access="write", users={"bob"}),
        "c": GrantState(model="m3", access="read", users={"carol"}),
    }

    changes = plan.compute_changes(desired, actual)

    assert [(c.address, c.action) for c in changes] == [
        ("c", Action.DELETE),
        ("b", Action.REPLACE),
        ("a", Action.CREATE),
    ]


@pytest.mark.asyncio
async def test_apply_bogus_access_fails_before_any_change(resource, env, controller):
    model, user = await env.add_model_and_user("testing1")

    with pytest.raises(PreApplyRefreshError, match="Error running pre-apply refresh.*"):
        await plan.apply(resource, access_model(user, model, "bogus"), {})

    assert controller.calls == []
    assert controller.models[model] == {}


@pytest.mark.asyncio
async def test_apply_edge_flow(resource, env, controller):
    """Apply, import and recreate a grant against a new model and user."""
    model, user = await env.add_model_and_user("testing1")

    with pytest.raises(PreApplyRefreshError):
        await plan.apply(resource, access_model(user, model, "bogus"), {})

    state = (await plan.apply(resource, access_model(user, model, "write"), {})).state
    grant = state[RESOURCE_NAME]
    assert grant.model == "testing1"
    assert grant.access is Access.WRITE
    assert user in grant.users

    imported = await plan.import_grant(resource, RESOURCE_NAME,
                                       f"{model}:write:{user}", {})
    assert imported == state

    state = (await plan.apply(resource, {}, state)).state
    assert state == {}
    assert controller.models[model] == {user: Access.READ}

    await env.tear_down(model, user)
    model2, user2 = await env.add_model_and_user("testing2")

    state = (await plan.apply(resource, access_model(user2, model2, "write"), state)).state
    grant = state[RESOURCE_NAME]
    assert grant == GrantState(model="testing2", access="write", users={user2})
    assert controller.models[model2] == {user2: Access.WRITE}


@pytest.mark.asyncio
async def test_apply_is_idempotent(resource, env, controller):
    model, user = await env.add_model_and_user("testing")
    configs = access_model(user, model, "write")

    state = (await plan.apply(resource, configs, {})).state
    calls = len(controller.calls)
    again = (await plan.apply(resource, configs, state)).state

    assert again == state
    assert len(controller.calls) == calls


@pytest.mark.asyncio
async def test_apply_recreates_revoked_grant(resource, env, controller):
    model, user = await env.add_model_and_user("testing")
    configs = access_model(user, model, "write")
    state = (await plan.apply(resource, configs, {})).state

    await controller.revoke_model(model, user, Access.READ)
    refreshed = await plan.refresh(resource, state)
    assert refreshed == {}

    state = (await plan.apply(resource, configs, state)).state
    assert controller.models[model] == {user: Access.WRITE}
    assert RESOURCE_NAME in state


@pytest.mark.asyncio
async def test_apply_replaces_on_access_change(resource, env, controller):
    model, user = await env.add_model_and_user("testing")
    state = (await plan.apply(resource, access_model(user, model, "admin"), {})).state

    state = (await plan.apply(resource, access_model(user, model, "read"), state)).state

    assert state[RESOURCE_NAME].access is Access.READ
    assert controller.models[model] == {user: Access.READ}


@pytest.mark.asyncio
async def test_import_into_managed_address(resource, env):
    model, user = await env.add_model_and_user("testing")
    state = (await plan.apply(resource, access_model(user, model, "read"), {})).state

    with pytest.raises(ValueError):
        await plan.import_grant(resource, RESOURCE_NAME, f"{model}:read:{user}", state)


@pytest.mark.asyncio
async def test_apply_keeps_state_of_applied_changes(resource, env, controller):
    model, alice = await env.add_model_and_user("m1", "alice")
    configs = {
        "juju_access_model.a": AccessModelConfig(model=model, access="write", users=[alice]),
        "juju_access_model.b": AccessModelConfig(model=model, access="write", users=["ghost"]),
    }

    result = await plan.apply(resource, configs, {})

    assert list(result.state) == ["juju_access_model.a"]
    assert result.error.startswith("juju_access_model.b: ")
    assert "ghost" in result.error
    assert controller.models[model] == {alice: Access.WRITE}
