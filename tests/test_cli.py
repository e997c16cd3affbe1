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

import json

import pytest

import juju_access.conf
from juju_access import controller, state
from juju_access.controller.memory import MemoryController
from juju_access.objects import Access, GrantState
from juju_access.workflows import apply_access

CONF = juju_access.conf.CONF


@pytest.fixture
def memory_controller(monkeypatch):
    memory = MemoryController()
    monkeypatch.setattr(controller, "_memory_controller", memory)
    yield memory
    CONF.reset()


@pytest.fixture
def config_file(tmp_path):
    path = tmp_path / "juju_access.conf"
    path.write_text("[controller]\ndriver = memory\n")
    return str(path)


def write_grants(tmp_path, grants):
    path = tmp_path / "grants.json"
    path.write_text(json.dumps(grants))
    return str(path)


@pytest.mark.asyncio
async def test_local_apply_then_import(tmp_path, memory_controller, config_file):
    await memory_controller.add_model("testing1")
    await memory_controller.add_user("tfuser", "tf-test-user")
    grants = write_grants(tmp_path, {
        "juju_access_model.test": {"model": "testing1", "access": "write",
                                   "users": ["tfuser"]},
    })
    applied = str(tmp_path / "applied.json")
    imported = str(tmp_path / "imported.json")

    code = await apply_access.async_main([
        "juju-access", "--config-file", config_file, "--state", applied, "--local",
        "apply", "--grants", grants,
    ])
    assert code == 0
    CONF.reset()

    code = await apply_access.async_main([
        "juju-access", "--config-file", config_file, "--state", imported, "--local",
        "import", "juju_access_model.test", "testing1:write:tfuser",
    ])
    assert code == 0

    expected = {"juju_access_model.test": GrantState(model="testing1", access="write",
                                                     users={"tfuser"})}
    assert state.load_state(applied) == expected
    assert state.load_state(imported) == expected


@pytest.mark.asyncio
async def test_local_apply_saves_partial_state(tmp_path, memory_controller, config_file,
                                               capsys):
    await memory_controller.add_model("m1")
    await memory_controller.add_user("alice", "secret")
    grants = write_grants(tmp_path, {
        "juju_access_model.a": {"model": "m1", "access": "write", "users": ["alice"]},
        "juju_access_model.b": {"model": "m1", "access": "write", "users": ["ghost"]},
    })
    path = str(tmp_path / "state.json")

    code = await apply_access.async_main([
        "juju-access", "--config-file", config_file, "--state", path, "--local",
        "apply", "--grants", grants,
    ])

    assert code == 1
    assert "Error: juju_access_model.b" in capsys.readouterr().err
    assert list(state.load_state(path)) == ["juju_access_model.a"]
    assert memory_controller.models["m1"] == {"alice": Access.WRITE}


@pytest.mark.asyncio
async def test_local_apply_bogus_access(tmp_path, memory_controller, config_file, capsys):
    await memory_controller.add_model("testing1")
    await memory_controller.add_user("tfuser", "tf-test-user")
    grants = write_grants(tmp_path, {
        "juju_access_model.test": {"model": "testing1", "access": "bogus",
                                   "users": ["tfuser"]},
    })
    path = str(tmp_path / "state.json")

    code = await apply_access.async_main([
        "juju-access", "--config-file", config_file, "--state", path, "--local",
        "apply", "--grants", grants,
    ])

    assert code == 1
    assert "Error: Error running pre-apply refresh" in capsys.readouterr().err
    assert state.load_state(path) == {}
    assert memory_controller.models["testing1"] == {}


@pytest.mark.asyncio
async def test_import_into_managed_address(tmp_path, memory_controller, config_file,
                                           capsys):
    path = str(tmp_path / "state.json")
    managed = {"juju_access_model.test": GrantState(model="testing1", access="read",
                                                    users={"tfuser"})}
    state.save_state(path, managed)

    code = await apply_access.async_main([
        "juju-access", "--config-file", config_file, "--state", path,
        "import", "juju_access_model.test", "testing1:read:tfuser",
    ])

    assert code == 1
    assert "already managed" in capsys.readouterr().err
    assert state.load_state(path) == managed
