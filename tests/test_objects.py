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

from juju_access.exceptions import InvalidAccessError, InvalidGrantError
from juju_access.objects import Access, AccessModelConfig, GrantState, validate_config


def test_parse_access():
    assert Access.parse("write") is Access.WRITE
    assert Access.parse("admin") is Access.ADMIN


def test_parse_bogus_access():
    with pytest.raises(InvalidAccessError) as exc:
        Access.parse("bogus")

    assert exc.value.access == "bogus"
    assert "read, write, admin" in str(exc.value)


def test_access_ordering():
    assert Access.READ < Access.WRITE < Access.ADMIN
    assert Access.ADMIN >= Access.WRITE
    assert Access.WRITE.below() is Access.READ
    assert Access.READ.below() is None
    assert Access.WRITE.above() is Access.ADMIN
    assert Access.ADMIN.above() is None


def test_validate_config():
    config = AccessModelConfig(model="testing1", access="write", users=["tfuser-1"])

    grant = validate_config(config)

    assert grant == GrantState(model="testing1", access=Access.WRITE, users={"tfuser-1"})


def test_validate_config_without_users():
    config = AccessModelConfig(model="testing1", access="write", users=[])

    with pytest.raises(InvalidGrantError):
        validate_config(config)


def test_validate_config_checks_access_first():
    config = AccessModelConfig(model="testing1", access="bogus", users=[])

    with pytest.raises(InvalidAccessError):
        validate_config(config)


def test_grant_state_json():
    grant = GrantState(model="testing", access="read", users={"bob", "alice"})

    assert grant.id == "testing:read:alice,bob"
    assert grant.model_dump(mode="json") == {
        "model": "testing",
        "access": "read",
        "users": ["alice", "bob"],
    }
