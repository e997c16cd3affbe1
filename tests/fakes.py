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

"""Test doubles and helpers for the juju-access tests."""

import uuid

from juju_access.controller.memory import MemoryController
from juju_access.exceptions import RemoteError


def random_name(prefix: str) -> str:
    return f"{prefix}-{uuid.uuid4().hex[:10]}"


class FailingController(MemoryController):
    """A MemoryController failing grants for selected users."""

    def __init__(self, fail_for=()):
        super().__init__()
        self.fail_for = set(fail_for)
        self.calls = []

    async def grant_model(self, model, user, access):
        self.calls.append(("grant", model, user, access))
        if user in self.fail_for:
            raise RemoteError(f"connection reset while granting {user}")
        await super().grant_model(model, user, access)

    async def revoke_model(self, model, user, access):
        self.calls.append(("revoke", model, user, access))
        await super().revoke_model(model, user, access)


class AccessTestEnv:
    """The controller a test runs against, along with its models and users."""

    def __init__(self, controller: MemoryController):
        self.controller = controller

    async def add_model_and_user(self, model: str, user: str = None):
        user = user or random_name("tfuser")
        await self.controller.add_model(model)
        await self.controller.add_user(user, random_name("tf-test-user"))
        return model, user

    async def tear_down(self, model: str, user: str):
        await self.controller.destroy_model(model)
        await self.controller.remove_user(user)
