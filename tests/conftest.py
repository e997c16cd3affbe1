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

"""Shared fixtures for the juju-access tests."""

import pytest

from juju_access.resources.access_model import AccessModelResource
from tests.fakes import AccessTestEnv, FailingController


@pytest.fixture
def controller():
    return FailingController()


@pytest.fixture
def env(controller):
    return AccessTestEnv(controller)


@pytest.fixture
def resource(controller):
    return AccessModelResource(controller)
