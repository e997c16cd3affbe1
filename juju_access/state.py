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

"""Persistence of the grant state between applies."""

import os
from typing import Dict

from oslo_log import log as logging
from pydantic import TypeAdapter

from juju_access.objects import AccessModelConfig, GrantState

LOG = logging.getLogger(__name__)

_state_adapter = TypeAdapter(Dict[str, GrantState])
_config_adapter = TypeAdapter(Dict[str, AccessModelConfig])


def load_configs(path: str) -> Dict[str, AccessModelConfig]:
    """Loads the declared grants from a JSON file.

    :param path: path of the file, mapping resource addresses to grants
    :return: the declared configuration per address
    """
    with open(path, "rb") as f:
        return _config_adapter.validate_json(f.read())


def load_state(path: str) -> Dict[str, GrantState]:
    """Loads the recorded state, an empty state if the file does not exist."""
    if not os.path.exists(path):
        LOG.info(f"No state found at {path}, starting with an empty state")
        return {}

    with open(path, "rb") as f:
        return _state_adapter.validate_json(f.read())


def save_state(path: str, state: Dict[str, GrantState]) -> None:
    """Writes the state to path, replacing the previous file atomically."""
    tmp = f"{path}.tmp"
    with open(tmp, "wb") as f:
        f.write(_state_adapter.dump_json(state, indent=2))
    os.replace(tmp, path)
    LOG.debug(f"Saved state for {sorted(state)} to {path}")
