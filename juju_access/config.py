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

"""Configuration definition and parsing."""
from typing import List, Optional

from oslo_log import log

import juju_access.conf
from juju_access import version

CONF = juju_access.conf.CONF

LOG = log.getLogger(__name__)


def parse_args(argv: List[str], default_config_files: Optional[List[str]] = None):
    """Parse command line arguments to load the configuration.

    :param argv: list of arguments to parse, argv[0] is the program name.
    :param default_config_files: Paths to configuration files to use.
    """
    log.register_options(CONF)

    CONF(
        argv[1:],
        project="juju_access",
        version=version.version_string(),
        default_config_files=default_config_files,
    )
