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

"""Config options for the Juju controller connection."""

from oslo_config import cfg

controller_group = cfg.OptGroup(
    "controller",
    title="Juju Controller Connection Options",
    help="""Options under this group are used to define the connection
            details to a Juju controller and how requests to it are retried.""",
)

opts = [
    cfg.StrOpt(
        "driver",
        default="juju",
        choices=["juju", "memory"],
        help="The controller client to use. The memory driver keeps all "
        "models, users and grants in process and is meant for testing.",
    ),
    cfg.ListOpt(
        "endpoint",
        default=[],
        help="The API addresses (host:port) of the controller. When empty the "
        "current controller of the local Juju client is used.",
    ),
    cfg.StrOpt("username", help="The user to connect to the controller with."),
    cfg.StrOpt(
        "password", secret=True, help="The password to connect to the controller with."
    ),
    cfg.StrOpt("ca_cert", help="Path to the CA certificate of the controller."),
    cfg.IntOpt(
        "max_attempts",
        default=3,
        min=1,
        help="Maximum number of attempts for a controller request before failing.",
    ),
    cfg.IntOpt(
        "retry_interval",
        default=1,
        min=1,
        help="Seconds to wait before retrying a failed controller request.",
    ),
    cfg.IntOpt(
        "timeout",
        default=60,
        min=1,
        help="Seconds a single controller request may take.",
    ),
]


def register_opts(conf: cfg.CONF):
    """Register configuration options.

    :param conf: configuration option manager
    """
    conf.register_group(controller_group)
    conf.register_opts(opts, group=controller_group)
