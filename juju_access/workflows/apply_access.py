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

"""Temporal Workflows for applying and importing model access grants."""

import asyncio
import sys
from datetime import timedelta
from typing import Dict, List, Optional

from temporalio import workflow
from temporalio.client import Client, WorkflowFailureError
from temporalio.common import RetryPolicy
from temporalio.exceptions import ActivityError, ApplicationError

with workflow.unsafe.imports_passed_through():
    from oslo_config import cfg
    from oslo_log import log as logging

    import juju_access.conf
    from juju_access import config, controller, plan, state
    from juju_access.activities import access
    from juju_access.converters import pydantic_data_converter
    from juju_access.exceptions import AccessError, PreApplyRefreshError
    from juju_access.objects import AccessModelConfig, GrantState
    from juju_access.resources.access_model import AccessModelResource


CONF = juju_access.conf.CONF
LOG = logging.getLogger(__name__)

# Errors which will fail the same way however often they are retried.
NON_RETRYABLE_ERRORS = [
    "InvalidAccessError",
    "InvalidGrantError",
    "PreApplyRefreshError",
    "ParseError",
    "ValueError",
]


def _activity_options() -> dict:
    return dict(
        start_to_close_timeout=timedelta(seconds=CONF.controller.timeout),
        retry_policy=RetryPolicy(
            initial_interval=timedelta(seconds=CONF.controller.retry_interval),
            maximum_attempts=CONF.controller.max_attempts,
            non_retryable_error_types=NON_RETRYABLE_ERRORS,
        ),
    )


def _cause(error: ActivityError) -> str:
    if isinstance(error.cause, ApplicationError):
        return error.cause.message
    return str(error.cause)


@workflow.defn
class ApplyAccessWorkflow:
    """Workflow reconciling the declared grants with the controller."""

    @workflow.run
    async def run(self, configs: Dict[str, AccessModelConfig],
                  current: Dict[str, GrantState]) -> plan.ApplyResult:
        """Apply the declared grants.

        The declared grants are validated and the recorded ones refreshed
        first. A failure there fails the workflow with a pre-apply refresh
        error before any grant is changed. Changes are then applied in
        order; a failing change stops the apply and the state reached so
        far is returned along with the error.

        :param configs: the declared grants per resource address
        :param current: the recorded state per resource address
        :return: the new state
        """
        LOG.info(f"Applying {len(configs)} access grants")
        try:
            desired = await workflow.execute_activity(
                access.validate_grants, args=[configs], **_activity_options()
            )
            actual = await workflow.execute_activity(
                access.refresh_grants, args=[current], **_activity_options()
            )
        except ActivityError as e:
            message = _cause(e)
            if getattr(e.cause, "type", None) != "PreApplyRefreshError":
                message = str(PreApplyRefreshError(message))
            raise ApplicationError(
                message, type="PreApplyRefreshError", non_retryable=True
            ) from e

        result = plan.ApplyResult(state=dict(actual))
        for change in plan.compute_changes(desired, actual):
            try:
                grant = await workflow.execute_activity(
                    access.apply_change, args=[change], **_activity_options()
                )
            except ActivityError as e:
                LOG.error(f"Failed to {change.action.value} {change.address}: {_cause(e)}")
                result.error = f"{change.address}: {_cause(e)}"
                break

            if grant is None:
                result.state.pop(change.address, None)
            else:
                result.state[change.address] = grant

        return result


@workflow.defn
class ImportAccessWorkflow:
    """Workflow importing an existing grant."""

    @workflow.run
    async def run(self, import_id: str) -> GrantState:
        return await workflow.execute_activity(
            access.import_grant, args=[import_id], **_activity_options()
        )


def add_command_parsers(subparsers):
    apply_parser = subparsers.add_parser("apply", help="Apply the declared grants.")
    apply_parser.add_argument(
        "--grants", dest="grants", required=True,
        help="Path of the JSON file declaring the grants."
    )

    import_parser = subparsers.add_parser("import", help="Import an existing grant.")
    import_parser.add_argument(
        "address", help="Resource address to import to, e.g. juju_access_model.test"
    )
    import_parser.add_argument("id", help="Import id in the form <model>:<access>:<user>")


cli_opts = [
    cfg.StrOpt(
        "state", default="juju-access.tfstate.json", help="Path of the state file."
    ),
    cfg.BoolOpt(
        "local", default=False,
        help="Apply in process instead of running the workflow on Temporal."
    ),
    cfg.SubCommandOpt(
        "command", title="Commands", handler=add_command_parsers,
        help="The operation to run."
    ),
]


def setup_opts(conf: cfg.ConfigOpts):
    """Register the CLI options.

    The options are parsed together with the oslo.config and oslo.log
    ones, so --config-file and friends go before the command.

    :param conf: configuration option manager
    """
    conf.register_cli_opts(cli_opts)


async def _run_local() -> plan.ApplyResult:
    client = controller.get_client()
    resource = AccessModelResource(client)
    current = state.load_state(CONF.state)
    try:
        if CONF.command.name == "import":
            new_state = await plan.import_grant(resource, CONF.command.address,
                                                CONF.command.id, current)
            return plan.ApplyResult(state=new_state)

        return await plan.apply(resource, state.load_configs(CONF.command.grants), current)
    finally:
        await client.close()


async def _run_workflow() -> plan.ApplyResult:
    current = state.load_state(CONF.state)
    if CONF.command.name == "import" and CONF.command.address in current:
        raise ValueError(f"{CONF.command.address} is already managed, remove it "
                         "before importing")

    # Create client connected to server at the given address.
    client = await Client.connect(
        f"{CONF.temporal.host}:{CONF.temporal.port}", namespace=CONF.temporal.namespace,
        data_converter=pydantic_data_converter,
    )

    if CONF.command.name == "import":
        grant = await client.execute_workflow(
            ImportAccessWorkflow.run,
            CONF.command.id,
            id=f"juju-access-import-{CONF.command.id}",
            task_queue=CONF.temporal.task_queue,
        )
        current[CONF.command.address] = grant
        return plan.ApplyResult(state=current)

    return await client.execute_workflow(
        ApplyAccessWorkflow.run,
        args=[state.load_configs(CONF.command.grants), current],
        id=f"juju-access-apply-{CONF.state}",
        task_queue=CONF.temporal.task_queue,
        result_type=plan.ApplyResult,
    )


async def async_main(argv: Optional[List[str]] = None):
    """Async entry point for the apply workflow.

    :param argv: list of CLI arguments
    :return: the exit code, 1 if anything failed
    """
    if argv is None:
        argv = sys.argv

    setup_opts(CONF)
    config.parse_args(argv)
    logging.setup(CONF, "juju-access")

    if CONF.command.name is None:
        print("Error: a command is required (apply, import)", file=sys.stderr)
        return 1

    try:
        if CONF.local:
            result = await _run_local()
        else:
            result = await _run_workflow()
    except (AccessError, ValueError) as e:
        LOG.error(f"Failed to {CONF.command.name}: {e}")
        print(f"Error: {e}", file=sys.stderr)
        return 1
    except WorkflowFailureError as e:
        LOG.error(f"Workflow failed: {e.cause}")
        print(f"Error: {e.cause or e}", file=sys.stderr)
        return 1

    state.save_state(CONF.state, result.state)
    for address, grant in sorted(result.state.items()):
        print(f"{address}: {grant.id}")

    if result.error:
        print(f"Error: {result.error}", file=sys.stderr)
        return 1
    return 0


def main(argv: Optional[List[str]] = None):
    """Entry point for the apply workflow.

    :param argv: list of CLI arguments.
    """
    return asyncio.run(async_main(argv))
