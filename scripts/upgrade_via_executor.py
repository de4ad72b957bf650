#!/usr/bin/python3

import click
from ape.cli import ConnectedProviderCommand, account_option, network_option

from governance import actions
from governance.constants import OperationState
from governance.contracts import UpgradeExecutor
from governance.errors import NotReady
from governance.options import (
    approver_option,
    auto_option,
    descriptor_option,
    no_wait_option,
    poll_interval_option,
    skip_dry_run_option,
    timeout_option,
)
from governance.transactor import Operator, load_account
from governance.types import ChecksumAddress, HexData

SCHEDULE, EXECUTE = "schedule", "execute"


@click.command(cls=ConnectedProviderCommand)
@network_option(required=True)
@account_option()
@descriptor_option
@approver_option
@auto_option
@click.option(
    "--phase",
    help="Upgrade executor phase to drive through the timelock.",
    type=click.Choice([SCHEDULE, EXECUTE]),
    required=True,
)
@click.option(
    "--implementation",
    "-i",
    help="Address of the new implementation.",
    type=ChecksumAddress(),
    required=True,
)
@click.option(
    "--proxy",
    help="Logical name or address of the proxy to upgrade.",
    type=str,
    default="tokenProxy",
)
@click.option(
    "--call-data",
    help="Calldata passed to the implementation after the upgrade.",
    type=HexData(),
    default="0x",
)
@poll_interval_option
@timeout_option
@no_wait_option
@skip_dry_run_option
def cli(
    network,
    account,
    descriptor,
    approver,
    auto,
    phase,
    implementation,
    proxy,
    call_data,
    poll_interval,
    timeout,
    no_wait,
    skip_dry_run,
):
    """Schedules or executes an upgradeAndCall on the upgrade executor through the timelock."""
    operator = Operator.from_json(
        descriptor,
        proposer=account,
        approver=load_account(approver) if approver else None,
        autosign=auto,
        poll_interval=poll_interval,
        timeout=timeout,
    )
    executor = UpgradeExecutor(operator, operator.descriptor.address("executor"))
    proxy_admin = operator.descriptor.address("proxyAdmin")
    proxy = operator.descriptor.resolve(proxy)
    args = dict(
        executor=executor.address,
        proxy_admin=proxy_admin,
        proxy=proxy,
        implementation=implementation,
        data=call_data,
    )

    if phase == SCHEDULE:
        action = actions.schedule_upgrade_and_call(**args)
    else:
        action = actions.execute_upgrade_and_call(**args)
        state = operator.orchestrator.timelock_driver.status(action.operation_id)
        if state != OperationState.DONE and not executor.is_upgrade_ready(
            proxy_admin, proxy, implementation
        ):
            raise NotReady(
                f"{executor} upgrade delay ({executor.upgrade_delay()}s) has not elapsed "
                f"for {proxy} -> {implementation}"
            )

    operator.run(action, dry_run=not skip_dry_run, wait=not no_wait)


if __name__ == "__main__":
    cli()
