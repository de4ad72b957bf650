#!/usr/bin/python3

import click
from ape.cli import ConnectedProviderCommand, account_option, network_option

from governance import actions
from governance.contracts import UpgradeExecutor
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


@click.command(cls=ConnectedProviderCommand)
@network_option(required=True)
@account_option()
@descriptor_option
@approver_option
@auto_option
@click.option(
    "--contract",
    "-c",
    help="Logical name or address of the Ownable2Step contract.",
    type=str,
    default="executor",
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
    contract,
    poll_interval,
    timeout,
    no_wait,
    skip_dry_run,
):
    """Makes the timelock accept a pending ownership transfer."""
    operator = Operator.from_json(
        descriptor,
        proposer=account,
        approver=load_account(approver) if approver else None,
        autosign=auto,
        poll_interval=poll_interval,
        timeout=timeout,
    )
    owned = UpgradeExecutor(operator, operator.descriptor.resolve(contract))
    timelock = operator.descriptor.address("timelock")
    click.echo(f"(i) {owned} owner={owned.owner()} pendingOwner={owned.pending_owner()}")

    operator.run(
        actions.accept_ownership(owned.address),
        verify=lambda: owned.owner() == timelock,
        dry_run=not skip_dry_run,
        wait=not no_wait,
    )


if __name__ == "__main__":
    cli()
