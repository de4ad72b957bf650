#!/usr/bin/python3

import click
from ape.cli import ConnectedProviderCommand, account_option, network_option

from governance import actions
from governance.contracts import Token
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
from governance.types import ChecksumAddress


@click.command(cls=ConnectedProviderCommand)
@network_option(required=True)
@account_option()
@descriptor_option
@approver_option
@auto_option
@click.option(
    "--l1-governance",
    "-l",
    help="Address of the L1 governance contract.",
    type=ChecksumAddress(),
    required=True,
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
    l1_governance,
    poll_interval,
    timeout,
    no_wait,
    skip_dry_run,
):
    """Points the L2 token at its L1 governance through the timelock."""
    operator = Operator.from_json(
        descriptor,
        proposer=account,
        approver=load_account(approver) if approver else None,
        autosign=auto,
        poll_interval=poll_interval,
        timeout=timeout,
    )
    token = Token(operator, operator.descriptor.address("tokenProxy"))
    operator.run(
        actions.set_l1_governance(token=token.address, l1_governance=l1_governance),
        verify=lambda: token.l1_governance() == l1_governance,
        dry_run=not skip_dry_run,
        wait=not no_wait,
    )


if __name__ == "__main__":
    cli()
