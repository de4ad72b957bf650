#!/usr/bin/python3

import click
from ape.cli import ConnectedProviderCommand, account_option, network_option

from governance import actions
from governance.options import (
    approver_option,
    auto_option,
    descriptor_option,
    no_wait_option,
    poll_interval_option,
    skip_dry_run_option,
    tag_option,
    timeout_option,
)
from governance.transactor import Operator, load_account
from governance.types import MinInt


@click.command(cls=ConnectedProviderCommand)
@network_option(required=True)
@account_option()
@descriptor_option
@approver_option
@auto_option
@click.option(
    "--delay",
    help="New minimum delay of the timelock, in seconds.",
    type=MinInt(0),
    required=True,
)
@tag_option
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
    delay,
    tag,
    poll_interval,
    timeout,
    no_wait,
    skip_dry_run,
):
    """Changes the timelock's minimum delay (the timelock calls itself)."""
    operator = Operator.from_json(
        descriptor,
        proposer=account,
        approver=load_account(approver) if approver else None,
        autosign=auto,
        poll_interval=poll_interval,
        timeout=timeout,
    )
    timelock = operator.orchestrator.timelock
    click.echo(f"(i) Current minimum delay: {timelock.min_delay()}s")

    operator.run(
        actions.update_delay(timelock.address, delay, tag=tag),
        verify=lambda: timelock.min_delay() == delay,
        dry_run=not skip_dry_run,
        wait=not no_wait,
    )


if __name__ == "__main__":
    cli()
