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
    tag_option,
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
    "--unpause",
    help="Unpause instead of pause.",
    is_flag=True,
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
    unpause,
    tag,
    poll_interval,
    timeout,
    no_wait,
    skip_dry_run,
):
    """Pauses or unpauses the token through the timelock."""
    operator = Operator.from_json(
        descriptor,
        proposer=account,
        approver=load_account(approver) if approver else None,
        autosign=auto,
        poll_interval=poll_interval,
        timeout=timeout,
    )
    token = Token(operator, operator.descriptor.address("tokenProxy"))
    want_paused = not unpause
    if token.paused() == want_paused:
        click.echo(f"(i) {token} is already {'paused' if want_paused else 'unpaused'}")
        return

    build = actions.unpause if unpause else actions.pause
    operator.run(
        build(token.address, tag=tag),
        verify=lambda: token.paused() == want_paused,
        dry_run=not skip_dry_run,
        wait=not no_wait,
    )


if __name__ == "__main__":
    cli()
