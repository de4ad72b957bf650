#!/usr/bin/python3

import click
from ape.cli import ConnectedProviderCommand, account_option, network_option

from governance import actions
from governance.constants import RETRYABLE_BUMP_PCT
from governance.contracts import L1Governance
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
    "--unpause",
    help="Unpause instead of pause.",
    is_flag=True,
)
@click.option(
    "--staking",
    help="Toggle the staking pause instead of the token pause.",
    is_flag=True,
)
@click.option(
    "--value",
    help="Wei attached to the relayed call; pass the scheduled value when resuming. "
    "Defaults to the quoted retryable cost plus --bump-pct.",
    type=MinInt(1),
    default=None,
)
@click.option(
    "--bump-pct",
    help="Headroom over the quoted retryable cost, in percent.",
    type=MinInt(0),
    default=RETRYABLE_BUMP_PCT,
    show_default=True,
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
    staking,
    value,
    bump_pct,
    tag,
    poll_interval,
    timeout,
    no_wait,
    skip_dry_run,
):
    """Pauses or unpauses the L2 token through the L1 governance relay."""
    operator = Operator.from_json(
        descriptor,
        proposer=account,
        approver=load_account(approver) if approver else None,
        autosign=auto,
        poll_interval=poll_interval,
        timeout=timeout,
    )
    governance = L1Governance(operator, operator.descriptor.address("l1Governance"))

    build = actions.l2_set_staking_pause if staking else actions.l2_set_pause
    l2_data = build(not unpause)
    if value is None:
        quote = governance.quote_retryable(l2_data)
        value = governance.required_value(l2_data, bump_pct=bump_pct)
        click.echo(
            f"(i) Retryable quote: submission={quote.submission_fee} gas={quote.gas_fee} "
            f"total={quote.total} wei; attaching {value} wei (+{bump_pct}%)"
        )
    click.echo(f"(i) To resume this operation later, rerun with --value {value}")

    operator.run(
        actions.call_l2(governance.address, l2_data, value, tag=tag),
        dry_run=not skip_dry_run,
        wait=not no_wait,
    )


if __name__ == "__main__":
    cli()
