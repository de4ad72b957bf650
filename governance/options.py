import click

from governance.types import MinInt

descriptor_option = click.option(
    "--descriptor",
    "-d",
    help="Path to the deployment descriptor (JSON) of the governed contracts.",
    type=click.Path(exists=True, dir_okay=False),
    required=True,
)

approver_option = click.option(
    "--approver",
    help="Alias of the second multisig owner; without it the run waits for an external approval.",
    type=str,
    default=None,
)

auto_option = click.option(
    "--auto",
    help="Automatically sign transactions.",
    is_flag=True,
)

poll_interval_option = click.option(
    "--poll-interval",
    help="Seconds between ledger polls while waiting.",
    type=MinInt(1),
    default=None,
)

timeout_option = click.option(
    "--timeout",
    help="Seconds to wait for approval or for the timelock delay before giving up.",
    type=MinInt(1),
    default=None,
)

no_wait_option = click.option(
    "--no-wait",
    help="Stop after scheduling; rerun later to execute.",
    is_flag=True,
)

skip_dry_run_option = click.option(
    "--skip-dry-run",
    help="Do not simulate the call from the timelock before scheduling.",
    is_flag=True,
)

tag_option = click.option(
    "--tag",
    help="Distinguishes repetitions of an otherwise identical action.",
    type=str,
    default=None,
)
