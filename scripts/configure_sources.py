#!/usr/bin/python3

import click
from ape.cli import ConnectedProviderCommand, account_option, network_option

from governance import actions
from governance.constants import PARAMETER_ADMIN_ROLE, SOURCES_PARAMS_FILEPATH
from governance.contracts import Token
from governance.errors import PreconditionFailed
from governance.identifiers import role_id
from governance.options import (
    approver_option,
    auto_option,
    descriptor_option,
    no_wait_option,
    poll_interval_option,
    skip_dry_run_option,
    timeout_option,
)
from governance.params import load_sources
from governance.transactor import Operator, load_account


@click.command(cls=ConnectedProviderCommand)
@network_option(required=True)
@account_option()
@descriptor_option
@approver_option
@auto_option
@click.option(
    "--params-file",
    "-p",
    help="YAML file listing the sources to configure.",
    type=click.Path(exists=True, dir_okay=False),
    default=str(SOURCES_PARAMS_FILEPATH),
)
@click.option(
    "--source",
    "-s",
    help="Only configure this source (repeatable).",
    multiple=True,
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
    params_file,
    source,
    poll_interval,
    timeout,
    no_wait,
    skip_dry_run,
):
    """Configures token data sources, one timelock operation per source."""
    sources = load_sources(params_file, only=source or None)
    operator = Operator.from_json(
        descriptor,
        proposer=account,
        approver=load_account(approver) if approver else None,
        autosign=auto,
        poll_interval=poll_interval,
        timeout=timeout,
    )
    token_address = operator.descriptor.address("tokenProxy")
    timelock_address = operator.descriptor.address("timelock")
    token = Token(operator, token_address)
    if not token.has_role(role_id(PARAMETER_ADMIN_ROLE), timelock_address):
        raise PreconditionFailed(
            f"Timelock {timelock_address} lacks {PARAMETER_ADMIN_ROLE} on {token}; "
            "grant it first (scripts/grant_role.py)"
        )

    results = operator.run_batch(
        [
            actions.configure_source(
                token=token_address,
                source=s.name,
                requires_proof=s.requires_proof,
                requires_attestation=s.requires_attestation,
            )
            for s in sources
        ],
        dry_run=not skip_dry_run,
        wait=not no_wait,
    )
    for result in results:
        click.echo(f"{result.action.label}: {result.state.name.lower()}")


if __name__ == "__main__":
    cli()
