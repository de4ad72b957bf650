#!/usr/bin/python3

import click
from ape.cli import ConnectedProviderCommand, account_option, network_option

from governance import actions
from governance.contracts import AccessControlled
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
from governance.transactor import Operator, load_account
from governance.types import Role


@click.command(cls=ConnectedProviderCommand)
@network_option(required=True)
@account_option()
@descriptor_option
@approver_option
@auto_option
@click.option(
    "--contract",
    "-c",
    help="Logical name (e.g. tokenProxy) or address of the AccessControl contract.",
    type=str,
    default="tokenProxy",
)
@click.option(
    "--role",
    "-r",
    help="Role name (e.g. PARAMETER_ADMIN_ROLE) or bytes32 role id.",
    type=Role(),
    required=True,
)
@click.option(
    "--revokee",
    "-a",
    help="Address or logical name (e.g. multisig) losing the role.",
    type=str,
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
    contract,
    role,
    revokee,
    poll_interval,
    timeout,
    no_wait,
    skip_dry_run,
):
    """Revokes an AccessControl role through the timelock."""
    operator = Operator.from_json(
        descriptor,
        proposer=account,
        approver=load_account(approver) if approver else None,
        autosign=auto,
        poll_interval=poll_interval,
        timeout=timeout,
    )
    target = operator.descriptor.resolve(contract)
    revokee = operator.descriptor.resolve(revokee)
    access_controlled = AccessControlled(operator, target)

    operator.run(
        actions.revoke_role(target=target, role=role, account=revokee),
        verify=lambda: not access_controlled.has_role(role_id(role), revokee),
        dry_run=not skip_dry_run,
        wait=not no_wait,
    )


if __name__ == "__main__":
    cli()
