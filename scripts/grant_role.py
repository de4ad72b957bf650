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
from governance.types import ChecksumAddress, Role


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
    "--grantee",
    "-g",
    help="Address receiving the role; defaults to the timelock.",
    type=ChecksumAddress(),
    default=None,
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
    grantee,
    poll_interval,
    timeout,
    no_wait,
    skip_dry_run,
):
    """Grants an AccessControl role through the timelock."""
    operator = Operator.from_json(
        descriptor,
        proposer=account,
        approver=load_account(approver) if approver else None,
        autosign=auto,
        poll_interval=poll_interval,
        timeout=timeout,
    )
    target = operator.descriptor.resolve(contract)
    grantee = grantee or operator.descriptor.address("timelock")
    access_controlled = AccessControlled(operator, target)

    operator.run(
        actions.grant_role(target=target, role=role, account=grantee),
        verify=lambda: access_controlled.has_role(role_id(role), grantee),
        dry_run=not skip_dry_run,
        wait=not no_wait,
    )


if __name__ == "__main__":
    cli()
