#!/usr/bin/python3

import click
from ape.cli import ConnectedProviderCommand, network_option
from eth_utils import to_hex
from hexbytes import HexBytes

from governance.constants import OperationState
from governance.identifiers import GovernanceAction
from governance.options import descriptor_option
from governance.orchestrator import Orchestrator
from governance.registry import DeploymentDescriptor
from governance.transactor import Transactor
from governance.types import Bytes32, HexData


@click.command(cls=ConnectedProviderCommand)
@network_option(required=True)
@descriptor_option
@click.option(
    "--operation-id",
    "-o",
    help="Timelock operation id to look up.",
    type=Bytes32(),
    default=None,
)
@click.option("--target", "-t", help="Logical name or address of the called contract.", type=str)
@click.option("--data", help="Calldata of the action.", type=HexData(), default="0x")
@click.option("--label", "-l", help="Label the action was scheduled with.", type=str)
def cli(network, descriptor, operation_id, target, data, label):
    """Shows the timelock state of an operation, by id or by (target, data, label)."""
    descriptor = DeploymentDescriptor.from_json(descriptor)
    orchestrator = Orchestrator.from_descriptor(Transactor(), descriptor)
    driver = orchestrator.timelock_driver

    if operation_id is None:
        if not (target and label):
            raise click.UsageError("Pass --operation-id, or --target and --label")
        action = GovernanceAction.create(
            target=descriptor.resolve(target), data=data, label=label
        )
        operation = driver.describe(action)
        click.echo(f"Label:       {action.label}")
        click.echo(f"Operation:   {to_hex(operation.operation_id)}")
        click.echo(f"Salt:        {to_hex(operation.salt)}")
        click.echo(f"Predecessor: {to_hex(operation.predecessor)}")
        click.echo(f"State:       {operation.state.name.lower()}")
        if operation.ready_at:
            click.echo(f"Ready at:    {operation.ready_at}")
        return

    operation_id = HexBytes(operation_id)
    state = driver.status(operation_id)
    click.echo(f"Operation: {to_hex(operation_id)}")
    click.echo(f"State:     {state.name.lower()}")
    if state in (OperationState.SCHEDULED, OperationState.READY):
        click.echo(f"Ready at:  {orchestrator.timelock.timestamp(operation_id)}")


if __name__ == "__main__":
    cli()
