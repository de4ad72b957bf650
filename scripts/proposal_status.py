#!/usr/bin/python3

import click
from ape.cli import ConnectedProviderCommand, network_option
from eth_utils import to_hex

from governance.options import descriptor_option
from governance.orchestrator import Orchestrator
from governance.registry import DeploymentDescriptor
from governance.transactor import Transactor
from governance.types import MinInt


@click.command(cls=ConnectedProviderCommand)
@network_option(required=True)
@descriptor_option
@click.option(
    "--proposal-id",
    "-p",
    help="Multisig proposal id; defaults to the most recent proposals.",
    type=MinInt(0),
    default=None,
)
@click.option(
    "--count",
    "-n",
    help="Number of recent proposals to show.",
    type=MinInt(1),
    default=5,
)
def cli(network, descriptor, proposal_id, count):
    """Shows multisig proposals and their approval state."""
    descriptor = DeploymentDescriptor.from_json(descriptor)
    orchestrator = Orchestrator.from_descriptor(Transactor(), descriptor)
    multisig = orchestrator.multisig

    if proposal_id is not None:
        proposal_ids = [proposal_id]
    else:
        latest = multisig.latest_id()
        if latest is None:
            click.echo(f"(i) {multisig.multisig} has no proposals")
            return
        first = max(multisig.variant.first_id, latest - count + 1)
        proposal_ids = range(latest, first - 1, -1)

    for pid in proposal_ids:
        proposal = multisig.status(pid)
        click.echo(
            f"#{proposal.proposal_id} {proposal.state.name.lower()} "
            f"approvals={proposal.approvals}/{multisig.quorum} "
            f"target={proposal.target} value={proposal.value} "
            f"data={to_hex(proposal.data[:4])}... ({len(proposal.data)} bytes)"
        )


if __name__ == "__main__":
    cli()
