import time
from typing import Callable, List, NamedTuple, Optional

import click
from eth_typing import ChecksumAddress
from eth_utils import to_checksum_address
from hexbytes import HexBytes

from governance.constants import (
    COUNTER,
    MINI,
    MULTISIG_VARIANTS,
    POLL_INTERVAL,
    PROPOSAL_SCAN_DEPTH,
    QUORUM,
    TIMEOUT,
    ZERO_ADDRESS,
    ProposalState,
)
from governance.contracts import MiniMultisig, simulate_call
from governance.errors import (
    ConfigurationError,
    ContractReverted,
    DuplicateProposal,
    PreconditionFailed,
    QuorumNotMet,
    TimeoutExceeded,
)
from governance.ledger import Receipt
from governance.revert import decode_revert_reason


class MultisigProposal(NamedTuple):
    """The multisig's view of a wrapped call."""

    proposal_id: int
    target: ChecksumAddress
    value: int
    data: bytes
    approvals: int
    executed: bool
    state: ProposalState


class SubmissionResult(NamedTuple):
    proposal_id: int
    receipt: Optional[Receipt]
    return_data: bytes
    already_executed: bool = False


class MultisigVariant(NamedTuple):
    """
    How a multisig deployment numbers its proposals. Selected by
    configuration; never probed at runtime.
    """

    name: str
    first_id: int
    latest_offset: int  # latest id == txCount() + latest_offset

    def latest_id(self, tx_count: int) -> Optional[int]:
        latest = tx_count + self.latest_offset
        if latest < self.first_id:
            return None
        return latest


VARIANTS = {
    # txCount() returns the id of the most recent proposal, ids start at 1
    MINI: MultisigVariant(name=MINI, first_id=1, latest_offset=0),
    # txCount() returns the number of proposals, ids start at 0
    COUNTER: MultisigVariant(name=COUNTER, first_id=0, latest_offset=-1),
}


def get_variant(name: str) -> MultisigVariant:
    try:
        return VARIANTS[name]
    except KeyError:
        raise ConfigurationError(
            f"Unknown multisig variant '{name}'; expected one of {', '.join(MULTISIG_VARIANTS)}"
        )


class MultisigDriver:
    """
    Pushes a single (target, value, data) call through the 2-of-2 approval
    gate: propose (owner A) -> approve (owner B) -> execute.

    Every decision is taken from a fresh read of the multisig, so a run can
    resume after any partial progress left by a previous one.
    """

    def __init__(
        self,
        multisig: MiniMultisig,
        proposer: Optional[str] = None,
        approver: Optional[str] = None,
        variant: str = MINI,
        quorum: int = QUORUM,
        scan_depth: int = PROPOSAL_SCAN_DEPTH,
        poll_interval: float = POLL_INTERVAL,
        timeout: float = TIMEOUT,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.multisig = multisig
        self.ledger = multisig.ledger
        # without a proposer the driver is read-only
        self.proposer = to_checksum_address(proposer) if proposer else None
        self.approver = to_checksum_address(approver) if approver else None
        if self.approver is not None and self.approver == self.proposer:
            raise ConfigurationError("The approving owner must differ from the proposing owner")
        if quorum < 1:
            raise ConfigurationError(f"Invalid quorum {quorum}")
        if scan_depth < 1:
            raise ConfigurationError(f"Invalid proposal scan depth {scan_depth}")
        self.variant = get_variant(variant)
        self.quorum = quorum
        self.scan_depth = scan_depth
        self.poll_interval = poll_interval
        self.timeout = timeout
        self.clock = clock
        self.sleep = sleep

    @property
    def address(self) -> ChecksumAddress:
        return self.multisig.address

    @property
    def owners(self) -> List[ChecksumAddress]:
        """The owners this driver can sign for."""
        return [owner for owner in (self.proposer, self.approver) if owner is not None]

    def require_proposer(self) -> ChecksumAddress:
        if self.proposer is None:
            raise ConfigurationError(f"No proposing owner configured for {self.multisig}")
        return self.proposer

    def _state(self, approvals: int, executed: bool) -> ProposalState:
        if executed:
            return ProposalState.EXECUTED
        if approvals >= self.quorum:
            return ProposalState.APPROVED
        if approvals > 0:
            return ProposalState.PROPOSED
        return ProposalState.NONE

    def latest_id(self) -> Optional[int]:
        return self.variant.latest_id(self.multisig.tx_count())

    def status(self, proposal_id: int) -> MultisigProposal:
        info = self.multisig.get_tx(proposal_id)
        state = self._state(info.approvals, info.executed)
        if info.target == ZERO_ADDRESS and not info.executed and info.approvals == 0:
            state = ProposalState.NONE
        return MultisigProposal(
            proposal_id=proposal_id,
            target=info.target,
            value=info.value,
            data=info.data,
            approvals=info.approvals,
            executed=info.executed,
            state=state,
        )

    def find_pending(self, target: str, value: int, data: bytes) -> Optional[int]:
        """
        Scans the most recent proposals, newest first, for a non-executed
        proposal wrapping exactly (target, value, data).
        """
        latest = self.latest_id()
        if latest is None:
            return None
        oldest = max(self.variant.first_id, latest - self.scan_depth + 1)
        for proposal_id in range(latest, oldest - 1, -1):
            info = self.multisig.get_tx(proposal_id)
            if info.executed:
                continue
            if info.matches(target, value, data):
                return proposal_id
        return None

    def propose(self, target: str, value: int, data: bytes, reuse: bool = True) -> int:
        """
        Proposes a call from the proposing owner (counts as the first approval).

        A pending proposal with identical content is reused rather than
        duplicated; with ``reuse=False`` its presence raises DuplicateProposal.
        """
        proposer = self.require_proposer()
        existing = self.find_pending(target, value, data)
        if existing is not None:
            if not reuse:
                raise DuplicateProposal(
                    f"{self.multisig} already holds a pending proposal for this call",
                    proposal_id=existing,
                )
            click.echo(f"(i) Reusing pending proposal #{existing} on {self.multisig}")
            return existing

        click.echo(f"→ Proposing call to {target} via {self.multisig} from {proposer}")
        self.multisig.propose(target, value, data, sender=proposer)

        # other owners may propose concurrently; locate ours by content
        proposal_id = self.find_pending(target, value, data)
        if proposal_id is None:
            raise PreconditionFailed(
                f"Proposal to {target} not found on {self.multisig} after proposing; "
                "check the configured multisig variant"
            )
        click.echo(f"✓ Proposed #{proposal_id}")
        return proposal_id

    def approve(self, proposal_id: int) -> Optional[Receipt]:
        """
        Adds the missing approvals of the owners this driver signs for.

        A reused proposal may have been created by another owner, so the
        proposing owner's approval is not taken for granted.
        """
        receipt = None
        for owner in self.owners:
            proposal = self.status(proposal_id)
            if proposal.state == ProposalState.NONE:
                raise PreconditionFailed(
                    f"{self.multisig} has no proposal #{proposal_id}", proposal_id=proposal_id
                )
            if proposal.executed or proposal.approvals >= self.quorum:
                break
            if self.multisig.is_approved(proposal_id, owner):
                continue
            click.echo(f"→ Approving #{proposal_id} from {owner}")
            receipt = self.multisig.approve(proposal_id, sender=owner)
        return receipt

    def await_approval(
        self,
        proposal_id: int,
        poll_interval: Optional[float] = None,
        timeout: Optional[float] = None,
    ) -> MultisigProposal:
        """Waits for other owners to bring the proposal to quorum."""
        poll_interval = self.poll_interval if poll_interval is None else poll_interval
        timeout = self.timeout if timeout is None else timeout
        deadline = self.clock() + timeout
        announced = False
        while True:
            proposal = self.status(proposal_id)
            if proposal.state in (ProposalState.APPROVED, ProposalState.EXECUTED):
                return proposal
            if proposal.state == ProposalState.NONE:
                raise PreconditionFailed(
                    f"{self.multisig} has no proposal #{proposal_id}", proposal_id=proposal_id
                )
            now = self.clock()
            if now >= deadline:
                raise TimeoutExceeded(
                    f"Proposal has {proposal.approvals}/{self.quorum} approvals after {timeout}s",
                    proposal_id=proposal_id,
                )
            if not announced:
                click.echo(
                    f"(i) Waiting for approval of #{proposal_id} "
                    f"({proposal.approvals}/{self.quorum})..."
                )
                announced = True
            self.sleep(min(poll_interval, deadline - now))

    def execute_if_ready(self, proposal_id: int) -> SubmissionResult:
        """
        Executes an approved proposal after a read-only preflight.

        The multisig reports a failing wrapped call as ``ok=False`` instead of
        reverting, so both a reverting preflight and ``ok=False`` raise
        PreconditionFailed before any gas is spent.
        """
        proposal = self.status(proposal_id)
        if proposal.state == ProposalState.NONE:
            raise PreconditionFailed(
                f"{self.multisig} has no proposal #{proposal_id}", proposal_id=proposal_id
            )
        if proposal.executed:
            click.echo(f"(i) Proposal #{proposal_id} already executed")
            return SubmissionResult(
                proposal_id=proposal_id, receipt=None, return_data=b"", already_executed=True
            )
        if proposal.approvals < self.quorum:
            raise QuorumNotMet(
                f"Proposal has {proposal.approvals}/{self.quorum} approvals",
                proposal_id=proposal_id,
            )

        proposer = self.require_proposer()
        try:
            ok, return_data = self.multisig.simulate_execute(proposal_id, sender=proposer)
        except ContractReverted as e:
            raise PreconditionFailed(
                f"Preflight of {self.multisig}.execute reverted",
                proposal_id=proposal_id,
                revert_reason=e.revert_reason,
            ) from e
        if not ok:
            raise PreconditionFailed(
                f"Wrapped call to {proposal.target} would fail",
                proposal_id=proposal_id,
                revert_reason=decode_revert_reason(return_data) or "wrapped call returned ok=false",
            )

        click.echo(f"→ Executing #{proposal_id} from {proposer}")
        try:
            receipt = self.multisig.execute(proposal_id, sender=proposer)
        except ContractReverted as e:
            raise ContractReverted(
                f"{self.multisig}.execute reverted",
                revert_data=e.revert_data,
                proposal_id=proposal_id,
            ) from e

        if not self.status(proposal_id).executed:
            raise PreconditionFailed(
                f"Wrapped call to {proposal.target} failed; proposal left unexecuted",
                proposal_id=proposal_id,
            )
        click.echo(f"✓ Executed #{proposal_id} tx={receipt.txn_hash}")
        return SubmissionResult(
            proposal_id=proposal_id, receipt=receipt, return_data=HexBytes(return_data)
        )

    def submit(self, target: str, value: int, data: bytes) -> SubmissionResult:
        """
        Drives a call end-to-end through the multisig. The wrapped call is
        first simulated as if sent by the multisig itself.
        """
        revert = simulate_call(
            self.ledger,
            sender=self.address,
            to=target,
            data=data,
            value=value,
            policy=self.multisig.retry_policy,
            sleep=self.multisig.sleep,
        )
        if revert is not None:
            raise PreconditionFailed(
                f"Call to {target} from {self.multisig} would revert",
                revert_reason=revert.revert_reason or "reverted without reason",
            )
        proposal_id = self.propose(target, value, data)
        self.approve(proposal_id)
        if self.status(proposal_id).state == ProposalState.PROPOSED:
            # the remaining approvals can only come from other owners
            self.await_approval(proposal_id)
        return self.execute_if_ready(proposal_id)
