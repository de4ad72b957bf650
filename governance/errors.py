from typing import Optional

from eth_utils import to_hex
from hexbytes import HexBytes

from governance.revert import decode_revert_reason


class GovernanceError(Exception):
    """
    Base class for failures of a governance run.

    Carries enough context (operation id, proposal id, revert reason) for an
    operator to resume the action manually.
    """

    def __init__(
        self,
        message: str,
        operation_id: Optional[bytes] = None,
        proposal_id: Optional[int] = None,
        revert_reason: Optional[str] = None,
    ):
        super().__init__(message)
        self.message = message
        self.operation_id = HexBytes(operation_id) if operation_id is not None else None
        self.proposal_id = proposal_id
        self.revert_reason = revert_reason

    def __str__(self) -> str:
        details = []
        if self.operation_id is not None:
            details.append(f"operation={to_hex(self.operation_id)}")
        if self.proposal_id is not None:
            details.append(f"proposal={self.proposal_id}")
        if self.revert_reason:
            details.append(f"reason={self.revert_reason}")
        if not details:
            return self.message
        return f"{self.message} ({', '.join(details)})"


class TransientLedgerError(GovernanceError):
    """RPC timeout or connection failure; safe to retry."""


class ConfigurationError(GovernanceError):
    """Missing or malformed configuration; raised before any transaction is sent."""


class NotReady(GovernanceError):
    """The timelock delay has not elapsed yet."""


class AlreadyDone(GovernanceError):
    """Redundant execution attempt."""


class PreconditionFailed(GovernanceError):
    """A preflight simulation reverted, or a required role is missing."""


class QuorumNotMet(GovernanceError):
    """A multisig proposal does not have enough distinct approvals."""


class DuplicateProposal(GovernanceError):
    """A pending proposal with identical content already exists."""


class TimeoutExceeded(GovernanceError):
    """A local wait ran out of time; on-chain state is unchanged."""


class TransactionFailed(GovernanceError):
    """A mined transaction reported a failed status."""


class VerificationFailed(GovernanceError):
    """The post-condition of an executed action does not hold."""


class ContractReverted(GovernanceError):
    """A call or transaction reverted at the ledger."""

    def __init__(self, message: str, revert_data: bytes = b"", **kwargs):
        revert_data = HexBytes(revert_data or b"")
        kwargs.setdefault("revert_reason", decode_revert_reason(revert_data) or None)
        super().__init__(message, **kwargs)
        self.revert_data = revert_data
