import time
from typing import Any, Callable, Dict, List, NamedTuple, Optional, Tuple

from eth_abi import decode, encode, is_encodable
from eth_abi.exceptions import DecodingError
from eth_typing import ChecksumAddress
from eth_utils import function_signature_to_4byte_selector, to_checksum_address
from hexbytes import HexBytes

from governance.constants import (
    ACCESS_CONTROL_ABI,
    EXECUTOR_ABI,
    L1_GOVERNANCE_ABI,
    MULTISIG_ABI,
    RETRYABLE_BUMP_PCT,
    TIMELOCK_ABI,
    TOKEN_ABI,
    ZERO_ADDRESS,
)
from governance.errors import ConfigurationError, ContractReverted, TransactionFailed
from governance.identifiers import GovernanceAction
from governance.ledger import Ledger, Receipt, RetryPolicy, with_retries


class ContractFunction:
    """A single contract function, described by its canonical signature."""

    def __init__(self, name: str, signature: str, output_types: List[str]):
        self.name = name
        self.signature = signature
        arguments = signature[signature.index("(") + 1 : -1]
        self.input_types = [t for t in arguments.split(",") if t]
        self.output_types = list(output_types)
        self.selector = HexBytes(function_signature_to_4byte_selector(signature))

    def __repr__(self) -> str:
        return f"<{self.signature}>"

    def encode_input(self, *args) -> HexBytes:
        if len(args) != len(self.input_types):
            raise ConfigurationError(
                f"{self.signature} takes {len(self.input_types)} argument(s), got {len(args)}"
            )
        for position, (abi_type, arg) in enumerate(zip(self.input_types, args)):
            if not is_encodable(abi_type, arg):
                raise ConfigurationError(
                    f"{self.signature} argument at position {position} has a value '{arg}' "
                    f"whose type does not match expected ABI type '{abi_type}'"
                )
        return HexBytes(self.selector + encode(self.input_types, list(args)))

    def decode_input(self, data: bytes) -> Tuple:
        data = HexBytes(data)
        if data[:4] != self.selector:
            raise ConfigurationError(f"calldata is not a call to {self.signature}")
        return decode(self.input_types, bytes(data[4:]))

    def decode_output(self, data: bytes) -> Any:
        if not self.output_types:
            return None
        try:
            values = decode(self.output_types, bytes(data))
        except DecodingError as e:
            raise ConfigurationError(
                f"could not decode output of {self.signature}; is this the right contract?"
            ) from e
        if len(values) == 1:
            return values[0]
        return values


class BoundContract:
    """A contract surface bound to an address on a ledger."""

    ABI: Dict[str, Tuple[str, List[str]]] = {}
    NAME = "Contract"

    def __init__(
        self,
        ledger: Ledger,
        address: str,
        retry_policy: RetryPolicy = RetryPolicy(),
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.ledger = ledger
        self.address = to_checksum_address(address)
        self.retry_policy = retry_policy
        self.sleep = sleep
        self.functions = {
            name: ContractFunction(name, signature, outputs)
            for name, (signature, outputs) in self.ABI.items()
        }

    def __repr__(self) -> str:
        return f"{self.NAME}[{self.address[:10]}]"

    def encode(self, name: str, *args) -> HexBytes:
        return self.functions[name].encode_input(*args)

    def read(self, name: str, *args, sender: Optional[str] = None) -> Any:
        """Read-only call; transient ledger errors are retried."""
        function = self.functions[name]
        data = function.encode_input(*args)
        raw = with_retries(
            lambda: self.ledger.call(self.address, data, sender=sender),
            policy=self.retry_policy,
            sleep=self.sleep,
        )
        return function.decode_output(raw)

    def balance(self) -> int:
        """Native balance of the contract, in wei."""
        return with_retries(
            lambda: self.ledger.balance(self.address), policy=self.retry_policy, sleep=self.sleep
        )

    def transact(self, name: str, *args, sender: str, value: int = 0) -> Receipt:
        """State-changing call; never retried."""
        data = self.encode(name, *args)
        receipt = self.ledger.transact(self.address, data, sender=sender, value=value)
        if receipt.failed:
            raise TransactionFailed(
                f"{self}.{name} transaction {receipt.txn_hash} failed with status {receipt.status}"
            )
        return receipt


class Timelock(BoundContract):
    ABI = TIMELOCK_ABI
    NAME = "Timelock"

    def proposer_role(self) -> bytes:
        return self.read("PROPOSER_ROLE")

    def executor_role(self) -> bytes:
        return self.read("EXECUTOR_ROLE")

    def has_role(self, role: bytes, account: str) -> bool:
        return self.read("hasRole", bytes(role), account)

    def is_open_role(self, role: bytes) -> bool:
        """A role granted to the zero address may be used by anyone."""
        return self.has_role(role, ZERO_ADDRESS)

    def min_delay(self) -> int:
        return self.read("getMinDelay")

    def timestamp(self, operation_id: bytes) -> int:
        return self.read("getTimestamp", bytes(operation_id))

    def hash_operation(self, action: GovernanceAction) -> HexBytes:
        return HexBytes(
            self.read(
                "hashOperation",
                action.target,
                action.value,
                action.data,
                bytes(action.predecessor),
                bytes(action.salt),
            )
        )

    def is_operation(self, operation_id: bytes) -> bool:
        return self.read("isOperation", bytes(operation_id))

    def is_operation_ready(self, operation_id: bytes) -> bool:
        return self.read("isOperationReady", bytes(operation_id))

    def is_operation_done(self, operation_id: bytes) -> bool:
        return self.read("isOperationDone", bytes(operation_id))

    def encode_schedule(self, action: GovernanceAction, delay: int) -> HexBytes:
        return self.encode(
            "schedule",
            action.target,
            action.value,
            action.data,
            bytes(action.predecessor),
            bytes(action.salt),
            delay,
        )

    def encode_execute(self, action: GovernanceAction) -> HexBytes:
        return self.encode(
            "execute",
            action.target,
            action.value,
            action.data,
            bytes(action.predecessor),
            bytes(action.salt),
        )


class ProposalInfo(NamedTuple):
    """Raw multisig transaction record as returned by ``getTx``."""

    target: ChecksumAddress
    value: int
    executed: bool
    approvals: int
    data: bytes

    def matches(self, target: str, value: int, data: bytes) -> bool:
        return (
            self.target == to_checksum_address(target)
            and self.value == value
            and bytes(self.data) == bytes(data)
        )


class MiniMultisig(BoundContract):
    ABI = MULTISIG_ABI
    NAME = "MiniMultisig"

    def tx_count(self) -> int:
        return self.read("txCount")

    def get_tx(self, proposal_id: int) -> ProposalInfo:
        target, value, executed, approvals, data = self.read("getTx", proposal_id)
        return ProposalInfo(
            target=to_checksum_address(target),
            value=value,
            executed=executed,
            approvals=approvals,
            data=bytes(data),
        )

    def is_approved(self, proposal_id: int, owner: str) -> bool:
        return self.read("isApproved", proposal_id, owner)

    def propose(self, target: str, value: int, data: bytes, sender: str) -> Receipt:
        return self.transact("propose", target, value, bytes(data), sender=sender)

    def approve(self, proposal_id: int, sender: str) -> Receipt:
        return self.transact("approve", proposal_id, sender=sender)

    def execute(self, proposal_id: int, sender: str) -> Receipt:
        return self.transact("execute", proposal_id, sender=sender)

    def simulate_execute(self, proposal_id: int, sender: str) -> Tuple[bool, bytes]:
        """
        Evaluates ``execute(id)`` without committing it. The multisig reports a
        failing wrapped call as ``ok=False`` rather than reverting.
        """
        ok, return_data = self.read("execute", proposal_id, sender=sender)
        return ok, bytes(return_data)


class AccessControlled(BoundContract):
    ABI = ACCESS_CONTROL_ABI
    NAME = "AccessControl"

    def default_admin_role(self) -> bytes:
        return self.read("DEFAULT_ADMIN_ROLE")

    def has_role(self, role: bytes, account: str) -> bool:
        return self.read("hasRole", bytes(role), account)


class Token(AccessControlled):
    ABI = TOKEN_ABI
    NAME = "Token"

    def l1_governance(self) -> ChecksumAddress:
        return to_checksum_address(self.read("getL1Governance"))

    def paused(self) -> bool:
        return self.read("paused")


class UpgradeExecutor(BoundContract):
    ABI = EXECUTOR_ABI
    NAME = "UpgradeExecutor"

    def owner(self) -> ChecksumAddress:
        return to_checksum_address(self.read("owner"))

    def pending_owner(self) -> ChecksumAddress:
        return to_checksum_address(self.read("pendingOwner"))

    def upgrade_delay(self) -> int:
        return self.read("upgradeDelay")

    def is_upgrade_ready(self, proxy_admin: str, proxy: str, implementation: str) -> bool:
        return self.read("isUpgradeReady", proxy_admin, proxy, implementation)


class RetryableQuote(NamedTuple):
    total: int
    submission_fee: int
    gas_fee: int


class L1Governance(BoundContract):
    """
    L1 contract that relays calls to the L2 token as retryable tickets.
    ``callL2`` must be funded with the ticket cost, so relayed actions carry value.
    """

    ABI = L1_GOVERNANCE_ABI
    NAME = "L1Governance"

    def owner(self) -> ChecksumAddress:
        return to_checksum_address(self.read("owner"))

    def quote_retryable(self, l2_data: bytes, gas_price_bid: int = 0) -> RetryableQuote:
        return RetryableQuote(*self.read("quoteRetryable", bytes(l2_data), gas_price_bid))

    def required_value(self, l2_data: bytes, bump_pct: int = RETRYABLE_BUMP_PCT) -> int:
        """Quoted ticket cost plus `bump_pct` percent headroom."""
        if bump_pct < 0:
            raise ConfigurationError(f"Invalid retryable bump {bump_pct}%")
        total = self.quote_retryable(l2_data).total
        return total + total * bump_pct // 100


def simulate_call(
    ledger: Ledger,
    sender: str,
    to: str,
    data: bytes,
    value: int = 0,
    policy: RetryPolicy = RetryPolicy(),
    sleep: Callable[[float], None] = time.sleep,
) -> Optional[ContractReverted]:
    """
    Evaluates an arbitrary call as if sent from `sender`.
    Returns the revert, if any, instead of raising it.
    """
    try:
        with_retries(
            lambda: ledger.call(to, bytes(data), sender=sender, value=value),
            policy=policy,
            sleep=sleep,
        )
    except ContractReverted as revert:
        return revert
    return None
