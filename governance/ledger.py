import time
from abc import ABC, abstractmethod
from typing import Callable, NamedTuple, Optional, TypeVar

import click

from governance.constants import RETRY_ATTEMPTS, RETRY_BACKOFF
from governance.errors import TransientLedgerError

T = TypeVar("T")


class Receipt(NamedTuple):
    """Outcome of a mined transaction."""

    txn_hash: str
    block_number: int
    status: int

    @property
    def failed(self) -> bool:
        return self.status != 1


class RetryPolicy(NamedTuple):
    attempts: int = RETRY_ATTEMPTS
    backoff: float = RETRY_BACKOFF


class Ledger(ABC):
    """
    The on-chain system as seen by the governance drivers.

    Implementations must re-read chain state on every call; nothing is cached.
    Signing is delegated to whichever accounts the implementation was
    configured with.
    """

    @abstractmethod
    def call(self, to: str, data: bytes, sender: Optional[str] = None, value: int = 0) -> bytes:
        """
        Evaluates a call as if sent from `sender` without mutating state.
        Raises ContractReverted with the raw revert data on revert.
        """
        raise NotImplementedError

    @abstractmethod
    def transact(self, to: str, data: bytes, sender: str, value: int = 0) -> Receipt:
        """
        Signs and submits a transaction from `sender` and waits for it to be mined.
        Raises ContractReverted if the transaction reverts.
        """
        raise NotImplementedError

    @abstractmethod
    def balance(self, address: str) -> int:
        """Native balance of `address`, in wei."""
        raise NotImplementedError

    @abstractmethod
    def is_local(self) -> bool:
        """True for development networks."""
        raise NotImplementedError


def with_retries(
    fn: Callable[[], T],
    policy: RetryPolicy = RetryPolicy(),
    sleep: Callable[[float], None] = time.sleep,
) -> T:
    """
    Calls `fn`, retrying on TransientLedgerError with exponential backoff.
    The last transient error is re-raised once attempts are exhausted.
    """
    attempts = max(policy.attempts, 1)
    delay = policy.backoff
    for attempt in range(1, attempts + 1):
        try:
            return fn()
        except TransientLedgerError as e:
            if attempt == attempts:
                raise
            click.secho(
                f"⚠️  Transient ledger error ({e}); retry {attempt}/{attempts - 1} "
                f"in {delay:.1f}s",
                fg="yellow",
            )
            sleep(delay)
            delay *= 2
    raise AssertionError("unreachable")
