import pytest

from governance.contracts import MiniMultisig, Timelock
from governance.errors import ContractReverted, TransientLedgerError
from governance.ledger import Ledger, RetryPolicy, with_retries
from tests.conftest import MIN_DELAY, MULTISIG_ADDRESS, OWNER_A, TIMELOCK_ADDRESS


class FlakyWriteLedger(Ledger):
    def __init__(self):
        self.submitted = 0

    def call(self, to, data, sender=None, value=0):
        return b""

    def transact(self, to, data, sender, value=0):
        self.submitted += 1
        raise TransientLedgerError("request timed out")

    def balance(self, address):
        return 0

    def is_local(self):
        return True


def test_transient_errors_are_retried_with_backoff():
    attempts = []
    sleeps = []

    def flaky():
        attempts.append(1)
        if len(attempts) < 3:
            raise TransientLedgerError("connection reset")
        return "ok"

    assert with_retries(flaky, RetryPolicy(attempts=3, backoff=2), sleep=sleeps.append) == "ok"
    assert len(attempts) == 3
    assert sleeps == [2, 4]


def test_last_transient_error_is_raised():
    sleeps = []

    def always_down():
        raise TransientLedgerError("connection refused")

    with pytest.raises(TransientLedgerError, match="connection refused"):
        with_retries(always_down, RetryPolicy(attempts=2, backoff=1), sleep=sleeps.append)
    assert sleeps == [1]


def test_other_errors_are_not_retried():
    attempts = []

    def reverting():
        attempts.append(1)
        raise ContractReverted("reverted")

    with pytest.raises(ContractReverted):
        with_retries(reverting, RetryPolicy(attempts=5, backoff=0), sleep=lambda _: None)
    assert len(attempts) == 1


def test_reads_recover_from_transient_errors(ledger, timelock):
    sleeps = []
    policy = RetryPolicy(attempts=3, backoff=0.5)
    binding = Timelock(ledger, TIMELOCK_ADDRESS, retry_policy=policy, sleep=sleeps.append)
    ledger.fail_next_calls(2)
    assert binding.min_delay() == MIN_DELAY
    assert sleeps == [0.5, 1.0]

    ledger.fail_next_calls(3)
    with pytest.raises(TransientLedgerError):
        binding.min_delay()


def test_writes_are_never_retried():
    ledger = FlakyWriteLedger()
    policy = RetryPolicy(attempts=5, backoff=0)
    binding = MiniMultisig(ledger, MULTISIG_ADDRESS, retry_policy=policy)
    with pytest.raises(TransientLedgerError):
        binding.approve(1, sender=OWNER_A)
    assert ledger.submitted == 1
