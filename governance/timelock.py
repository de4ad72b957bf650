import time
from typing import Callable, NamedTuple, Optional

import click
from eth_utils import to_hex
from hexbytes import HexBytes

from governance.constants import POLL_INTERVAL, TIMEOUT, OperationState
from governance.contracts import Timelock, simulate_call
from governance.errors import (
    AlreadyDone,
    ConfigurationError,
    ContractReverted,
    NotReady,
    PreconditionFailed,
    TimeoutExceeded,
)
from governance.identifiers import GovernanceAction
from governance.ledger import Receipt
from governance.multisig import MultisigDriver


class TimelockOperation(NamedTuple):
    """The timelock's view of a governance action."""

    operation_id: HexBytes
    predecessor: HexBytes
    salt: HexBytes
    ready_at: int
    state: OperationState


class ExecutionResult(NamedTuple):
    operation_id: HexBytes
    receipt: Optional[Receipt]
    already_done: bool = False


class TimelockDriver:
    """
    Walks a timelocked operation through schedule -> wait -> execute.

    Scheduling always goes through the multisig (it holds the proposer role).
    Execution goes through the multisig too, unless the timelock's executor
    role is open, in which case the proposing owner executes directly.
    """

    def __init__(
        self,
        timelock: Timelock,
        multisig: MultisigDriver,
        poll_interval: float = POLL_INTERVAL,
        timeout: float = TIMEOUT,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.timelock = timelock
        self.multisig = multisig
        self.ledger = timelock.ledger
        self.poll_interval = poll_interval
        self.timeout = timeout
        self.clock = clock
        self.sleep = sleep

    def status(self, operation_id: bytes) -> OperationState:
        """Consolidated state, always re-read from the timelock."""
        if self.timelock.is_operation_done(operation_id):
            return OperationState.DONE
        if self.timelock.is_operation_ready(operation_id):
            return OperationState.READY
        if self.timelock.is_operation(operation_id):
            return OperationState.SCHEDULED
        return OperationState.UNKNOWN

    def describe(self, action: GovernanceAction) -> TimelockOperation:
        operation_id = action.operation_id
        state = self.status(operation_id)
        ready_at = 0
        if state in (OperationState.SCHEDULED, OperationState.READY):
            ready_at = self.timelock.timestamp(operation_id)
        return TimelockOperation(
            operation_id=operation_id,
            predecessor=HexBytes(action.predecessor),
            salt=action.salt,
            ready_at=ready_at,
            state=state,
        )

    def verify_operation_id(self, action: GovernanceAction) -> HexBytes:
        """Checks the locally derived id against the timelock's own hashing."""
        local_id = action.operation_id
        ledger_id = self.timelock.hash_operation(action)
        if local_id != ledger_id:
            raise ConfigurationError(
                f"Operation id mismatch: local {to_hex(local_id)} != "
                f"{self.timelock} {to_hex(ledger_id)}; is this a TimelockController?"
            )
        return local_id

    def check_proposer(self) -> None:
        role = self.timelock.proposer_role()
        if not self.timelock.has_role(role, self.multisig.address):
            raise PreconditionFailed(
                f"{self.multisig.multisig} is not a proposer on {self.timelock}; "
                "grant PROPOSER_ROLE first"
            )

    def executes_directly(self) -> bool:
        """
        True when anyone may execute (executor role granted to the zero address).
        Otherwise the multisig must hold the executor role.
        """
        role = self.timelock.executor_role()
        if self.timelock.is_open_role(role):
            return True
        if self.timelock.has_role(role, self.multisig.address):
            return False
        raise PreconditionFailed(
            f"{self.timelock} EXECUTOR_ROLE is neither open nor granted to {self.multisig.multisig}"
        )

    def _simulate(
        self, sender: str, to: str, data: bytes, value: int = 0
    ) -> Optional[ContractReverted]:
        return simulate_call(
            self.ledger,
            sender=sender,
            to=to,
            data=data,
            value=value,
            policy=self.timelock.retry_policy,
            sleep=self.timelock.sleep,
        )

    def dry_run(self, action: GovernanceAction) -> None:
        """Simulates the wrapped call as if the timelock sent it."""
        if action.value and self.timelock.balance() < action.value:
            # the executor attaches the value; execution is preflighted instead
            click.secho(
                f"⚠️  Skipping dry run of {action.label}: {self.timelock} cannot fund "
                f"{action.value} wei before execution",
                fg="yellow",
            )
            return
        revert = self._simulate(
            sender=self.timelock.address,
            to=action.target,
            data=action.data,
            value=action.value,
        )
        if revert is not None:
            raise PreconditionFailed(
                f"Call to {action.target} from {self.timelock} would revert",
                operation_id=action.operation_id,
                revert_reason=revert.revert_reason or "reverted without reason",
            )

    def ensure_scheduled(self, action: GovernanceAction, dry_run: bool = True) -> HexBytes:
        """
        Schedules the operation unless the timelock already knows it.
        After return the operation is Scheduled, Ready or Done.
        """
        operation_id = action.operation_id
        state = self.status(operation_id)
        if state != OperationState.UNKNOWN:
            click.echo(f"(i) Operation {to_hex(operation_id)} already {state.name.lower()}")
            return operation_id

        self.check_proposer()
        if dry_run:
            self.dry_run(action)

        delay = self.timelock.min_delay()
        click.echo(f"→ Scheduling {action.label} with delay {delay}s")
        try:
            self.multisig.submit(
                target=self.timelock.address,
                value=0,
                data=self.timelock.encode_schedule(action, delay),
            )
        except PreconditionFailed:
            # the preflight also fails once someone else has scheduled the operation
            state = self.status(operation_id)
            if state == OperationState.UNKNOWN:
                raise
            click.echo(f"(i) Operation {to_hex(operation_id)} was scheduled by another party")
            return operation_id

        state = self.status(operation_id)
        if state == OperationState.UNKNOWN:
            raise PreconditionFailed(
                "Schedule did not take effect", operation_id=operation_id
            )
        click.echo(f"✓ Scheduled {to_hex(operation_id)} ({state.name.lower()})")
        return operation_id

    def await_ready(
        self,
        operation_id: bytes,
        poll_interval: Optional[float] = None,
        timeout: Optional[float] = None,
    ) -> OperationState:
        """
        Polls until the timelock reports the operation Ready or Done.
        Readiness is the timelock's own predicate; local clocks are not trusted.
        """
        poll_interval = self.poll_interval if poll_interval is None else poll_interval
        timeout = self.timeout if timeout is None else timeout
        deadline = self.clock() + timeout
        announced = False
        while True:
            state = self.status(operation_id)
            if state in (OperationState.READY, OperationState.DONE):
                if announced:
                    click.echo(" ready.")
                return state
            if state == OperationState.UNKNOWN:
                raise NotReady("Operation is not scheduled", operation_id=operation_id)
            now = self.clock()
            if now >= deadline:
                if announced:
                    click.echo()
                raise TimeoutExceeded(
                    f"Operation not ready after {timeout}s; rerun to keep waiting",
                    operation_id=operation_id,
                )
            if not announced:
                ready_at = self.timelock.timestamp(operation_id)
                click.echo(
                    f"(i) Waiting for {to_hex(operation_id)} (ready at {ready_at})", nl=False
                )
                announced = True
            else:
                click.echo(".", nl=False)
            self.sleep(min(poll_interval, deadline - now))

    def ensure_executed(self, operation_id: bytes, action: GovernanceAction) -> ExecutionResult:
        """Executes a Ready operation; a Done one is a successful no-op."""
        operation_id = HexBytes(operation_id)
        if operation_id != action.operation_id:
            raise ConfigurationError(
                f"Operation {to_hex(operation_id)} does not belong to action '{action.label}'"
            )

        state = self.status(operation_id)
        if state == OperationState.DONE:
            click.echo(f"(i) Operation {to_hex(operation_id)} already executed")
            return ExecutionResult(operation_id=operation_id, receipt=None, already_done=True)
        if state != OperationState.READY:
            raise NotReady(
                f"Operation is {state.name.lower()}, not ready", operation_id=operation_id
            )

        calldata = self.timelock.encode_execute(action)
        try:
            if self.executes_directly():
                receipt = self._execute_directly(operation_id, calldata, action.value)
            else:
                click.echo(f"→ Executing {action.label} via {self.multisig.multisig}")
                receipt = self._execute_via_multisig(operation_id, calldata, action.value)
        except AlreadyDone:
            click.echo(f"(i) Operation {to_hex(operation_id)} was executed by another party")
            return ExecutionResult(operation_id=operation_id, receipt=None, already_done=True)

        if self.status(operation_id) != OperationState.DONE:
            raise PreconditionFailed("Execute did not take effect", operation_id=operation_id)
        click.echo(f"✓ Executed {to_hex(operation_id)}")
        return ExecutionResult(operation_id=operation_id, receipt=receipt)

    def _raise_if_done(self, operation_id: HexBytes, error: Exception) -> None:
        if self.status(operation_id) == OperationState.DONE:
            raise AlreadyDone(
                "Operation executed concurrently", operation_id=operation_id
            ) from error

    def _execute_via_multisig(
        self, operation_id: HexBytes, calldata: bytes, value: int
    ) -> Receipt:
        # the multisig attaches the operation's value from its own balance
        try:
            return self.multisig.submit(
                target=self.timelock.address, value=value, data=calldata
            ).receipt
        except PreconditionFailed as e:
            self._raise_if_done(operation_id, e)
            raise

    def _execute_directly(self, operation_id: HexBytes, calldata: bytes, value: int) -> Receipt:
        sender = self.multisig.require_proposer()
        revert = self._simulate(sender=sender, to=self.timelock.address, data=calldata, value=value)
        if revert is not None:
            self._raise_if_done(operation_id, revert)
            raise PreconditionFailed(
                f"{self.timelock}.execute would revert",
                operation_id=operation_id,
                revert_reason=revert.revert_reason or "reverted without reason",
            )
        click.echo(f"→ Executing {to_hex(operation_id)} directly from {sender} (open executor)")
        try:
            return self.ledger.transact(self.timelock.address, calldata, sender=sender, value=value)
        except ContractReverted as e:
            self._raise_if_done(operation_id, e)
            raise ContractReverted(
                f"{self.timelock}.execute reverted",
                revert_data=e.revert_data,
                operation_id=operation_id,
            ) from e
