import time
from typing import Callable, Dict, Iterable, List, NamedTuple, Optional

import click
from eth_utils import to_hex
from hexbytes import HexBytes

from governance.constants import OperationState
from governance.contracts import MiniMultisig, Timelock
from governance.errors import ConfigurationError, VerificationFailed
from governance.identifiers import GovernanceAction
from governance.ledger import Ledger, RetryPolicy
from governance.multisig import MultisigDriver
from governance.registry import DeploymentDescriptor
from governance.timelock import ExecutionResult, TimelockDriver

Verifier = Callable[[], bool]


class RunResult(NamedTuple):
    action: GovernanceAction
    operation_id: HexBytes
    state: OperationState
    execution: Optional[ExecutionResult] = None

    @property
    def already_done(self) -> bool:
        return self.execution is None and self.state == OperationState.DONE

    @property
    def done(self) -> bool:
        return self.state == OperationState.DONE


class Orchestrator:
    """
    Drives governance actions end-to-end:
    schedule (via multisig) -> wait for the delay -> execute.

    Every step re-reads the ledger, so rerunning an action with the same
    label resumes wherever a previous run stopped; running an action that is
    already done is a no-op. Runs for the same label must not overlap.
    """

    def __init__(self, timelock_driver: TimelockDriver):
        self.timelock_driver = timelock_driver
        self._labels: Dict[str, HexBytes] = dict()

    @property
    def timelock(self) -> Timelock:
        return self.timelock_driver.timelock

    @property
    def multisig(self) -> MultisigDriver:
        return self.timelock_driver.multisig

    @classmethod
    def from_descriptor(
        cls,
        ledger: Ledger,
        descriptor: DeploymentDescriptor,
        proposer: Optional[str] = None,
        approver: Optional[str] = None,
        poll_interval: Optional[float] = None,
        timeout: Optional[float] = None,
        retry_policy: RetryPolicy = RetryPolicy(),
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] = time.sleep,
    ) -> "Orchestrator":
        """Without a proposing owner the orchestrator can only report state."""
        settings = descriptor.settings
        if poll_interval is None:
            poll_interval = settings.poll_interval
        if timeout is None:
            timeout = settings.timeout

        timelock = Timelock(
            ledger, descriptor.address("timelock"), retry_policy=retry_policy, sleep=sleep
        )
        multisig = MiniMultisig(
            ledger, descriptor.address("multisig"), retry_policy=retry_policy, sleep=sleep
        )
        multisig_driver = MultisigDriver(
            multisig=multisig,
            proposer=proposer,
            approver=approver,
            variant=settings.multisig_variant,
            quorum=settings.quorum,
            scan_depth=settings.scan_depth,
            poll_interval=poll_interval,
            timeout=timeout,
            clock=clock,
            sleep=sleep,
        )
        timelock_driver = TimelockDriver(
            timelock=timelock,
            multisig=multisig_driver,
            poll_interval=poll_interval,
            timeout=timeout,
            clock=clock,
            sleep=sleep,
        )
        return cls(timelock_driver)

    def _register(self, action: GovernanceAction) -> HexBytes:
        operation_id = action.operation_id
        known = self._labels.get(action.label)
        if known is not None and known != operation_id:
            raise ConfigurationError(
                f"Label '{action.label}' is already used for a different call",
                operation_id=known,
            )
        self._labels[action.label] = operation_id
        return operation_id

    def _verify(self, action: GovernanceAction, verify: Optional[Verifier]) -> None:
        if verify is None:
            return
        if not verify():
            raise VerificationFailed(
                f"Post-condition of '{action.label}' does not hold",
                operation_id=action.operation_id,
            )
        click.echo(f"✓ Verified {action.label}")

    def prepare(self, action: GovernanceAction) -> OperationState:
        """
        Checks everything that can be checked before any transaction is sent.
        Returns the current state of the operation.
        """
        self._register(action)
        operation_id = self.timelock_driver.verify_operation_id(action)
        state = self.timelock_driver.status(operation_id)
        click.echo(f"(i) {action.label} -> {to_hex(operation_id)} [{state.name.lower()}]")
        if state != OperationState.DONE:
            self.timelock_driver.executes_directly()
        return state

    def run(
        self,
        action: GovernanceAction,
        verify: Optional[Verifier] = None,
        dry_run: bool = True,
        wait: bool = True,
    ) -> RunResult:
        """
        Drives `action` to Done. With ``wait=False`` the run stops after
        scheduling unless the operation is already executable.
        """
        operation_id = action.operation_id
        state = self.prepare(action)
        if state == OperationState.DONE:
            click.echo(f"(i) {action.label} already executed; nothing to do")
            self._verify(action, verify)
            return RunResult(action=action, operation_id=operation_id, state=state)

        self.timelock_driver.ensure_scheduled(action, dry_run=dry_run)
        state = self.timelock_driver.status(operation_id)
        if state == OperationState.SCHEDULED:
            if not wait:
                click.echo(f"(i) {action.label} scheduled; rerun once the delay has elapsed")
                return RunResult(action=action, operation_id=operation_id, state=state)
            self.timelock_driver.await_ready(operation_id)

        execution = self.timelock_driver.ensure_executed(operation_id, action)
        self._verify(action, verify)
        return RunResult(
            action=action,
            operation_id=operation_id,
            state=OperationState.DONE,
            execution=execution,
        )

    def run_batch(
        self,
        actions: Iterable[GovernanceAction],
        verify: Optional[Callable[[GovernanceAction], bool]] = None,
        dry_run: bool = True,
        wait: bool = True,
    ) -> List[RunResult]:
        """
        Schedules every action first and then executes them in order, so the
        timelock delays elapse concurrently rather than one after another.
        """
        actions = list(actions)
        pending = list()
        results = dict()
        for action in actions:
            state = self.prepare(action)
            if state == OperationState.DONE:
                results[action.label] = RunResult(
                    action=action, operation_id=action.operation_id, state=state
                )
            else:
                self.timelock_driver.ensure_scheduled(action, dry_run=dry_run)
                pending.append(action)

        for action in pending:
            results[action.label] = self.run(
                action,
                verify=(lambda a=action: verify(a)) if verify else None,
                dry_run=dry_run,
                wait=wait,
            )

        for result in results.values():
            if result.already_done and verify is not None:
                self._verify(result.action, lambda a=result.action: verify(a))
        return [results[action.label] for action in actions]
