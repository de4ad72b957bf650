import pytest
from eth_utils import to_checksum_address

from governance import actions
from governance.constants import NO_PREDECESSOR, OperationState
from governance.contracts import L1Governance, Timelock, Token, UpgradeExecutor
from governance.errors import PreconditionFailed
from governance.identifiers import derive_operation_id, role_id
from tests.conftest import (
    EXECUTOR_ADDRESS,
    GOVERNOR_ADDRESS,
    IMPLEMENTATION_ADDRESS,
    L1_GOVERNANCE,
    MIN_DELAY,
    MULTISIG_ADDRESS,
    OUTSIDER,
    OWNER_A,
    PROXY_ADMIN_ADDRESS,
    TIMELOCK_ADDRESS,
    TOKEN_ADDRESS,
    UPGRADE_DELAY,
)
from tests.simulated_ledger import PAUSER_ROLE


def test_labels():
    assert actions.configure_source(TOKEN_ADDRESS, "basicapp", False, False).label == (
        "CONFIG_SOURCE:basicapp"
    )
    assert actions.grant_role(TOKEN_ADDRESS, "PAUSER_ROLE", OUTSIDER).label == (
        f"GRANT_ROLE:PAUSER_ROLE:{TOKEN_ADDRESS}:{OUTSIDER}"
    )
    explicit_role = "0x" + "ab" * 32
    assert actions.revoke_role(TOKEN_ADDRESS, explicit_role, OUTSIDER).label == (
        f"REVOKE_ROLE:{explicit_role}:{TOKEN_ADDRESS}:{OUTSIDER}"
    )
    assert actions.set_l1_governance(TOKEN_ADDRESS, L1_GOVERNANCE).label == (
        f"SET_L1_GOV:{TOKEN_ADDRESS}:{L1_GOVERNANCE}"
    )
    assert actions.accept_ownership(EXECUTOR_ADDRESS).label == (
        f"ACCEPT_OWNERSHIP:{EXECUTOR_ADDRESS}"
    )
    assert actions.update_delay(TIMELOCK_ADDRESS, 7200).label == (
        f"UPDATE_DELAY:{TIMELOCK_ADDRESS}:7200"
    )
    assert actions.pause(TOKEN_ADDRESS).label == f"PAUSE:{TOKEN_ADDRESS}"
    assert actions.unpause(TOKEN_ADDRESS, tag="incident-42").label == (
        f"UNPAUSE:{TOKEN_ADDRESS}:incident-42"
    )

    schedule = actions.schedule_upgrade_and_call(
        EXECUTOR_ADDRESS, PROXY_ADMIN_ADDRESS, TOKEN_ADDRESS, IMPLEMENTATION_ADDRESS
    )
    execute = actions.execute_upgrade_and_call(
        EXECUTOR_ADDRESS, PROXY_ADMIN_ADDRESS, TOKEN_ADDRESS, IMPLEMENTATION_ADDRESS
    )
    suffix = f"{EXECUTOR_ADDRESS}:{TOKEN_ADDRESS}:{IMPLEMENTATION_ADDRESS}"
    assert schedule.label == f"SCHED_UAC:{suffix}"
    assert execute.label == f"EXEC_UAC:{suffix}"
    assert schedule.operation_id != execute.operation_id


def test_labels_ignore_address_casing():
    lower = actions.set_l1_governance(TOKEN_ADDRESS, L1_GOVERNANCE)
    checksummed = actions.set_l1_governance(
        to_checksum_address(TOKEN_ADDRESS), to_checksum_address(L1_GOVERNANCE)
    )
    assert lower == checksummed
    assert lower.operation_id == checksummed.operation_id


def test_repeatable_actions_are_told_apart_by_tag():
    first = actions.pause(TOKEN_ADDRESS)
    second = actions.pause(TOKEN_ADDRESS, tag="2")
    assert first.data == second.data
    assert first.operation_id != second.operation_id


def test_calldata(ledger):
    token = Token(ledger, TOKEN_ADDRESS)
    action = actions.configure_source(TOKEN_ADDRESS, "BasicApp", False, True)
    assert action.label == "CONFIG_SOURCE:basicapp"
    assert token.functions["configureSource"].decode_input(action.data) == ("BasicApp", False, True)

    action = actions.grant_role(TOKEN_ADDRESS, "PAUSER_ROLE", OUTSIDER)
    role, account = token.functions["grantRole"].decode_input(action.data)
    assert role == bytes(role_id("PAUSER_ROLE"))
    assert to_checksum_address(account) == to_checksum_address(OUTSIDER)

    action = actions.update_delay(TIMELOCK_ADDRESS, 7200)
    timelock = Timelock(ledger, TIMELOCK_ADDRESS)
    assert timelock.functions["updateDelay"].decode_input(action.data) == (7200,)
    assert action.target == to_checksum_address(TIMELOCK_ADDRESS)


def test_grant_and_revoke_role(ledger, orchestrator, token):
    grant = actions.grant_role(TOKEN_ADDRESS, "PAUSER_ROLE", OUTSIDER)
    orchestrator.run(grant, verify=lambda: token._has(PAUSER_ROLE, OUTSIDER))
    assert token._has(PAUSER_ROLE, OUTSIDER)

    revoke = actions.revoke_role(TOKEN_ADDRESS, "PAUSER_ROLE", OUTSIDER)
    orchestrator.run(revoke, verify=lambda: not token._has(PAUSER_ROLE, OUTSIDER))
    assert not token._has(PAUSER_ROLE, OUTSIDER)
    assert ledger.tx_count == 8


def test_set_l1_governance(ledger, orchestrator, token):
    action = actions.set_l1_governance(TOKEN_ADDRESS, L1_GOVERNANCE)
    result = orchestrator.run(action)
    assert result.done
    assert Token(ledger, TOKEN_ADDRESS).l1_governance() == to_checksum_address(L1_GOVERNANCE)


def test_upgrade_through_executor(ledger, orchestrator, upgrade_executor):
    executor = UpgradeExecutor(ledger, EXECUTOR_ADDRESS)
    orchestrator.run(actions.accept_ownership(EXECUTOR_ADDRESS))
    assert executor.owner() == to_checksum_address(TIMELOCK_ADDRESS)

    args = (EXECUTOR_ADDRESS, PROXY_ADMIN_ADDRESS, TOKEN_ADDRESS, IMPLEMENTATION_ADDRESS)
    orchestrator.run(actions.schedule_upgrade_and_call(*args))
    assert not executor.is_upgrade_ready(*args[1:])

    # the executor's own delay has not elapsed, so the dry run fails
    with pytest.raises(PreconditionFailed) as exc_info:
        orchestrator.run(actions.execute_upgrade_and_call(*args))
    assert exc_info.value.revert_reason == "upgrade not ready"

    ledger.advance(UPGRADE_DELAY)
    assert executor.is_upgrade_ready(*args[1:])
    orchestrator.run(actions.execute_upgrade_and_call(*args))

    assert len(upgrade_executor.upgrades) == 1
    _, proxy, implementation, data = upgrade_executor.upgrades[0]
    assert to_checksum_address(proxy) == to_checksum_address(TOKEN_ADDRESS)
    assert to_checksum_address(implementation) == to_checksum_address(IMPLEMENTATION_ADDRESS)
    assert data == b""


def test_update_delay(ledger, orchestrator, timelock):
    action = actions.update_delay(TIMELOCK_ADDRESS, 2 * MIN_DELAY)
    result = orchestrator.run(action, verify=lambda: timelock.min_delay == 2 * MIN_DELAY)
    assert result.done
    assert orchestrator.timelock.min_delay() == 2 * MIN_DELAY


def test_pause_and_unpause(ledger, orchestrator, token):
    orchestrator.run(actions.pause(TOKEN_ADDRESS))
    assert token.is_paused

    # same label: nothing left to do
    assert orchestrator.run(actions.pause(TOKEN_ADDRESS)).already_done

    # a new repetition is only scheduled if the call would succeed
    with pytest.raises(PreconditionFailed) as exc_info:
        orchestrator.run(actions.pause(TOKEN_ADDRESS, tag="2"))
    assert exc_info.value.revert_reason == "Pausable: paused"

    orchestrator.run(actions.unpause(TOKEN_ADDRESS))
    assert not token.is_paused
    orchestrator.run(actions.pause(TOKEN_ADDRESS, tag="2"))
    assert token.is_paused


def test_relayed_call_carries_value(ledger, orchestrator, l1_governance):
    governance = L1Governance(ledger, GOVERNOR_ADDRESS)
    l2_data = actions.l2_set_pause(True)
    quote = governance.quote_retryable(l2_data)
    value = governance.required_value(l2_data)
    assert value == quote.total + quote.total * 15 // 100

    action = actions.call_l2(GOVERNOR_ADDRESS, l2_data, value)
    assert action.value == value
    assert action.label.startswith(f"CALL_L2:{GOVERNOR_ADDRESS}:0x")
    assert action.label.endswith(f":{value}")
    assert action.operation_id == derive_operation_id(
        GOVERNOR_ADDRESS, value, action.data, NO_PREDECESSOR, action.salt
    )
    assert actions.call_l2(GOVERNOR_ADDRESS, l2_data, value + 1).operation_id != (
        action.operation_id
    )

    # with an open executor the proposing owner attaches the value to execute
    ledger.fund(OWNER_A, value)
    result = orchestrator.run(action)
    assert result.done
    assert l1_governance.tickets == [(l2_data, value)]
    assert ledger.balance(GOVERNOR_ADDRESS) == value
    assert ledger.balance(OWNER_A) == 0
    assert ledger.balance(TIMELOCK_ADDRESS) == 0


def test_relayed_call_needs_a_funded_executor(ledger, orchestrator, l1_governance):
    l2_data = actions.l2_set_staking_pause(True)
    value = L1Governance(ledger, GOVERNOR_ADDRESS).required_value(l2_data)
    action = actions.call_l2(GOVERNOR_ADDRESS, l2_data, value)

    with pytest.raises(PreconditionFailed) as exc_info:
        orchestrator.run(action)
    assert exc_info.value.revert_reason == "insufficient balance"
    assert orchestrator.timelock_driver.status(action.operation_id) == OperationState.READY
    # scheduled, but execute was never sent
    assert ledger.tx_count == 3
    assert l1_governance.tickets == []


@pytest.mark.parametrize("executors", [[MULTISIG_ADDRESS]])
def test_relayed_call_through_multisig(ledger, orchestrator, l1_governance):
    l2_data = actions.l2_set_pause(False)
    value = L1Governance(ledger, GOVERNOR_ADDRESS).required_value(l2_data)

    # once the timelock could fund it, an underpaid ticket fails the dry run
    ledger.fund(TIMELOCK_ADDRESS, value)
    with pytest.raises(PreconditionFailed) as exc_info:
        orchestrator.run(actions.call_l2(GOVERNOR_ADDRESS, l2_data, 1))
    assert exc_info.value.revert_reason == "insufficient retryable value"
    assert ledger.tx_count == 0

    ledger.fund(MULTISIG_ADDRESS, value)
    orchestrator.run(actions.call_l2(GOVERNOR_ADDRESS, l2_data, value))
    assert l1_governance.tickets == [(l2_data, value)]
    assert ledger.balance(MULTISIG_ADDRESS) == 0
    assert ledger.balance(TIMELOCK_ADDRESS) == value
    assert ledger.tx_count == 6
