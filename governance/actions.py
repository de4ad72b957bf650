"""
Builders for the administrative calls routed through the timelock.

Each builder returns a GovernanceAction whose label is derived only from the
action's content, so rerunning a builder with the same arguments always
resumes the same timelock operation.
"""

from typing import Dict, List, Optional, Tuple

from eth_utils import keccak, to_checksum_address, to_hex

from governance.constants import (
    ACCESS_CONTROL_ABI,
    EXECUTOR_ABI,
    L1_GOVERNANCE_ABI,
    L2_TOKEN_ABI,
    TIMELOCK_ABI,
    TOKEN_ABI,
)
from governance.contracts import ContractFunction
from governance.identifiers import BytesLike, GovernanceAction, make_label, role_id

ABI = Dict[str, Tuple[str, List[str]]]


def _encode(abi: ABI, name: str, *args) -> bytes:
    signature, outputs = abi[name]
    return bytes(ContractFunction(name, signature, outputs).encode_input(*args))


def _role_part(role: BytesLike) -> str:
    if isinstance(role, str) and not role.startswith("0x"):
        return role
    return to_hex(role_id(role))


def _with_tag(parts: list, tag: Optional[str]) -> list:
    if tag is not None:
        parts.append(tag)
    return parts


def grant_role(target: str, role: BytesLike, account: str) -> GovernanceAction:
    account = to_checksum_address(account)
    return GovernanceAction.create(
        target=target,
        data=_encode(ACCESS_CONTROL_ABI, "grantRole", bytes(role_id(role)), account),
        label=make_label("GRANT_ROLE", _role_part(role), target, account),
    )


def revoke_role(target: str, role: BytesLike, account: str) -> GovernanceAction:
    account = to_checksum_address(account)
    return GovernanceAction.create(
        target=target,
        data=_encode(ACCESS_CONTROL_ABI, "revokeRole", bytes(role_id(role)), account),
        label=make_label("REVOKE_ROLE", _role_part(role), target, account),
    )


def configure_source(
    token: str, source: str, requires_proof: bool, requires_attestation: bool
) -> GovernanceAction:
    return GovernanceAction.create(
        target=token,
        data=_encode(TOKEN_ABI, "configureSource", source, requires_proof, requires_attestation),
        label=make_label("CONFIG_SOURCE", source.lower()),
    )


def set_l1_governance(token: str, l1_governance: str) -> GovernanceAction:
    l1_governance = to_checksum_address(l1_governance)
    return GovernanceAction.create(
        target=token,
        data=_encode(TOKEN_ABI, "setL1Governance", l1_governance),
        label=make_label("SET_L1_GOV", token, l1_governance),
    )


def _upgrade_args(proxy_admin: str, proxy: str, implementation: str) -> list:
    return [to_checksum_address(a) for a in (proxy_admin, proxy, implementation)]


def schedule_upgrade_and_call(
    executor: str, proxy_admin: str, proxy: str, implementation: str, data: bytes = b""
) -> GovernanceAction:
    addresses = _upgrade_args(proxy_admin, proxy, implementation)
    return GovernanceAction.create(
        target=executor,
        data=_encode(EXECUTOR_ABI, "scheduleUpgradeAndCall", *addresses, bytes(data)),
        label=make_label("SCHED_UAC", executor, *addresses[1:]),
    )


def execute_upgrade_and_call(
    executor: str, proxy_admin: str, proxy: str, implementation: str, data: bytes = b""
) -> GovernanceAction:
    addresses = _upgrade_args(proxy_admin, proxy, implementation)
    return GovernanceAction.create(
        target=executor,
        data=_encode(EXECUTOR_ABI, "executeUpgradeAndCall", *addresses, bytes(data)),
        label=make_label("EXEC_UAC", executor, *addresses[1:]),
    )


def accept_ownership(target: str) -> GovernanceAction:
    return GovernanceAction.create(
        target=target,
        data=_encode(EXECUTOR_ABI, "acceptOwnership"),
        label=make_label("ACCEPT_OWNERSHIP", target),
    )


# Repeatable actions take an operator-chosen tag to tell repetitions apart.


def update_delay(timelock: str, new_delay: int, tag: Optional[str] = None) -> GovernanceAction:
    # the timelock only accepts updateDelay from itself
    return GovernanceAction.create(
        target=timelock,
        data=_encode(TIMELOCK_ABI, "updateDelay", new_delay),
        label=make_label("UPDATE_DELAY", *_with_tag([timelock, new_delay], tag)),
    )


def pause(token: str, tag: Optional[str] = None) -> GovernanceAction:
    return GovernanceAction.create(
        target=token,
        data=_encode(TOKEN_ABI, "pause"),
        label=make_label("PAUSE", *_with_tag([token], tag)),
    )


def unpause(token: str, tag: Optional[str] = None) -> GovernanceAction:
    return GovernanceAction.create(
        target=token,
        data=_encode(TOKEN_ABI, "unpause"),
        label=make_label("UNPAUSE", *_with_tag([token], tag)),
    )


# Calls relayed to L2 through the L1 governance contract. The value funds the
# retryable ticket and is part of the operation id, so a resumed run must use
# the value the operation was scheduled with.


def call_l2(
    governance: str, l2_data: bytes, value: int, tag: Optional[str] = None
) -> GovernanceAction:
    l2_data = bytes(l2_data)
    return GovernanceAction.create(
        target=governance,
        value=value,
        data=_encode(L1_GOVERNANCE_ABI, "callL2", l2_data),
        label=make_label("CALL_L2", *_with_tag([governance, keccak(l2_data), value], tag)),
    )


def l2_set_pause(paused: bool) -> bytes:
    return _encode(L2_TOKEN_ABI, "l2SetPause", paused)


def l2_set_staking_pause(paused: bool) -> bytes:
    return _encode(L2_TOKEN_ABI, "l2SetStakingPause", paused)
