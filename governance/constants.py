from enum import IntEnum
from pathlib import Path

from ape.utils import EMPTY_BYTES32, ZERO_ADDRESS


#
# Filesystem
#

GOVERNANCE_DIR = Path(__file__).parent
ACTION_PARAMS_DIR = GOVERNANCE_DIR / "action_params"
SOURCES_PARAMS_FILEPATH = ACTION_PARAMS_DIR / "sources.yml"

#
# Sentinels
#

NO_PREDECESSOR = EMPTY_BYTES32

#
# Roles
#

DEFAULT_ADMIN_ROLE = "DEFAULT_ADMIN_ROLE"
PROPOSER_ROLE = "PROPOSER_ROLE"
EXECUTOR_ROLE = "EXECUTOR_ROLE"
PARAMETER_ADMIN_ROLE = "PARAMETER_ADMIN_ROLE"

#
# Deployment descriptor
#

# logical name -> accepted keys, in order of preference
CONTRACT_ALIASES = {
    "tokenProxy": ("tokenProxy", "token", "proxy"),
    "timelock": ("timelock",),
    "multisig": ("multisig", "miniMultisig", "mini"),
    "executor": ("executor",),
    "proxyAdmin": ("proxyAdmin",),
    "l1Governance": ("l1Governance", "l1Governor", "governor"),
}

LOCAL_NETWORKS = ["local", "localhost", "hardhat"]

#
# Multisig
#

MINI = "mini"
COUNTER = "counter"
MULTISIG_VARIANTS = [MINI, COUNTER]

QUORUM = 2

#
# Polling & retries
#

POLL_INTERVAL = 5  # seconds
TIMEOUT = 60 * 60  # seconds
PROPOSAL_SCAN_DEPTH = 20
RETRY_ATTEMPTS = 3
RETRY_BACKOFF = 2.0  # seconds, doubled per attempt

#
# L2 relay
#

RETRYABLE_BUMP_PCT = 15  # headroom over the quoted retryable ticket cost

#
# Contract surfaces (by signature)
#

TIMELOCK_ABI = {
    "PROPOSER_ROLE": ("PROPOSER_ROLE()", ["bytes32"]),
    "EXECUTOR_ROLE": ("EXECUTOR_ROLE()", ["bytes32"]),
    "hasRole": ("hasRole(bytes32,address)", ["bool"]),
    "getMinDelay": ("getMinDelay()", ["uint256"]),
    "getTimestamp": ("getTimestamp(bytes32)", ["uint256"]),
    "hashOperation": ("hashOperation(address,uint256,bytes,bytes32,bytes32)", ["bytes32"]),
    "isOperation": ("isOperation(bytes32)", ["bool"]),
    "isOperationReady": ("isOperationReady(bytes32)", ["bool"]),
    "isOperationDone": ("isOperationDone(bytes32)", ["bool"]),
    "schedule": ("schedule(address,uint256,bytes,bytes32,bytes32,uint256)", []),
    "execute": ("execute(address,uint256,bytes,bytes32,bytes32)", []),
    "updateDelay": ("updateDelay(uint256)", []),
}

MULTISIG_ABI = {
    "txCount": ("txCount()", ["uint256"]),
    "propose": ("propose(address,uint256,bytes)", ["uint256"]),
    "approve": ("approve(uint256)", []),
    "execute": ("execute(uint256)", ["bool", "bytes"]),
    "getTx": ("getTx(uint256)", ["address", "uint256", "bool", "uint8", "bytes"]),
    "isApproved": ("isApproved(uint256,address)", ["bool"]),
}

ACCESS_CONTROL_ABI = {
    "DEFAULT_ADMIN_ROLE": ("DEFAULT_ADMIN_ROLE()", ["bytes32"]),
    "hasRole": ("hasRole(bytes32,address)", ["bool"]),
    "grantRole": ("grantRole(bytes32,address)", []),
    "revokeRole": ("revokeRole(bytes32,address)", []),
}

TOKEN_ABI = {
    **ACCESS_CONTROL_ABI,
    "configureSource": ("configureSource(string,bool,bool)", []),
    "setL1Governance": ("setL1Governance(address)", []),
    "getL1Governance": ("getL1Governance()", ["address"]),
    "pause": ("pause()", []),
    "unpause": ("unpause()", []),
    "paused": ("paused()", ["bool"]),
}

L1_GOVERNANCE_ABI = {
    "owner": ("owner()", ["address"]),
    "quoteRetryable": ("quoteRetryable(bytes,uint256)", ["uint256", "uint256", "uint256"]),
    "callL2": ("callL2(bytes)", ["uint256"]),
}

# called on the L2 token by the relayed retryable ticket
L2_TOKEN_ABI = {
    "l2SetPause": ("l2SetPause(bool)", []),
    "l2SetStakingPause": ("l2SetStakingPause(bool)", []),
}

EXECUTOR_ABI = {
    "owner": ("owner()", ["address"]),
    "pendingOwner": ("pendingOwner()", ["address"]),
    "acceptOwnership": ("acceptOwnership()", []),
    "upgradeDelay": ("upgradeDelay()", ["uint256"]),
    "scheduleUpgradeAndCall": ("scheduleUpgradeAndCall(address,address,address,bytes)", []),
    "executeUpgradeAndCall": ("executeUpgradeAndCall(address,address,address,bytes)", []),
    "isUpgradeReady": ("isUpgradeReady(address,address,address)", ["bool"]),
}

#
# Timelock operation states
#


class OperationState(IntEnum):
    UNKNOWN = 0
    SCHEDULED = 1
    READY = 2
    DONE = 3


#
# Multisig proposal states
#


class ProposalState(IntEnum):
    NONE = 0
    PROPOSED = 1
    APPROVED = 2
    EXECUTED = 3
