import pytest

from governance.constants import MINI, ZERO_ADDRESS
from governance.ledger import RetryPolicy
from governance.orchestrator import Orchestrator
from governance.registry import DeploymentDescriptor
from tests.simulated_ledger import (
    PARAMETER_ADMIN_ROLE,
    PAUSER_ROLE,
    SimulatedL1Governance,
    SimulatedLedger,
    SimulatedMultisig,
    SimulatedTimelock,
    SimulatedToken,
    SimulatedUpgradeExecutor,
)

# Common constants
ONE_HOUR = 60 * 60
MIN_DELAY = ONE_HOUR
UPGRADE_DELAY = 2 * ONE_HOUR
CHAIN_ID = 421614

OWNER_A = "0xa1a1a1a1a1a1a1a1a1a1a1a1a1a1a1a1a1a1a1a1"
OWNER_B = "0xb2b2b2b2b2b2b2b2b2b2b2b2b2b2b2b2b2b2b2b2"
OUTSIDER = "0x0c0c0c0c0c0c0c0c0c0c0c0c0c0c0c0c0c0c0c0c"
L1_GOVERNANCE = "0x1111111111111111111111111111111111111111"

TOKEN_ADDRESS = "0x7070707070707070707070707070707070707070"
TIMELOCK_ADDRESS = "0x7171717171717171717171717171717171717171"
MULTISIG_ADDRESS = "0x7272727272727272727272727272727272727272"
EXECUTOR_ADDRESS = "0x7373737373737373737373737373737373737373"
PROXY_ADMIN_ADDRESS = "0x7474747474747474747474747474747474747474"
IMPLEMENTATION_ADDRESS = "0x7575757575757575757575757575757575757575"
GOVERNOR_ADDRESS = "0x7676767676767676767676767676767676767676"


def make_orchestrator(ledger, descriptor, approver=OWNER_B, **kwargs) -> Orchestrator:
    return Orchestrator.from_descriptor(
        ledger,
        descriptor,
        proposer=OWNER_A,
        approver=approver,
        retry_policy=RetryPolicy(attempts=3, backoff=0),
        clock=ledger.now,
        sleep=ledger.sleep,
        **kwargs,
    )


# Fixtures
@pytest.fixture
def ledger():
    return SimulatedLedger()


@pytest.fixture
def executors():
    """Timelock executors; the zero address makes execution open to anyone."""
    return [ZERO_ADDRESS]


@pytest.fixture
def multisig_variant():
    return MINI


@pytest.fixture
def timelock(ledger, executors):
    return ledger.deploy(
        SimulatedTimelock(
            TIMELOCK_ADDRESS,
            min_delay=MIN_DELAY,
            proposers=[MULTISIG_ADDRESS],
            executors=executors,
        )
    )


@pytest.fixture
def multisig(ledger, multisig_variant):
    return ledger.deploy(
        SimulatedMultisig(MULTISIG_ADDRESS, owners=[OWNER_A, OWNER_B], variant=multisig_variant)
    )


@pytest.fixture
def token(ledger, timelock):
    token = ledger.deploy(SimulatedToken(TOKEN_ADDRESS, admin=timelock.address))
    token._grant(PARAMETER_ADMIN_ROLE, timelock.address)
    token._grant(PAUSER_ROLE, timelock.address)
    return token


@pytest.fixture
def upgrade_executor(ledger, timelock):
    executor = ledger.deploy(
        SimulatedUpgradeExecutor(EXECUTOR_ADDRESS, owner=OWNER_A, upgrade_delay=UPGRADE_DELAY)
    )
    executor.transfer_ownership(timelock.address)
    return executor


@pytest.fixture
def descriptor_config(multisig_variant):
    return {
        "chain_id": CHAIN_ID,
        "contracts": {
            "tokenProxy": TOKEN_ADDRESS,
            "timelock": TIMELOCK_ADDRESS,
            "miniMultisig": MULTISIG_ADDRESS,
            "executor": EXECUTOR_ADDRESS,
            "proxyAdmin": PROXY_ADMIN_ADDRESS,
            "l1Governance": GOVERNOR_ADDRESS,
        },
        "governance": {
            "multisig_variant": multisig_variant,
            "poll_interval": 60,
            "timeout": 2 * ONE_HOUR,
        },
    }


@pytest.fixture
def descriptor(descriptor_config):
    return DeploymentDescriptor.from_dict(descriptor_config)


@pytest.fixture
def orchestrator(ledger, descriptor, timelock, multisig, token):
    return make_orchestrator(ledger, descriptor)


@pytest.fixture
def timelock_driver(orchestrator):
    return orchestrator.timelock_driver


@pytest.fixture
def multisig_driver(orchestrator):
    return orchestrator.multisig


@pytest.fixture
def l1_governance(ledger, timelock):
    return ledger.deploy(SimulatedL1Governance(GOVERNOR_ADDRESS, owner=timelock.address))
