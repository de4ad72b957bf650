import pytest
from eth_abi import encode
from eth_utils import keccak, to_checksum_address, to_hex
from hexbytes import HexBytes

from governance.constants import EMPTY_BYTES32
from governance.errors import ConfigurationError
from governance.identifiers import (
    GovernanceAction,
    derive_operation_id,
    derive_salt,
    make_label,
    role_id,
)
from tests.conftest import TIMELOCK_ADDRESS, TOKEN_ADDRESS

CALLDATA = HexBytes("0xdeadbeef")


def test_salt_is_hash_of_label():
    salt = derive_salt("CONFIG_SOURCE:basicapp")
    assert salt == keccak(text="CONFIG_SOURCE:basicapp")
    assert len(salt) == 32
    assert derive_salt("CONFIG_SOURCE:basicapp") == salt
    assert derive_salt("CONFIG_SOURCE:fitbit") != salt


@pytest.mark.parametrize("label", ["", " padded", "padded ", None])
def test_invalid_label(label):
    with pytest.raises(ConfigurationError):
        derive_salt(label)


def test_operation_id_matches_timelock_hashing():
    salt = derive_salt("LABEL")
    expected = keccak(
        encode(
            ["address", "uint256", "bytes", "bytes32", "bytes32"],
            [to_checksum_address(TOKEN_ADDRESS), 0, bytes(CALLDATA), EMPTY_BYTES32, bytes(salt)],
        )
    )
    operation_id = derive_operation_id(TOKEN_ADDRESS, 0, CALLDATA, EMPTY_BYTES32, salt)
    assert operation_id == expected


def test_operation_id_is_deterministic():
    salt = derive_salt("LABEL")
    first = derive_operation_id(TOKEN_ADDRESS, 0, CALLDATA, EMPTY_BYTES32, salt)
    second = derive_operation_id(TOKEN_ADDRESS, 0, CALLDATA, EMPTY_BYTES32, salt)
    assert first == second

    # hex strings and bytes are interchangeable
    from_hex = derive_operation_id(TOKEN_ADDRESS, 0, "0xdeadbeef", "0x" + "00" * 32, to_hex(salt))
    assert from_hex == first


def test_operation_id_changes_with_every_field():
    salt = derive_salt("LABEL")
    base = derive_operation_id(TOKEN_ADDRESS, 0, CALLDATA, EMPTY_BYTES32, salt)
    variations = [
        derive_operation_id(TIMELOCK_ADDRESS, 0, CALLDATA, EMPTY_BYTES32, salt),
        derive_operation_id(TOKEN_ADDRESS, 1, CALLDATA, EMPTY_BYTES32, salt),
        derive_operation_id(TOKEN_ADDRESS, 0, b"\xde\xad\xbe\xee", EMPTY_BYTES32, salt),
        derive_operation_id(TOKEN_ADDRESS, 0, CALLDATA, b"\x01" * 32, salt),
        derive_operation_id(TOKEN_ADDRESS, 0, CALLDATA, EMPTY_BYTES32, derive_salt("OTHER")),
    ]
    assert base not in variations
    assert len(set(variations)) == len(variations)


@pytest.mark.parametrize(
    "target,value,data,predecessor",
    [
        ("0x1234", 0, CALLDATA, EMPTY_BYTES32),
        (TOKEN_ADDRESS, -1, CALLDATA, EMPTY_BYTES32),
        (TOKEN_ADDRESS, True, CALLDATA, EMPTY_BYTES32),
        (TOKEN_ADDRESS, 0, "deadbeef", EMPTY_BYTES32),
        (TOKEN_ADDRESS, 0, "0xdeadbee", EMPTY_BYTES32),
        (TOKEN_ADDRESS, 0, "0xnothex!", EMPTY_BYTES32),
        (TOKEN_ADDRESS, 0, CALLDATA, b"\x00" * 31),
    ],
)
def test_malformed_operation_input(target, value, data, predecessor):
    with pytest.raises(ConfigurationError):
        derive_operation_id(target, value, data, predecessor, derive_salt("LABEL"))


def test_action_create_normalizes():
    action = GovernanceAction.create(target=TOKEN_ADDRESS, data="0xdeadbeef", label="LABEL")
    assert action.target == to_checksum_address(TOKEN_ADDRESS)
    assert action.value == 0
    assert action.data == bytes(CALLDATA)
    assert action.predecessor == EMPTY_BYTES32
    assert action.salt == derive_salt("LABEL")
    assert action.operation_id == derive_operation_id(
        TOKEN_ADDRESS, 0, CALLDATA, EMPTY_BYTES32, derive_salt("LABEL")
    )


def test_make_label():
    assert make_label("CONFIG_SOURCE", "basicapp") == "CONFIG_SOURCE:basicapp"

    checksummed = to_checksum_address(TOKEN_ADDRESS)
    label = make_label("SET_L1_GOV", checksummed, TIMELOCK_ADDRESS)
    assert label == f"SET_L1_GOV:{TOKEN_ADDRESS.lower()}:{TIMELOCK_ADDRESS.lower()}"

    assert make_label("UPDATE_DELAY", TIMELOCK_ADDRESS, 7200).endswith(":7200")
    assert make_label("ROLE", b"\x01\x02") == "ROLE:0x0102"


@pytest.mark.parametrize(
    "prefix,parts",
    [
        ("config_source", ("basicapp",)),
        ("", ("basicapp",)),
        ("CONFIG:SOURCE", ("basicapp",)),
        ("CONFIG_SOURCE", ("",)),
        ("CONFIG_SOURCE", ("   ",)),
        ("CONFIG_SOURCE", ("basic:app",)),
    ],
)
def test_ambiguous_labels_are_rejected(prefix, parts):
    with pytest.raises(ConfigurationError):
        make_label(prefix, *parts)


def test_role_id():
    assert role_id("DEFAULT_ADMIN_ROLE") == EMPTY_BYTES32
    assert role_id("PARAMETER_ADMIN_ROLE") == keccak(text="PARAMETER_ADMIN_ROLE")
    explicit = "0x" + "ab" * 32
    assert role_id(explicit) == HexBytes(explicit)
    assert role_id(bytes(HexBytes(explicit))) == HexBytes(explicit)

    with pytest.raises(ConfigurationError):
        role_id("parameter_admin_role")
    with pytest.raises(ConfigurationError):
        role_id("0x1234")
