from typing import NamedTuple, Union

from eth_abi import encode
from eth_typing import ChecksumAddress
from eth_utils import is_address, is_hex, keccak, to_bytes, to_checksum_address
from hexbytes import HexBytes

from governance.constants import DEFAULT_ADMIN_ROLE, EMPTY_BYTES32, NO_PREDECESSOR
from governance.errors import ConfigurationError

LABEL_SEPARATOR = ":"

OPERATION_TYPES = ["address", "uint256", "bytes", "bytes32", "bytes32"]

BytesLike = Union[bytes, str]


def _to_bytes(value: BytesLike, name: str) -> bytes:
    """Accepts raw bytes or a 0x-prefixed hex string."""
    if isinstance(value, (bytes, bytearray)):
        return bytes(value)
    if isinstance(value, str) and (value == "0x" or is_hex(value)):
        if value.startswith(("0x", "0X")) and len(value) % 2 == 0:
            return to_bytes(hexstr=value)
    raise ConfigurationError(f"{name} must be bytes or an even-length 0x-prefixed hex string")


def _to_bytes32(value: BytesLike, name: str) -> bytes:
    result = _to_bytes(value, name)
    if len(result) != 32:
        raise ConfigurationError(f"{name} must be 32 bytes, got {len(result)}")
    return result


def _to_address(value: str, name: str) -> ChecksumAddress:
    if not isinstance(value, str) or not is_address(value):
        raise ConfigurationError(f"{name} '{value}' is not a valid address")
    return to_checksum_address(value)


def _to_value(value: int) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise ConfigurationError(f"value must be an integer, got {type(value).__name__}")
    if value < 0:
        raise ConfigurationError(f"value must not be negative, got {value}")
    return value


def validate_label(label: str) -> str:
    if not isinstance(label, str) or not label:
        raise ConfigurationError("label must be a non-empty string")
    if label != label.strip():
        raise ConfigurationError(f"label '{label}' has leading or trailing whitespace")
    return label


def make_label(prefix: str, *parts) -> str:
    """
    Builds a canonical label such as ``CONFIG_SOURCE:basicapp``.

    Addresses are lower-cased so the same action always yields the same label
    regardless of checksum casing. Parts must not contain the separator,
    otherwise two different part lists could collapse into one label.
    """
    if not prefix or not prefix.isupper() or LABEL_SEPARATOR in prefix:
        raise ConfigurationError(f"label prefix '{prefix}' must be an upper-case identifier")
    elements = [prefix]
    for part in parts:
        if isinstance(part, (bytes, bytearray)):
            part = "0x" + bytes(part).hex()
        part = str(part).strip()
        if is_address(part):
            part = part.lower()
        if not part:
            raise ConfigurationError(f"empty label part for '{prefix}'")
        if LABEL_SEPARATOR in part:
            raise ConfigurationError(f"label part '{part}' contains '{LABEL_SEPARATOR}'")
        elements.append(part)
    return LABEL_SEPARATOR.join(elements)


def derive_salt(label: str) -> HexBytes:
    """Salt for a timelock operation: keccak256 of the UTF-8 label."""
    label = validate_label(label)
    return HexBytes(keccak(text=label))


def derive_operation_id(
    target: str,
    value: int,
    data: BytesLike,
    predecessor: BytesLike,
    salt: BytesLike,
) -> HexBytes:
    """
    Computes the timelock operation id exactly as
    ``TimelockController.hashOperation`` does:
    ``keccak256(abi.encode(target, value, data, predecessor, salt))``.
    """
    preimage = encode(
        OPERATION_TYPES,
        [
            _to_address(target, "target"),
            _to_value(value),
            _to_bytes(data, "calldata"),
            _to_bytes32(predecessor, "predecessor"),
            _to_bytes32(salt, "salt"),
        ],
    )
    return HexBytes(keccak(preimage))


class GovernanceAction(NamedTuple):
    """A single administrative call to route through the timelock."""

    target: ChecksumAddress
    value: int
    data: bytes
    label: str
    predecessor: bytes = NO_PREDECESSOR

    @classmethod
    def create(
        cls,
        target: str,
        data: BytesLike,
        label: str,
        value: int = 0,
        predecessor: BytesLike = NO_PREDECESSOR,
    ) -> "GovernanceAction":
        """Validates and normalizes the action fields."""
        return cls(
            target=_to_address(target, "target"),
            value=_to_value(value),
            data=_to_bytes(data, "calldata"),
            label=validate_label(label),
            predecessor=_to_bytes32(predecessor, "predecessor"),
        )

    @property
    def salt(self) -> HexBytes:
        return derive_salt(self.label)

    @property
    def operation_id(self) -> HexBytes:
        return derive_operation_id(
            target=self.target,
            value=self.value,
            data=self.data,
            predecessor=self.predecessor,
            salt=self.salt,
        )


def role_id(role: BytesLike) -> HexBytes:
    """
    Resolves an AccessControl role: ``DEFAULT_ADMIN_ROLE`` is the zero hash,
    other names hash to ``keccak256(name)``, 32-byte ids pass through.
    """
    if isinstance(role, (bytes, bytearray)) or (isinstance(role, str) and role.startswith("0x")):
        return HexBytes(_to_bytes32(role, "role"))
    if not isinstance(role, str) or not role.replace("_", "").isalnum() or not role.isupper():
        raise ConfigurationError(f"'{role}' is not a role name or 32-byte role id")
    if role == DEFAULT_ADMIN_ROLE:
        return HexBytes(EMPTY_BYTES32)
    return HexBytes(keccak(text=role))
