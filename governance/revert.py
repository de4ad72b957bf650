from typing import Callable, Dict, List, Tuple

from eth_abi import decode, encode
from eth_abi.exceptions import DecodingError
from eth_utils import function_signature_to_4byte_selector, to_checksum_address
from hexbytes import HexBytes

PANIC_CODES = {
    0x00: "generic compiler panic",
    0x01: "assertion failed",
    0x11: "arithmetic overflow or underflow",
    0x12: "division or modulo by zero",
    0x21: "invalid enum value",
    0x22: "invalid storage byte array",
    0x31: "pop on empty array",
    0x32: "array index out of bounds",
    0x41: "out of memory",
    0x51: "call to uninitialized function",
}

TIMELOCK_OPERATION_STATES = {0: "Unset", 1: "Waiting", 2: "Ready", 3: "Done"}


def _format_error_string(args) -> str:
    (message,) = args
    return message


def _format_panic(args) -> str:
    (code,) = args
    return f"Panic(0x{code:02x}): {PANIC_CODES.get(code, 'unknown panic code')}"


def _format_unauthorized_account(args) -> str:
    account, role = args
    return (
        f"AccessControlUnauthorizedAccount(account={to_checksum_address(account)}, "
        f"neededRole=0x{role.hex()})"
    )


def _format_unexpected_operation_state(args) -> str:
    operation_id, expected_states = args
    # expected states are a bitmap of OperationState values
    bitmap = int.from_bytes(expected_states, "big")
    expected = [name for bit, name in TIMELOCK_OPERATION_STATES.items() if bitmap & (1 << bit)]
    return (
        f"TimelockUnexpectedOperationState(id=0x{operation_id.hex()}, "
        f"expected={'|'.join(expected) or 'none'})"
    )


def _format_insufficient_delay(args) -> str:
    delay, min_delay = args
    return f"TimelockInsufficientDelay(delay={delay}, minDelay={min_delay})"


def _format_unexecuted_predecessor(args) -> str:
    (predecessor,) = args
    return f"TimelockUnexecutedPredecessor(predecessor=0x{predecessor.hex()})"


def _format_unauthorized_caller(args) -> str:
    (caller,) = args
    return f"TimelockUnauthorizedCaller(caller={to_checksum_address(caller)})"


_ERRORS: List[Tuple[str, List[str], Callable]] = [
    ("Error(string)", ["string"], _format_error_string),
    ("Panic(uint256)", ["uint256"], _format_panic),
    (
        "AccessControlUnauthorizedAccount(address,bytes32)",
        ["address", "bytes32"],
        _format_unauthorized_account,
    ),
    (
        "TimelockUnexpectedOperationState(bytes32,bytes32)",
        ["bytes32", "bytes32"],
        _format_unexpected_operation_state,
    ),
    (
        "TimelockInsufficientDelay(uint256,uint256)",
        ["uint256", "uint256"],
        _format_insufficient_delay,
    ),
    ("TimelockUnexecutedPredecessor(bytes32)", ["bytes32"], _format_unexecuted_predecessor),
    ("TimelockUnauthorizedCaller(address)", ["address"], _format_unauthorized_caller),
]

KNOWN_ERRORS: Dict[bytes, Tuple[str, List[str], Callable]] = {
    function_signature_to_4byte_selector(signature): (signature, types, formatter)
    for signature, types, formatter in _ERRORS
}


def encode_error(signature: str, types: List[str], args: List) -> HexBytes:
    """Encodes a revert payload for the given error signature."""
    selector = function_signature_to_4byte_selector(signature)
    return HexBytes(selector + encode(types, args))


def decode_revert_reason(revert_data: bytes) -> str:
    """
    Returns a human-readable reason for a revert payload.

    Empty payloads (e.g. a bare `revert()`) decode to an empty string;
    unknown custom errors are rendered by selector.
    """
    revert_data = HexBytes(revert_data or b"")
    if len(revert_data) < 4:
        return ""

    selector, payload = bytes(revert_data[:4]), bytes(revert_data[4:])
    known_error = KNOWN_ERRORS.get(selector)
    if not known_error:
        return f"custom error 0x{selector.hex()}"

    signature, types, formatter = known_error
    try:
        args = decode(types, payload)
    except (DecodingError, OverflowError):
        return f"malformed {signature}"
    return formatter(args)
