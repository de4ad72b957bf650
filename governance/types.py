import click
from eth_utils import is_hex, to_checksum_address


class MinInt(click.ParamType):
    name = "minint"

    def __init__(self, min_value):
        self.min_value = min_value

    def convert(self, value, param, ctx):
        try:
            ivalue = int(value)
        except ValueError:
            self.fail(f"{value} is not a valid integer", param, ctx)
        if ivalue < self.min_value:
            self.fail(
                f"{value} is less than the minimum allowed value of {self.min_value}", param, ctx
            )
        return ivalue


class ChecksumAddress(click.ParamType):
    name = "checksum_address"

    def convert(self, value, param, ctx):
        try:
            value = to_checksum_address(value=value)
        except ValueError:
            self.fail(f"{value} is not a valid ethereum address", param, ctx)
        else:
            return value


class Bytes32(click.ParamType):
    name = "bytes32"

    def convert(self, value, param, ctx):
        if not isinstance(value, str) or not value.startswith("0x") or not is_hex(value):
            self.fail(f"{value} is not a 0x-prefixed hex string", param, ctx)
        if len(value) != 66:
            self.fail(f"{value} is not 32 bytes long", param, ctx)
        return value.lower()


class Role(click.ParamType):
    """An AccessControl role given by name (e.g. PARAMETER_ADMIN_ROLE) or as a bytes32 id."""

    name = "role"

    def convert(self, value, param, ctx):
        if value.startswith("0x"):
            return Bytes32().convert(value, param, ctx)
        if not value.replace("_", "").isalnum() or not value.isupper():
            self.fail(f"{value} is not an upper-case role name", param, ctx)
        return value


class HexData(click.ParamType):
    """Arbitrary calldata given as a 0x-prefixed hex string."""

    name = "hex_data"

    def convert(self, value, param, ctx):
        if isinstance(value, bytes):
            return value
        if value == "0x":
            return b""
        if not value.startswith("0x") or not is_hex(value) or len(value) % 2:
            self.fail(f"{value} is not an even-length 0x-prefixed hex string", param, ctx)
        return bytes.fromhex(value[2:])
