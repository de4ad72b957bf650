from pathlib import Path
from typing import Dict, NamedTuple, Optional

from eth_typing import ChecksumAddress
from eth_utils import is_address, to_checksum_address

from governance.constants import (
    CONTRACT_ALIASES,
    MINI,
    POLL_INTERVAL,
    PROPOSAL_SCAN_DEPTH,
    QUORUM,
    TIMEOUT,
    ZERO_ADDRESS,
)
from governance.errors import ConfigurationError
from governance.multisig import get_variant
from governance.utils import _load_json

ChainId = int
ContractName = str


class GovernanceSettings(NamedTuple):
    """Optional ``governance`` section of a deployment descriptor."""

    multisig_variant: str = MINI
    quorum: int = QUORUM
    poll_interval: float = POLL_INTERVAL
    timeout: float = TIMEOUT
    scan_depth: int = PROPOSAL_SCAN_DEPTH

    @classmethod
    def from_config(cls, config: Optional[Dict]) -> "GovernanceSettings":
        config = config or dict()
        if not isinstance(config, dict):
            raise ConfigurationError("'governance' section must be a mapping")
        unknown = set(config) - set(cls._fields)
        if unknown:
            raise ConfigurationError(f"Unknown governance setting(s): {', '.join(sorted(unknown))}")

        settings = cls(**config)
        get_variant(settings.multisig_variant)
        for name in ("quorum", "scan_depth"):
            value = getattr(settings, name)
            if isinstance(value, bool) or not isinstance(value, int) or value < 1:
                raise ConfigurationError(f"governance.{name} must be a positive integer")
        for name in ("poll_interval", "timeout"):
            value = getattr(settings, name)
            if isinstance(value, bool) or not isinstance(value, (int, float)) or value <= 0:
                raise ConfigurationError(f"governance.{name} must be a positive number")
        return settings


def _checksum(name: str, value) -> ChecksumAddress:
    if not isinstance(value, str) or not is_address(value.strip()):
        raise ConfigurationError(f"Missing or invalid address for '{name}': {value!r}")
    address = to_checksum_address(value.strip())
    if address == ZERO_ADDRESS:
        raise ConfigurationError(f"Zero address configured for '{name}'")
    return address


class DeploymentDescriptor:
    """
    Maps logical contract names to addresses for one chain.

    Accepts both nested (``{"chain_id": ..., "contracts": {...}}``) and flat
    (``{"tokenProxy": ..., "timelock": ...}``) layouts, and the key aliases
    listed in CONTRACT_ALIASES.
    """

    def __init__(
        self,
        contracts: Dict[ContractName, ChecksumAddress],
        chain_id: Optional[ChainId] = None,
        settings: GovernanceSettings = GovernanceSettings(),
        path: Optional[Path] = None,
    ):
        self.contracts = contracts
        self.chain_id = chain_id
        self.settings = settings
        self.path = path

    def __repr__(self) -> str:
        source = self.path.name if self.path else "<dict>"
        return f"DeploymentDescriptor[{source}, chain_id={self.chain_id}]"

    @classmethod
    def from_dict(cls, config: Dict, path: Optional[Path] = None) -> "DeploymentDescriptor":
        if not isinstance(config, dict):
            raise ConfigurationError("Deployment descriptor must be a JSON object")

        raw_contracts = config.get("contracts")
        if raw_contracts is None:
            raw_contracts = {
                key: value
                for key, value in config.items()
                if isinstance(value, str) and is_address(value.strip())
            }
        if not isinstance(raw_contracts, dict) or not raw_contracts:
            raise ConfigurationError("Deployment descriptor has no contract addresses")

        contracts = dict()
        aliased = set()
        for name, aliases in CONTRACT_ALIASES.items():
            for alias in aliases:
                if alias in raw_contracts:
                    contracts[name] = _checksum(alias, raw_contracts[alias])
                    aliased.update(aliases)
                    break
        for key, value in raw_contracts.items():
            if key not in aliased:
                contracts[key] = _checksum(key, value)

        chain_id = config.get("chain_id", config.get("chainId"))
        if chain_id is not None:
            try:
                chain_id = int(chain_id)
            except (TypeError, ValueError):
                raise ConfigurationError(f"Invalid chain_id {chain_id!r}")

        settings = GovernanceSettings.from_config(config.get("governance"))
        return cls(contracts=contracts, chain_id=chain_id, settings=settings, path=path)

    @classmethod
    def from_json(cls, filepath: Path) -> "DeploymentDescriptor":
        filepath = Path(filepath)
        return cls.from_dict(_load_json(filepath), path=filepath)

    def address(self, name: ContractName) -> ChecksumAddress:
        try:
            return self.contracts[name]
        except KeyError:
            aliases = CONTRACT_ALIASES.get(name, (name,))
            raise ConfigurationError(
                f"'{name}' not found in deployment descriptor (looked for {', '.join(aliases)})"
            )

    def resolve(self, name_or_address: str) -> ChecksumAddress:
        """Accepts either a logical contract name or a literal address."""
        if is_address(name_or_address):
            return to_checksum_address(name_or_address)
        return self.address(name_or_address)

    def validate_chain(self, chain_id: ChainId, live: bool) -> None:
        """On live networks the descriptor must belong to the connected chain."""
        if not live or self.chain_id is None:
            return
        if self.chain_id != chain_id:
            raise ConfigurationError(
                f"chain_id in deployment descriptor ({self.chain_id}) does not match "
                f"chain_id of current network ({chain_id})."
            )
