import typing
from pathlib import Path

import click
import requests
from ape import accounts, networks
from ape.api import AccountAPI
from ape.exceptions import (
    ContractLogicError,
    ProviderNotConnectedError,
    RPCTimeoutError,
    TransactionError,
)
from eth_utils import is_hex, to_checksum_address, to_hex
from hexbytes import HexBytes
from web3.exceptions import TimeExhausted

from governance.confirm import _confirm_action, _continue
from governance.errors import (
    ConfigurationError,
    ContractReverted,
    TransactionFailed,
    TransientLedgerError,
)
from governance.identifiers import GovernanceAction
from governance.ledger import Ledger, Receipt
from governance.orchestrator import Orchestrator, RunResult
from governance.registry import DeploymentDescriptor
from governance.revert import encode_error
from governance.utils import check_plugins, get_chain_id, is_local_network

TRANSIENT_ERRORS = (
    ProviderNotConnectedError,
    RPCTimeoutError,
    TimeExhausted,
    requests.exceptions.ConnectionError,
    requests.exceptions.Timeout,
)

TEST_ACCOUNT_PREFIX = "TEST::"


def load_account(alias: str) -> AccountAPI:
    """Loads an ape account by alias; ``TEST::<n>`` selects a test account."""
    if alias.startswith(TEST_ACCOUNT_PREFIX):
        return accounts.test_accounts[int(alias[len(TEST_ACCOUNT_PREFIX) :])]
    return accounts.load(alias)


def _revert_data(error: ContractLogicError) -> HexBytes:
    """Recovers the raw revert payload from an ape contract logic error."""
    base_data = getattr(getattr(error, "base_err", None), "data", None)
    if isinstance(base_data, str) and is_hex(base_data):
        return HexBytes(base_data)
    message = error.revert_message
    if isinstance(message, str) and message.startswith("0x") and is_hex(message):
        return HexBytes(message)
    if message and message != "Transaction failed.":
        return encode_error("Error(string)", ["string"], [message])
    return HexBytes(b"")


class Transactor(Ledger):
    """
    Ledger backed by the connected ape provider and a set of owned ape accounts.
    Every transaction is announced, and confirmed interactively unless autosign is on.
    """

    def __init__(self, owners: typing.Sequence[AccountAPI] = (), autosign: bool = False):
        if autosign:
            click.secho(
                "WARNING: Autosign is enabled. Transactions will be signed automatically.",
                fg="yellow",
            )
        self._autosign = autosign
        self._accounts = dict()
        for account in owners:
            if autosign and hasattr(account, "set_autosign"):
                account.set_autosign(True)
            self._accounts[to_checksum_address(account.address)] = account

    def get_account(self, address: str) -> AccountAPI:
        try:
            return self._accounts[to_checksum_address(address)]
        except KeyError:
            raise ConfigurationError(f"No signing account loaded for {address}")

    def is_local(self) -> bool:
        return is_local_network()

    def call(
        self, to: str, data: bytes, sender: typing.Optional[str] = None, value: int = 0
    ) -> bytes:
        txn_kwargs = dict(receiver=to_checksum_address(to), data=HexBytes(data), value=value)
        if sender is not None:
            txn_kwargs["sender"] = to_checksum_address(sender)
        try:
            txn = networks.ecosystem.create_transaction(**txn_kwargs)
            return bytes(networks.provider.send_call(txn))
        except ContractLogicError as e:
            raise ContractReverted(f"Call to {to} reverted", revert_data=_revert_data(e)) from e
        except TRANSIENT_ERRORS as e:
            raise TransientLedgerError(f"Call to {to} failed: {e}") from e

    def balance(self, address: str) -> int:
        try:
            return networks.provider.get_balance(to_checksum_address(address))
        except TRANSIENT_ERRORS as e:
            raise TransientLedgerError(f"Balance of {address} unavailable: {e}") from e

    def transact(self, to: str, data: bytes, sender: str, value: int = 0) -> Receipt:
        account = self.get_account(sender)
        click.echo(
            f"\nTransacting {to[:10]} from {account.address} "
            f"with data {to_hex(HexBytes(data)[:4])}... ({len(data)} bytes)"
        )
        if value:
            click.echo(f"Attaching {value} wei")
        if not self._autosign:
            _continue()

        txn = networks.ecosystem.create_transaction(
            receiver=to_checksum_address(to), data=HexBytes(data), value=value
        )
        try:
            receipt = account.call(txn)
        except ContractLogicError as e:
            raise ContractReverted(
                f"Transaction to {to} reverted", revert_data=_revert_data(e)
            ) from e
        except TRANSIENT_ERRORS as e:
            # the transaction may still be mined; a rerun resumes from ledger state
            raise TransientLedgerError(f"Transaction to {to} not confirmed: {e}") from e
        except TransactionError as e:
            raise TransactionFailed(f"Transaction to {to} failed: {e}") from e

        click.echo(f"(i) tx={receipt.txn_hash} block={receipt.block_number}")
        return Receipt(
            txn_hash=str(receipt.txn_hash),
            block_number=receipt.block_number,
            status=int(receipt.status),
        )


class Operator(Transactor):
    """
    The owners of the multisig plus a deployment descriptor, wired into an
    orchestrator for the connected network.
    """

    def __init__(
        self,
        descriptor: DeploymentDescriptor,
        proposer: AccountAPI,
        approver: typing.Optional[AccountAPI] = None,
        autosign: bool = False,
        poll_interval: typing.Optional[float] = None,
        timeout: typing.Optional[float] = None,
    ):
        owners = [proposer] if approver is None else [proposer, approver]
        super().__init__(owners, autosign)

        check_plugins()
        live = not self.is_local()
        if live and descriptor.chain_id is None:
            click.secho(
                f"⚠️  {descriptor} has no chain_id; cannot check it against the network",
                fg="yellow",
            )
        descriptor.validate_chain(get_chain_id(), live=live)

        self.descriptor = descriptor
        self.proposer = proposer
        self.approver = approver
        self.orchestrator = Orchestrator.from_descriptor(
            ledger=self,
            descriptor=descriptor,
            proposer=proposer.address,
            approver=approver.address if approver else None,
            poll_interval=poll_interval,
            timeout=timeout,
        )
        self._print_info()

        if not self._autosign:
            _continue()

    @classmethod
    def from_json(cls, filepath: Path, *args, **kwargs) -> "Operator":
        return cls(DeploymentDescriptor.from_json(filepath), *args, **kwargs)

    def _print_info(self):
        settings = self.descriptor.settings
        click.echo("Governance run")
        click.echo("**********************")
        click.echo(f"Descriptor: {self.descriptor}")
        click.echo(f"Network: {networks.provider.network.name}")
        click.echo(f"Chain ID: {get_chain_id()}")
        click.echo(f"Timelock: {self.descriptor.address('timelock')}")
        click.echo(f"Multisig: {self.descriptor.address('multisig')} ({settings.multisig_variant})")
        click.echo(f"Proposer: {self.proposer.address}")
        if self.approver is None:
            click.echo("Approver: <external>")
        else:
            click.echo(f"Approver: {self.approver.address}")
        click.echo("**********************")

    def run(self, action: GovernanceAction, **kwargs) -> RunResult:
        if not self._autosign:
            _confirm_action(
                label=action.label,
                target=action.target,
                description=f"{to_hex(action.data[:4])} ({len(action.data)} bytes calldata)",
                value=action.value,
            )
        return self.orchestrator.run(action, **kwargs)

    def run_batch(self, actions: typing.List[GovernanceAction], **kwargs) -> typing.List[RunResult]:
        if not self._autosign:
            for action in actions:
                click.echo(f"\t{action.label} -> {action.target}")
            _continue()
        return self.orchestrator.run_batch(actions, **kwargs)
