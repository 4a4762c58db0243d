"""
Wallet/RPC provider capability.

The rest of the package only talks to the chain through the WalletProvider
surface below. Web3Provider is the real implementation: web3.py over JSON-RPC,
signing locally with an eth-account LocalAccount when a private key is set and
falling back to node-managed accounts otherwise.
"""

import logging
from contextlib import contextmanager
from typing import Any, Optional, Protocol

import requests
from eth_account import Account
from web3 import Web3
from web3.exceptions import Web3Exception

from block_gambler.errors import ProviderError, TransactionReverted
from block_gambler.ledger.contracts import ContractCall

logger = logging.getLogger(__name__)


class WalletProvider(Protocol):
    def is_available(self) -> bool: ...

    def request_accounts(self) -> list[str]: ...

    def chain_id(self) -> int: ...

    def switch_chain(self, chain_id: int) -> None: ...

    def send_transaction(self, call: ContractCall, sender: str) -> str: ...

    def wait_for_receipt(self, tx_hash: str) -> Any: ...

    def call(self, call: ContractCall) -> Any: ...

    def get_block(self, number: int) -> Any: ...


@contextmanager
def _remote(what: str):
    """Turn web3/transport failures into ProviderError."""
    try:
        yield
    except (Web3Exception, ValueError, requests.RequestException) as e:
        raise ProviderError(f"{what} failed: {e}") from e


class Web3Provider:
    """WalletProvider backed by a web3.py HTTP connection."""

    def __init__(self, rpc_url: str, private_key: str = "",
                 receipt_timeout: float = 120, w3: Optional[Web3] = None):
        self.rpc_url = rpc_url
        self.receipt_timeout = receipt_timeout
        self.w3 = w3 or Web3(Web3.HTTPProvider(rpc_url))
        self.account = None
        self._contracts = {}

        if private_key:
            key = private_key if private_key.startswith("0x") else "0x" + private_key
            self.account = Account.from_key(key)

    def is_available(self) -> bool:
        try:
            return self.w3.is_connected()
        except requests.RequestException:
            return False

    def request_accounts(self) -> list[str]:
        if self.account is not None:
            return [self.account.address]
        with _remote("eth_accounts"):
            return list(self.w3.eth.accounts)

    def chain_id(self) -> int:
        with _remote("eth_chainId"):
            return int(self.w3.eth.chain_id)

    def switch_chain(self, chain_id: int) -> None:
        # Plain RPC endpoints serve exactly one chain, so this usually fails.
        with _remote("wallet_switchEthereumChain"):
            response = self.w3.provider.make_request(
                "wallet_switchEthereumChain", [{"chainId": hex(chain_id)}]
            )
        if response.get("error"):
            raise ProviderError(f"wallet_switchEthereumChain failed: {response['error']}")

    def _function(self, call: ContractCall):
        address = Web3.to_checksum_address(call.address)
        contract = self._contracts.get(address)
        if contract is None:
            contract = self.w3.eth.contract(address=address, abi=call.abi)
            self._contracts[address] = contract
        return contract.get_function_by_name(call.function)(*call.args)

    def send_transaction(self, call: ContractCall, sender: str) -> str:
        with _remote(call.function):
            fn = self._function(call)
            if self.account is not None and sender == self.account.address:
                tx = fn.build_transaction({
                    "from": sender,
                    "nonce": self.w3.eth.get_transaction_count(sender, "pending"),
                    "chainId": self.w3.eth.chain_id,
                })
                signed = self.account.sign_transaction(tx)
                tx_hash = self.w3.eth.send_raw_transaction(signed.raw_transaction)
            else:
                tx_hash = fn.transact({"from": sender})

        tx_hex = Web3.to_hex(tx_hash)
        logger.debug("%s sent: %s", call.describe(), tx_hex)
        return tx_hex

    def wait_for_receipt(self, tx_hash: str) -> Any:
        with _remote(f"receipt for {tx_hash}"):
            receipt = self.w3.eth.wait_for_transaction_receipt(
                tx_hash, timeout=self.receipt_timeout
            )
        if receipt["status"] != 1:
            raise TransactionReverted(tx_hash)
        logger.debug("%s confirmed in block %s", tx_hash, receipt["blockNumber"])
        return receipt

    def call(self, call: ContractCall) -> Any:
        with _remote(call.function):
            return self._function(call).call()

    def get_block(self, number: int) -> Any:
        with _remote(f"block {number}"):
            return self.w3.eth.get_block(number)
