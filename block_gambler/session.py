"""
Wallet session.

A Session is a connected account bound to a provider, plus the chain that
provider reported at connect time. Components never hold a provider directly;
they go through the session so every transaction is sent from the same
account.
"""

import logging
from dataclasses import dataclass
from typing import Any, Optional

from block_gambler.errors import ProviderError, UserRejected, WalletUnavailable
from block_gambler.ledger.contracts import ContractCall
from block_gambler.ledger.provider import WalletProvider
from block_gambler.observation import ObservationLog

logger = logging.getLogger(__name__)


@dataclass
class Session:
    provider: WalletProvider
    account: str
    chain_id: int
    expected_chain_id: int

    @property
    def on_expected_chain(self) -> bool:
        return self.chain_id == self.expected_chain_id

    @classmethod
    def connect(cls, provider: Optional[WalletProvider], expected_chain_id: int,
                log: Optional[ObservationLog] = None) -> "Session":
        """Connect to ``provider`` and return a session for its first account.

        Raises WalletUnavailable if there is no reachable provider and
        UserRejected if it hands out no account. A chain the provider cannot
        switch away from is only a warning; callers decide whether a session
        on the wrong chain may run.
        """
        log = log or ObservationLog()

        if provider is None or not provider.is_available():
            raise WalletUnavailable(
                "No wallet detected. Configure PRIVATE_KEY or point RPC_URL at a "
                "node with unlocked accounts."
            )

        try:
            accounts = provider.request_accounts()
        except ProviderError as e:
            raise UserRejected(f"Wallet connection failed: {e}") from e
        if not accounts:
            raise UserRejected("Wallet connection failed: no accounts available")

        account = accounts[0]
        try:
            chain_id = provider.chain_id()
        except ProviderError as e:
            raise WalletUnavailable(f"Wallet connection failed: {e}") from e

        log.log(f"Connected wallet: {account}")

        if chain_id != expected_chain_id:
            try:
                provider.switch_chain(expected_chain_id)
                chain_id = provider.chain_id()
            except ProviderError as e:
                logger.debug("Network switch refused: %s", e)
            if chain_id != expected_chain_id:
                log.warning(f"Warning: Connected to chain {chain_id}, expected {expected_chain_id}")
            else:
                log.log(f"Switched to chain {chain_id}")

        return cls(
            provider=provider,
            account=account,
            chain_id=chain_id,
            expected_chain_id=expected_chain_id,
        )

    def send(self, call: ContractCall) -> str:
        return self.provider.send_transaction(call, self.account)

    def wait(self, tx_hash: str) -> Any:
        return self.provider.wait_for_receipt(tx_hash)

    def call(self, call: ContractCall) -> Any:
        return self.provider.call(call)

    def get_block(self, number: int) -> Any:
        return self.provider.get_block(number)
