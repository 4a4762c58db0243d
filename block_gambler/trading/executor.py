"""
Bet Executor - sends the wager and finds out which bet it became.

placeBet returns the new bet id, but transaction return values are not
visible to the sender, so the id is recovered from the BetPlaced event in the
receipt instead.
"""

import time
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Optional

from web3 import Web3

from block_gambler.errors import BetIdExtractionFailed, PlaceBetFailed, ProviderError
from block_gambler.ledger.contracts import GuessGame
from block_gambler.ledger.events import Found, find_bet_placed
from block_gambler.observation import ObservationLog
from block_gambler.session import Session


@dataclass
class BetRequest:
    guess: str
    amount: Decimal  # token units

    @property
    def amount_wei(self) -> int:
        return Web3.to_wei(self.amount, "ether")


@dataclass
class PlacedBet:
    bet_id: int
    guess: str
    amount: int  # wei
    tx_hash: str
    block_number: Optional[int] = None
    submitted_at: float = field(default_factory=time.time)


class BetExecutor:
    """Places one bet at a time and waits for it to be included."""

    def __init__(self, session: Session, game: GuessGame, log: ObservationLog):
        self.session = session
        self.game = game
        self.log = log

    def place_bet(self, guess: str, amount_wei: int) -> PlacedBet:
        """Submit ``placeBet``, wait for the receipt and return the placed bet.

        Raises PlaceBetFailed if the transaction cannot be sent or does not
        succeed, and BetIdExtractionFailed if it succeeds without emitting
        BetPlaced.
        """
        submitted_at = time.time()
        tx_hash = None
        try:
            tx_hash = self.session.send(self.game.place_bet(guess, amount_wei))
            self.log.log(f"Placing bet with guess {guess}... Tx: {tx_hash}", tx_hash)
            receipt = self.session.wait(tx_hash)
        except ProviderError as e:
            self.log.error(f"Place bet failed: {e}", tx_hash)
            raise PlaceBetFailed(str(e)) from e

        result = find_bet_placed(receipt.get("logs", []), self.game.address)
        if not isinstance(result, Found):
            self.log.error(f"Place bet failed: no BetPlaced event in {tx_hash}", tx_hash)
            raise BetIdExtractionFailed(tx_hash)

        block_number = receipt.get("blockNumber")
        self.log.log(f"Bet placed. Bet ID: {result.event.bet_id}, Block: {block_number}")
        return PlacedBet(
            bet_id=result.event.bet_id,
            guess=guess,
            amount=amount_wei,
            tx_hash=tx_hash,
            block_number=block_number,
            submitted_at=submitted_at,
        )
