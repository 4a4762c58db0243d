"""
Bet Resolver - settles a bet and reads back what happened.

Resolution is a separate transaction from placement: the contract can only
judge a bet once the block it was placed in exists, which is why the
orchestrator waits between the two.
"""

from dataclasses import dataclass
from typing import Optional

from web3 import Web3

from block_gambler.errors import ProviderError, ResolveFailed
from block_gambler.ledger.contracts import GuessGame
from block_gambler.observation import ObservationLog
from block_gambler.session import Session

BANNER_WIDTH = 68


@dataclass
class ResolvedBet:
    bet_id: int
    user: str
    guess: str
    amount: int  # wei
    target_symbol: str
    won: bool
    reward: int  # wei, 0 unless won
    reference_block: int
    reference_hash: Optional[str] = None
    tx_hash: Optional[str] = None
    resolved: bool = True

    @property
    def reward_tokens(self):
        return Web3.from_wei(self.reward, "ether")


def _hex(value) -> Optional[str]:
    if value is None or isinstance(value, str):
        return value
    return Web3.to_hex(value)


def target_symbol_from_byte(target) -> str:
    """The contract stores the winning character as a single bytes1 value."""
    if isinstance(target, int):
        raw = bytes([target]) if 0 <= target < 256 else b""
    else:
        raw = bytes(target)
    if len(raw) != 1:
        raise ValueError(f"Expected a single byte, got {target!r}")
    symbol = chr(raw[0])
    if not symbol.isprintable():
        raise ValueError(f"Target byte {raw!r} is not a printable character")
    return symbol


def win_banner(bet_id: int, reward) -> list[str]:
    text = f"Congratulations! Bet {bet_id} won! Reward {reward} tokens sent to your address"
    width = max(BANNER_WIDTH, len(text) + 8)
    border = "/" * width
    blank = "//" + " " * (width - 4) + "//"
    middle = "//" + text.center(width - 4) + "//"
    return [border, blank, middle, blank, border]


class BetResolver:
    def __init__(self, session: Session, game: GuessGame, log: ObservationLog):
        self.session = session
        self.game = game
        self.log = log

    def resolve_bet(self, bet_id: int) -> ResolvedBet:
        """Send ``resolveBet``, wait for it, then read the bet record back.

        Raises ResolveFailed if any step fails or the record is still
        unresolved afterwards.
        """
        tx_hash = None
        try:
            tx_hash = self.session.send(self.game.resolve_bet(bet_id))
            self.log.log(f"Resolving bet {bet_id}... Tx: {tx_hash}", tx_hash)
            self.session.wait(tx_hash)
            record = self.session.call(self.game.get_bet(bet_id))
        except ProviderError as e:
            self.log.error(f"Resolve failed: {e}", tx_hash)
            raise ResolveFailed(str(e)) from e

        user, guess, amount, target_byte, won, reward, block_number, resolved = record
        if not resolved:
            self.log.error(f"Resolve failed: bet {bet_id} is still unresolved", tx_hash)
            raise ResolveFailed(f"Bet {bet_id} not marked resolved after {tx_hash}")

        try:
            target_symbol = target_symbol_from_byte(target_byte)
        except ValueError as e:
            self.log.error(f"Resolve failed: {e}", tx_hash)
            raise ResolveFailed(str(e)) from e

        won = bool(won)
        bet = ResolvedBet(
            bet_id=bet_id,
            user=user,
            guess=guess,
            amount=int(amount),
            target_symbol=target_symbol,
            won=won,
            reward=int(reward) if won else 0,
            reference_block=int(block_number),
            reference_hash=self._block_hash(int(block_number)),
            tx_hash=tx_hash,
        )

        self.log.log(
            f"Bet {bet_id} resolved. Block Hash: {bet.reference_hash}, "
            f"Target Byte: {bet.target_symbol}"
        )
        if bet.won:
            self.log.success(f"Won! Reward: {bet.reward_tokens} tokens. Tx: {tx_hash}", tx_hash)
            for line in win_banner(bet_id, bet.reward_tokens):
                self.log.success(line)
        else:
            self.log.log(f"Lost bet {bet_id}.")
        return bet

    def _block_hash(self, number: int) -> Optional[str]:
        # Audit information only; a missing block does not fail the bet.
        try:
            block = self.session.get_block(number)
        except ProviderError as e:
            self.log.warning(f"Could not fetch block {number}: {e}")
            return None
        return _hex(block["hash"]) if block else None

    def bet_counter(self) -> int:
        try:
            return int(self.session.call(self.game.bet_counter()))
        except ProviderError as e:
            raise ResolveFailed(f"Could not read betCounter: {e}") from e

    def get_bet(self, bet_id: int) -> tuple:
        try:
            return self.session.call(self.game.get_bet(bet_id))
        except ProviderError as e:
            raise ResolveFailed(f"Could not read bet {bet_id}: {e}") from e
