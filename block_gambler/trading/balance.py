"""Stake token balance lookup."""

from decimal import Decimal

from web3 import Web3

from block_gambler.errors import BalanceFetchFailed, ProviderError
from block_gambler.ledger.contracts import StakeToken
from block_gambler.session import Session


def fetch_balance(session: Session, token: StakeToken) -> Decimal:
    """Return the session account's token balance in whole-token units."""
    try:
        raw = session.call(token.balance_of(session.account))
    except ProviderError as e:
        raise BalanceFetchFailed(f"Failed to fetch balance: {e}") from e
    return Web3.from_wei(int(raw), "ether")


def fetch_allowance(session: Session, token: StakeToken, spender: str) -> Decimal:
    try:
        raw = session.call(token.allowance(session.account, spender))
    except ProviderError as e:
        raise BalanceFetchFailed(f"Failed to fetch allowance: {e}") from e
    return Web3.from_wei(int(raw), "ether")
