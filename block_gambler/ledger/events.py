"""
Typed decoder for the game's BetPlaced event.

Receipt logs are matched on the event signature topic, so unrelated logs in
the same receipt (token Transfer/Approval events, for instance) are skipped
without ever attempting to decode them.
"""

import logging
from dataclasses import dataclass
from typing import Iterable, Optional, Union

from eth_abi import decode
from eth_abi.exceptions import DecodingError
from web3 import Web3

logger = logging.getLogger(__name__)

BET_PLACED_SIGNATURE = "BetPlaced(uint256,address,string,uint256,uint256)"
BET_PLACED_TOPIC = bytes(Web3.keccak(text=BET_PLACED_SIGNATURE))

# Non-indexed fields, in declaration order
_DATA_TYPES = ["string", "uint256", "uint256"]


@dataclass(frozen=True)
class BetPlacedEvent:
    bet_id: int
    user: str
    guess: str
    amount: int
    block_number: int


@dataclass(frozen=True)
class Found:
    event: BetPlacedEvent


@dataclass(frozen=True)
class NotFound:
    logs_seen: int = 0


DecodeResult = Union[Found, NotFound]


def _as_bytes(value) -> bytes:
    if isinstance(value, str):
        return bytes.fromhex(value[2:] if value.startswith("0x") else value)
    return bytes(value)


def decode_bet_placed(log) -> Optional[BetPlacedEvent]:
    """Decode one receipt log, or return None if it is not a BetPlaced log."""
    topics = [_as_bytes(t) for t in log.get("topics", [])]
    if len(topics) != 3 or topics[0] != BET_PLACED_TOPIC:
        return None

    try:
        guess, amount, block_number = decode(_DATA_TYPES, _as_bytes(log.get("data", b"")))
    except DecodingError as e:
        logger.debug("BetPlaced topic matched but data did not decode: %s", e)
        return None
    return BetPlacedEvent(
        bet_id=int.from_bytes(topics[1], "big"),
        user=Web3.to_checksum_address(topics[2][-20:]),
        guess=guess,
        amount=amount,
        block_number=block_number,
    )


def find_bet_placed(logs: Iterable, contract_address: Optional[str] = None) -> DecodeResult:
    """Return the first BetPlaced event in ``logs``.

    When ``contract_address`` is given, logs emitted by other contracts are
    ignored even if their topic happens to match.
    """
    wanted = contract_address.lower() if contract_address else None
    seen = 0
    for log in logs:
        seen += 1
        emitter = log.get("address")
        if wanted and emitter and str(emitter).lower() != wanted:
            continue
        event = decode_bet_placed(log)
        if event is not None:
            return Found(event)
    return NotFound(logs_seen=seen)
