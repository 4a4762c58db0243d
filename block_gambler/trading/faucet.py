"""
Testnet faucet.

Not part of the betting loop; the CLI offers it so an empty wallet can get
stake tokens without leaving the terminal.
"""

from block_gambler.errors import ClaimFailed, ProviderError
from block_gambler.ledger.contracts import Faucet
from block_gambler.observation import ObservationLog
from block_gambler.session import Session


def claim_tokens(session: Session, faucet: Faucet, log: ObservationLog) -> str:
    """Call the faucet's ``claim()`` and wait for it. Returns the tx hash."""
    tx_hash = None
    try:
        tx_hash = session.send(faucet.claim())
        log.log(f"Claiming tokens... Tx: {tx_hash}", tx_hash)
        session.wait(tx_hash)
    except ProviderError as e:
        log.error(f"Claim failed: {e}", tx_hash)
        raise ClaimFailed(str(e)) from e
    log.success("Claim confirmed.")
    return tx_hash
