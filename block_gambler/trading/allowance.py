"""
Stake token allowance.

The game pulls stakes with transferFrom, so it needs an ERC-20 allowance that
covers the whole run before the first bet. When the current allowance falls
short, one approval for the maximum uint256 is sent so later runs do not need
another.
"""

from dataclasses import dataclass

from block_gambler.errors import ApprovalFailed, ProviderError
from block_gambler.ledger.abi import MAX_UINT256
from block_gambler.ledger.contracts import StakeToken
from block_gambler.observation import ObservationLog
from block_gambler.session import Session


@dataclass
class AllowanceState:
    owner: str
    spender: str
    current_allowance: int
    required_allowance: int

    @property
    def sufficient(self) -> bool:
        return self.current_allowance >= self.required_allowance


class AllowanceManager:
    def __init__(self, session: Session, token: StakeToken, log: ObservationLog):
        self.session = session
        self.token = token
        self.log = log
        self.approvals_sent = 0

    def ensure_allowance(self, spender: str, required_total: int) -> AllowanceState:
        """Make sure ``spender`` may move at least ``required_total`` wei.

        No transaction is sent if the allowance already covers it.
        """
        owner = self.session.account
        try:
            current = self.session.call(self.token.allowance(owner, spender))
        except ProviderError as e:
            self.log.error(f"Approval failed: {e}")
            raise ApprovalFailed(f"Could not read allowance: {e}") from e

        state = AllowanceState(owner, spender, int(current), required_total)
        if state.sufficient:
            return state

        tx_hash = None
        try:
            tx_hash = self.session.send(self.token.approve(spender, MAX_UINT256))
            self.approvals_sent += 1
            self.log.log(f"Approving tokens... Tx: {tx_hash}", tx_hash)
            self.session.wait(tx_hash)
        except ProviderError as e:
            self.log.error(f"Approval failed: {e}", tx_hash)
            raise ApprovalFailed(str(e)) from e

        self.log.log("Approval confirmed.")
        state.current_allowance = MAX_UINT256
        return state
