"""
Contract bindings.

Each binding only builds ContractCall values; the Session decides whether a
call is sent as a transaction or executed read-only.
"""

from dataclasses import dataclass

from web3 import Web3

from block_gambler.ledger.abi import ERC20_ABI, FAUCET_ABI, GUESS_GAME_ABI


@dataclass(frozen=True)
class ContractCall:
    address: str
    abi: list
    function: str
    args: tuple = ()

    def describe(self) -> str:
        args = ", ".join(str(a) for a in self.args)
        return f"{self.function}({args})"


class GuessGame:
    def __init__(self, address: str):
        self.address = Web3.to_checksum_address(address)

    def _call(self, function: str, *args) -> ContractCall:
        return ContractCall(self.address, GUESS_GAME_ABI, function, tuple(args))

    def place_bet(self, guess: str, amount_wei: int) -> ContractCall:
        return self._call("placeBet", guess, amount_wei)

    def resolve_bet(self, bet_id: int) -> ContractCall:
        return self._call("resolveBet", bet_id)

    def get_bet(self, bet_id: int) -> ContractCall:
        return self._call("getBet", bet_id)

    def bet_counter(self) -> ContractCall:
        return self._call("betCounter")


class StakeToken:
    """ERC-20 token the game takes its stakes in."""

    def __init__(self, address: str):
        self.address = Web3.to_checksum_address(address)

    def approve(self, spender: str, amount_wei: int) -> ContractCall:
        spender = Web3.to_checksum_address(spender)
        return ContractCall(self.address, ERC20_ABI, "approve", (spender, amount_wei))

    def allowance(self, owner: str, spender: str) -> ContractCall:
        owner, spender = Web3.to_checksum_address(owner), Web3.to_checksum_address(spender)
        return ContractCall(self.address, ERC20_ABI, "allowance", (owner, spender))

    def balance_of(self, owner: str) -> ContractCall:
        owner = Web3.to_checksum_address(owner)
        return ContractCall(self.address, ERC20_ABI, "balanceOf", (owner,))


class Faucet:
    def __init__(self, address: str):
        self.address = Web3.to_checksum_address(address)

    def claim(self) -> ContractCall:
        return ContractCall(self.address, FAUCET_ABI, "claim")
