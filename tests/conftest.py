"""Shared fixtures: an in-memory provider that behaves like the game contracts."""

from decimal import Decimal

import pytest
from eth_abi import encode
from web3 import Web3

from block_gambler.config import (
    AgentConfig,
    BettingConfig,
    ChainConfig,
    ContractsConfig,
    WalletConfig,
)
from block_gambler.errors import ProviderError
from block_gambler.ledger.events import BET_PLACED_TOPIC
from block_gambler.observation import ObservationLog
from block_gambler.orchestrator import BetOrchestrator

ACCOUNT = "0x70997970C51812dc3A010C7d01b50e0d17dc79C8"
GAME = Web3.to_checksum_address("0x" + "a1" * 20)
TOKEN = Web3.to_checksum_address("0x" + "b2" * 20)
FAUCET = Web3.to_checksum_address("0x" + "c3" * 20)
CHAIN_ID = 10143
TRANSFER_TOPIC = bytes(Web3.keccak(text="Transfer(address,address,uint256)"))


def _topic_address(address: str) -> bytes:
    return b"\x00" * 12 + bytes.fromhex(address[2:])


def bet_placed_log(bet_id, user, guess, amount, block_number, address=GAME):
    return {
        "address": address,
        "topics": [BET_PLACED_TOPIC, bet_id.to_bytes(32, "big"), _topic_address(user)],
        "data": encode(["string", "uint256", "uint256"], [guess, amount, block_number]),
    }


def transfer_log(sender, receiver, amount, address=TOKEN):
    return {
        "address": address,
        "topics": [TRANSFER_TOPIC, _topic_address(sender), _topic_address(receiver)],
        "data": encode(["uint256"], [amount]),
    }


class FakeProvider:
    """WalletProvider stand-in that keeps game state in memory.

    Every interaction is appended to ``calls`` as (kind, name, args) so tests
    can assert on ordering and counts.
    """

    def __init__(self):
        self.available = True
        self.accounts = [ACCOUNT]
        self.chain = CHAIN_ID
        self.can_switch = False
        self.allowance = 0
        self.balance = Web3.to_wei(1000, "ether")
        self.block_number = 100
        self.next_bet_id = 1
        self.bets = {}
        self.outcomes = {}  # bet_id -> (won, reward_wei, target_symbol)
        self.emit_bet_event = True
        self.send_failures = {}  # function name -> exception
        self.call_failures = {}
        self.wait_failure = None
        self.block_failure = None
        self.leave_unresolved = False
        self.calls = []
        self._receipts = {}

    # connection

    def is_available(self):
        return self.available

    def request_accounts(self):
        self.calls.append(("accounts", None, ()))
        if isinstance(self.accounts, Exception):
            raise self.accounts
        return list(self.accounts)

    def chain_id(self):
        return self.chain

    def switch_chain(self, chain_id):
        self.calls.append(("switch", None, (chain_id,)))
        if not self.can_switch:
            raise ProviderError("wallet_switchEthereumChain failed: method not supported")
        self.chain = chain_id

    # transactions

    def send_transaction(self, call, sender):
        self.calls.append(("send", call.function, call.args))
        if call.function in self.send_failures:
            raise self.send_failures[call.function]

        self.block_number += 1
        tx_hash = "0x" + f"{len(self._receipts) + 1:064x}"
        logs = []

        if call.function == "approve":
            self.allowance = call.args[1]
        elif call.function == "placeBet":
            guess, amount = call.args
            bet_id = self.next_bet_id
            self.next_bet_id += 1
            self.bets[bet_id] = [sender, guess, amount, b"0", False, 0, self.block_number, False]
            logs.append(transfer_log(sender, GAME, amount))
            if self.emit_bet_event:
                logs.append(bet_placed_log(bet_id, sender, guess, amount, self.block_number))
        elif call.function == "resolveBet":
            (bet_id,) = call.args
            won, reward, target = self.outcomes.get(bet_id, (False, 0, "7"))
            record = self.bets[bet_id]
            record[3] = target.encode()
            record[4] = won
            record[5] = reward
            record[7] = not self.leave_unresolved

        self._receipts[tx_hash] = {
            "transactionHash": tx_hash,
            "status": 1,
            "blockNumber": self.block_number,
            "logs": logs,
        }
        return tx_hash

    def wait_for_receipt(self, tx_hash):
        self.calls.append(("wait", None, (tx_hash,)))
        if self.wait_failure is not None:
            raise self.wait_failure
        return self._receipts[tx_hash]

    # reads

    def call(self, call):
        self.calls.append(("call", call.function, call.args))
        if call.function in self.call_failures:
            raise self.call_failures[call.function]
        if call.function == "allowance":
            return self.allowance
        if call.function == "balanceOf":
            return self.balance
        if call.function == "getBet":
            return tuple(self.bets[call.args[0]])
        if call.function == "betCounter":
            return self.next_bet_id - 1
        raise AssertionError(f"unexpected call {call.function}")

    def get_block(self, number):
        self.calls.append(("block", None, (number,)))
        if self.block_failure is not None:
            raise self.block_failure
        return {"number": number, "hash": number.to_bytes(32, "big")}

    # helpers

    def sent(self, function=None):
        return [c for c in self.calls if c[0] == "send" and (function is None or c[1] == function)]

    def kinds(self):
        return [(kind, name) for kind, name, _ in self.calls]


@pytest.fixture
def provider():
    return FakeProvider()


@pytest.fixture
def config():
    return AgentConfig(
        wallet=WalletConfig(private_key="", wallet_address=""),
        chain=ChainConfig(
            rpc_url="http://localhost:8545",
            chain_id=CHAIN_ID,
            explorer_url="https://explorer.test/tx/",
            receipt_timeout=5,
        ),
        contracts=ContractsConfig(
            game_address=GAME, token_address=TOKEN, faucet_address=FAUCET
        ),
        betting=BettingConfig(
            bet_amount=Decimal("100"),
            num_bets=1,
            mode="manual",
            guess="a",
            settlement_delay=2,
            cooldown=1,
        ),
    )


@pytest.fixture
def log():
    return ObservationLog()


class SleepRecorder:
    def __init__(self):
        self.calls = []
        self.hooks = []

    def __call__(self, seconds):
        self.calls.append(seconds)
        for hook in list(self.hooks):
            hook(len(self.calls), seconds)


@pytest.fixture
def sleep():
    return SleepRecorder()


@pytest.fixture
def orchestrator(config, log, sleep, provider):
    orch = BetOrchestrator(config, log=log, sleep=sleep)
    orch.connect(provider)
    return orch
