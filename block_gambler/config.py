"""
Configuration for BlockGambler.

Everything comes from the environment (and a local .env file). The CLI
overrides individual fields per run.
"""

import os
from dataclasses import dataclass, field
from decimal import Decimal

from dotenv import load_dotenv
from web3 import Web3

load_dotenv()

MANUAL = "manual"
RANDOM = "random"
BET_MODES = (MANUAL, RANDOM)


def _env(name: str, default: str):
    return field(default_factory=lambda: os.getenv(name, default))


@dataclass
class WalletConfig:
    private_key: str = _env("PRIVATE_KEY", "")
    wallet_address: str = _env("WALLET_ADDRESS", "")


@dataclass
class ChainConfig:
    rpc_url: str = _env("RPC_URL", "https://testnet-rpc.monad.xyz")
    chain_id: int = field(default_factory=lambda: int(os.getenv("CHAIN_ID", "10143")))
    explorer_url: str = _env("EXPLORER_URL", "https://explorer.monad.xyz/tx/")
    receipt_timeout: float = field(
        default_factory=lambda: float(os.getenv("RECEIPT_TIMEOUT", "120"))
    )


@dataclass
class ContractsConfig:
    game_address: str = _env(
        "GAME_CONTRACT_ADDRESS", "0xd081Ae7bA1Ee5e872690F2cC26dfa588531eA628"
    )
    token_address: str = _env(
        "TOKEN_CONTRACT_ADDRESS", "0xF7C90D79a1c2EA9c9028704E1Bd1FCC3619b5a37"
    )
    faucet_address: str = _env("FAUCET_CONTRACT_ADDRESS", "")  # empty = no faucet


@dataclass
class BettingConfig:
    bet_amount: Decimal = field(
        default_factory=lambda: Decimal(os.getenv("BET_AMOUNT", "100"))
    )
    num_bets: int = field(default_factory=lambda: int(os.getenv("NUM_BETS", "100")))
    mode: str = _env("BET_MODE", MANUAL)
    guess: str = _env("BET_GUESS", "0")
    settlement_delay: float = field(
        default_factory=lambda: float(os.getenv("BLOCK_WAIT_TIME", "2"))
    )  # seconds
    cooldown: float = field(default_factory=lambda: float(os.getenv("COOLDOWN", "1")))


@dataclass
class AgentConfig:
    wallet: WalletConfig = field(default_factory=WalletConfig)
    chain: ChainConfig = field(default_factory=ChainConfig)
    contracts: ContractsConfig = field(default_factory=ContractsConfig)
    betting: BettingConfig = field(default_factory=BettingConfig)
    allow_chain_mismatch: bool = False

    @property
    def bet_amount_wei(self) -> int:
        return Web3.to_wei(self.betting.bet_amount, "ether")

    @property
    def required_allowance_wei(self) -> int:
        """Per-bet amount times the number of planned bets."""
        return self.bet_amount_wei * self.betting.num_bets
