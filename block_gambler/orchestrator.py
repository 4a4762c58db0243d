"""
The Orchestrator - runs the betting loop.

Run:
1. Make sure the game may spend enough stake tokens (once)
2. For each bet:
   a. Stop here if a stop was requested
   b. Pick a guess
   c. Place the bet and recover its id
   d. Wait for the bet's block
   e. Resolve the bet and read the outcome
   f. Refresh the balance
   g. Cool down
3. Report

A stop request is only looked at between bets. A bet that has been placed is
always resolved before the loop stops, because an unresolved bet is stake left
on the table.
"""

import logging
import random
import signal
import threading
import time
from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum
from typing import Callable, Optional

from rich.console import Console
from rich.table import Table

from block_gambler.config import MANUAL, AgentConfig
from block_gambler.errors import (
    BalanceFetchFailed,
    ChainMismatch,
    InvalidRunConfig,
    NotConnected,
    RunAborted,
)
from block_gambler.ledger.contracts import GuessGame, StakeToken
from block_gambler.ledger.provider import WalletProvider
from block_gambler.observation import ObservationLog
from block_gambler.session import Session
from block_gambler.strategies.guessing import GuessSelector, validate_guess, validate_mode
from block_gambler.trading.allowance import AllowanceManager
from block_gambler.trading.balance import fetch_balance
from block_gambler.trading.executor import BetExecutor, BetRequest
from block_gambler.trading.resolver import BetResolver

logger = logging.getLogger(__name__)


class Phase(Enum):
    IDLE = "idle"
    APPROVING = "approving"
    CYCLING = "cycling"
    STOPPING = "stopping"
    COMPLETED = "completed"
    ERRORED = "errored"

    @property
    def terminal(self) -> bool:
        return self in (Phase.COMPLETED, Phase.ERRORED)


class CancellationToken:
    """Stop flag that can be set from a signal handler or another thread."""

    def __init__(self):
        self._event = threading.Event()

    def cancel(self):
        self._event.set()

    def reset(self):
        self._event.clear()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()


@dataclass
class RunState:
    remaining_count: int
    cancel_requested: bool = False
    phase: Phase = Phase.IDLE


@dataclass
class RunSummary:
    phase: Phase
    planned: int
    attempted: int = 0
    placed: int = 0
    resolved: int = 0
    wins: int = 0
    losses: int = 0
    total_wagered: Decimal = Decimal(0)
    total_reward: Decimal = Decimal(0)
    last_balance: Optional[Decimal] = None
    error: Optional[str] = None
    guesses: list = field(default_factory=list)

    @property
    def net(self) -> Decimal:
        return self.total_reward - self.total_wagered


class BetOrchestrator:
    """
    Drives a whole betting run for one connected wallet.

    Owns the run state, the run log and the last known balance. Everything
    else (allowance, placement, resolution) is delegated to one component per
    step, all sharing the same session.
    """

    def __init__(self, config: AgentConfig, log: Optional[ObservationLog] = None,
                 sleep: Callable[[float], None] = time.sleep, rng=None):
        self.config = config
        self.log = log or ObservationLog()
        self.sleep = sleep
        self.rng = rng or random
        self.cancel_token = CancellationToken()
        self.session: Optional[Session] = None
        self.state: Optional[RunState] = None
        self.balance: Optional[Decimal] = None
        self.game = GuessGame(config.contracts.game_address)
        self.token = StakeToken(config.contracts.token_address)

    def connect(self, provider: Optional[WalletProvider]) -> Session:
        """Connect a wallet, replacing any previous session."""
        # a failed reconnect leaves no session and no balance
        self.session = None
        self.balance = None
        self.session = Session.connect(provider, self.config.chain.chain_id, self.log)
        self.refresh_balance()
        return self.session

    def request_stop(self):
        self.cancel_token.cancel()
        self.log.log("Stopping betting...")

    def refresh_balance(self) -> Optional[Decimal]:
        """Best effort: failures are logged and the old balance is kept."""
        if self.session is None:
            return self.balance
        try:
            self.balance = fetch_balance(self.session, self.token)
        except BalanceFetchFailed as e:
            self.log.warning(str(e))
        return self.balance

    def _check_can_start(self):
        if self.session is None:
            raise NotConnected()
        if not self.session.on_expected_chain and not self.config.allow_chain_mismatch:
            raise ChainMismatch(self.session.chain_id, self.session.expected_chain_id)

        betting = self.config.betting
        validate_mode(betting.mode)
        if betting.mode == MANUAL:
            validate_guess(betting.guess)
        amount = Decimal(betting.bet_amount)
        if not amount.is_finite():
            raise InvalidRunConfig(f"Bet amount must be a finite number, got {amount}")
        if amount <= 0 or self.config.bet_amount_wei <= 0:
            raise InvalidRunConfig(f"Bet amount must be at least 1 wei, got {amount}")
        if betting.num_bets < 0:
            raise InvalidRunConfig(f"Number of bets must not be negative, got {betting.num_bets}")

    def run(self) -> RunSummary:
        """Run the configured number of bets.

        Connection and validation problems raise before anything is sent.
        Once the run has started, failures end it in the ERRORED phase and
        are reported in the log and the summary rather than raised.
        """
        self._check_can_start()

        betting = self.config.betting
        selector = GuessSelector(betting.mode, betting.guess, self.rng)
        self.cancel_token.reset()
        self.state = RunState(remaining_count=betting.num_bets)
        summary = RunSummary(phase=self.state.phase, planned=betting.num_bets,
                             guesses=selector.drawn)

        try:
            self.state.phase = Phase.APPROVING
            AllowanceManager(self.session, self.token, self.log).ensure_allowance(
                self.game.address, self.config.required_allowance_wei
            )

            self.state.phase = Phase.CYCLING
            self._cycle(selector, summary)
        except RunAborted as e:
            self._fail(summary, e)
        except Exception as e:
            logger.exception("Unexpected error during run")
            self._fail(summary, e)
        else:
            self.state.phase = Phase.COMPLETED
            self.log.log(f"Betting finished: {summary.resolved}/{summary.planned} bets resolved.")

        summary.phase = self.state.phase
        summary.last_balance = self.balance
        return summary

    def _fail(self, summary: RunSummary, error: Exception):
        self.state.phase = Phase.ERRORED
        summary.error = str(error)
        self.log.error(f"Betting process error: {error}")

    def _cycle(self, selector: GuessSelector, summary: RunSummary):
        betting = self.config.betting
        executor = BetExecutor(self.session, self.game, self.log)
        resolver = BetResolver(self.session, self.game, self.log)

        for i in range(betting.num_bets):
            if self.cancel_token.cancelled:
                self.state.cancel_requested = True
                self.state.phase = Phase.STOPPING
                self.log.log(f"Stopped after {i}/{betting.num_bets} bets.")
                break

            request = BetRequest(guess=selector.next_guess(), amount=betting.bet_amount)
            summary.attempted += 1
            self.log.log(f"Attempting bet {i + 1}/{betting.num_bets} with guess {request.guess}")

            placed = executor.place_bet(request.guess, request.amount_wei)
            summary.placed += 1
            summary.total_wagered += request.amount

            self.sleep(betting.settlement_delay)

            outcome = resolver.resolve_bet(placed.bet_id)
            summary.resolved += 1
            if outcome.won:
                summary.wins += 1
                summary.total_reward += outcome.reward_tokens
            else:
                summary.losses += 1

            self.refresh_balance()
            self.state.remaining_count -= 1
            self.sleep(betting.cooldown)

    def start(self) -> RunSummary:
        """Run with Ctrl-C / SIGTERM mapped to a graceful stop."""
        previous = {
            sig: signal.signal(sig, self._shutdown_handler)
            for sig in (signal.SIGINT, signal.SIGTERM)
        }
        try:
            return self.run()
        finally:
            for sig, handler in previous.items():
                signal.signal(sig, handler)

    def _shutdown_handler(self, signum, frame):
        self.request_stop()

    def display_summary(self, summary: RunSummary, console: Optional[Console] = None):
        console = console or Console()
        style = "red" if summary.phase == Phase.ERRORED else "green"

        table = Table(title="Run Summary", show_header=True)
        table.add_column("Metric", style="cyan")
        table.add_column("Value", style="green")

        table.add_row("Outcome", f"[{style}]{summary.phase.value}[/{style}]")
        table.add_row("Bets", f"{summary.resolved}/{summary.planned}")
        table.add_row("Wins / Losses", f"{summary.wins} / {summary.losses}")
        table.add_row("Wagered", f"{summary.total_wagered} tokens")
        table.add_row("Rewards", f"{summary.total_reward} tokens")
        table.add_row("Net", f"{summary.net:+} tokens")
        if summary.last_balance is not None:
            table.add_row("Balance", f"{summary.last_balance} tokens")
        if summary.error:
            table.add_row("Error", f"[red]{summary.error}[/red]")

        console.print(table)
