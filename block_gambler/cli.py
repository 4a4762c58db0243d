"""
CLI Entry Point for BlockGambler.

Commands:
  run     - Approve (if needed) and run the betting loop
  status  - Show wallet, balance, allowance and the game's bet counter
  bet     - Show one bet record
  claim   - Claim stake tokens from the testnet faucet
  config  - Show current configuration
"""

import logging
from decimal import Decimal, InvalidOperation

import click
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.panel import Panel
from web3 import Web3

from block_gambler import __version__
from block_gambler.config import BET_MODES, MANUAL, AgentConfig
from block_gambler.errors import BlockGamblerError
from block_gambler.ledger.contracts import Faucet
from block_gambler.ledger.provider import Web3Provider
from block_gambler.observation import ConsoleSink, ObservationLog
from block_gambler.orchestrator import BetOrchestrator
from block_gambler.trading.balance import fetch_allowance
from block_gambler.trading.faucet import claim_tokens
from block_gambler.trading.resolver import BetResolver, target_symbol_from_byte

console = Console()


class TokenAmount(click.ParamType):
    """A finite decimal number of tokens."""

    name = "amount"

    def convert(self, value, param, ctx):
        if isinstance(value, Decimal):
            amount = value
        else:
            try:
                amount = Decimal(str(value).strip())
            except InvalidOperation:
                self.fail(f"{value!r} is not a number", param, ctx)
        if not amount.is_finite():
            self.fail(f"{value!r} is not a finite number", param, ctx)
        return amount


def make_provider(config: AgentConfig):
    return Web3Provider(
        config.chain.rpc_url,
        private_key=config.wallet.private_key,
        receipt_timeout=config.chain.receipt_timeout,
    )


def _connected(config: AgentConfig) -> BetOrchestrator:
    log = ObservationLog([ConsoleSink(config.chain.explorer_url, console)])
    orchestrator = BetOrchestrator(config, log=log)
    orchestrator.connect(make_provider(config))
    return orchestrator


@click.group()
@click.version_option(version=__version__, prog_name="BlockGambler")
@click.option("-v", "--verbose", is_flag=True, help="Debug logging")
def cli(verbose):
    """BlockGambler - automated bets on the on-chain block hash guess game."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=console, show_path=False)],
    )


@cli.command()
@click.option("--amount", type=TokenAmount(), default=None, help="Stake per bet, in tokens")
@click.option("--count", type=int, default=None, help="Number of bets")
@click.option("--mode", type=click.Choice(BET_MODES), default=None)
@click.option("--guess", default=None, help="Symbol for manual mode (0-9, a-f)")
@click.option("--settlement-delay", type=float, default=None,
              help="Seconds between placing and resolving a bet")
@click.option("--cooldown", type=float, default=None, help="Seconds between bets")
@click.option("--allow-chain-mismatch", is_flag=True,
              help="Run even if the wallet is on another chain")
def run(amount, count, mode, guess, settlement_delay, cooldown, allow_chain_mismatch):
    """Run the betting loop. Ctrl-C stops after the current bet."""
    config = AgentConfig(allow_chain_mismatch=allow_chain_mismatch)
    betting = config.betting
    if amount is not None:
        betting.bet_amount = amount
    if count is not None:
        betting.num_bets = count
    if mode is not None:
        betting.mode = mode
    if guess is not None:
        betting.guess = guess.lower()
    if settlement_delay is not None:
        betting.settlement_delay = settlement_delay
    if cooldown is not None:
        betting.cooldown = cooldown

    try:
        orchestrator = _connected(config)
        if orchestrator.balance is not None:
            console.print(f"Balance: [green]{orchestrator.balance}[/green] tokens")
        console.print(Panel(
            f"Mode: [bold]{betting.mode}[/bold]"
            + (f" (guess [cyan]{betting.guess}[/cyan])" if betting.mode == MANUAL else "")
            + f"\nBet Amount: [yellow]{betting.bet_amount}[/yellow] tokens"
            f"\nNumber of Bets: [yellow]{betting.num_bets}[/yellow]"
            f"\nBlock Wait: {betting.settlement_delay}s | Cooldown: {betting.cooldown}s",
            title="[bold]BlockGambler[/bold]",
        ))
        summary = orchestrator.start()
    except BlockGamblerError as e:
        console.print(f"[red]{escape(str(e))}[/red]")
        raise SystemExit(1)

    orchestrator.display_summary(summary, console)
    if summary.error:
        raise SystemExit(1)


@cli.command()
def status():
    """Show wallet, balance, allowance and the game's bet counter."""
    config = AgentConfig()
    try:
        orchestrator = _connected(config)
        session = orchestrator.session
        allowance = fetch_allowance(session, orchestrator.token, orchestrator.game.address)
        counter = BetResolver(session, orchestrator.game, orchestrator.log).bet_counter()
    except BlockGamblerError as e:
        console.print(f"[red]{escape(str(e))}[/red]")
        raise SystemExit(1)

    console.print(Panel(
        f"Account: [cyan]{session.account}[/cyan]\n"
        f"Chain: {session.chain_id}"
        + ("" if session.on_expected_chain else f" [yellow](expected {session.expected_chain_id})[/yellow]")
        + f"\nBalance: [green]{orchestrator.balance}[/green] tokens\n"
        f"Allowance: {allowance} tokens\n"
        f"Bets placed on the game: {counter}",
        title="[bold]Status[/bold]",
    ))


@cli.command()
@click.argument("bet_id", type=int)
def bet(bet_id):
    """Show the on-chain record for BET_ID."""
    config = AgentConfig()
    try:
        orchestrator = _connected(config)
        record = BetResolver(orchestrator.session, orchestrator.game, orchestrator.log).get_bet(bet_id)
    except BlockGamblerError as e:
        console.print(f"[red]{escape(str(e))}[/red]")
        raise SystemExit(1)

    user, guess, amount, target_byte, won, reward, block_number, resolved = record
    outcome = "pending"
    target = "-"
    if resolved:
        outcome = "[green]won[/green]" if won else "[red]lost[/red]"
        try:
            target = target_symbol_from_byte(target_byte)
        except ValueError:
            target = escape(repr(target_byte))
    console.print(Panel(
        f"User: {user}\n"
        f"Guess: {guess}\n"
        f"Amount: {Web3.from_wei(amount, 'ether')} tokens\n"
        f"Block: {block_number}\n"
        f"Target: {target}\n"
        f"Outcome: {outcome}"
        + (f"\nReward: {Web3.from_wei(reward, 'ether')} tokens" if won else ""),
        title=f"[bold]Bet {bet_id}[/bold]",
    ))


@cli.command()
def claim():
    """Claim stake tokens from the faucet."""
    config = AgentConfig()
    if not config.contracts.faucet_address:
        console.print("[red]No FAUCET_CONTRACT_ADDRESS configured.[/red]")
        raise SystemExit(1)

    try:
        orchestrator = _connected(config)
        claim_tokens(orchestrator.session, Faucet(config.contracts.faucet_address),
                     orchestrator.log)
        orchestrator.refresh_balance()
    except BlockGamblerError as e:
        console.print(f"[red]{escape(str(e))}[/red]")
        raise SystemExit(1)

    console.print(f"Balance: [green]{orchestrator.balance}[/green] tokens")


@cli.command()
def config():
    """Show current configuration."""
    cfg = AgentConfig()

    console.print(Panel(
        f"RPC URL: {cfg.chain.rpc_url}\n"
        f"Chain ID: {cfg.chain.chain_id}\n"
        f"Explorer: {cfg.chain.explorer_url}\n"
        f"Game Contract: {cfg.contracts.game_address}\n"
        f"Token Contract: {cfg.contracts.token_address}\n"
        f"Faucet: {cfg.contracts.faucet_address or 'Not set'}\n"
        f"Bet Mode: {cfg.betting.mode}\n"
        f"Guess: {cfg.betting.guess}\n"
        f"Bet Amount: {cfg.betting.bet_amount}\n"
        f"Number of Bets: {cfg.betting.num_bets}\n"
        f"Block Wait: {cfg.betting.settlement_delay}s\n"
        f"Cooldown: {cfg.betting.cooldown}s\n"
        f"Wallet: {'Configured' if cfg.wallet.private_key else 'Not set (node accounts)'}",
        title="[bold]Configuration[/bold]",
    ))


def main():
    cli()


if __name__ == "__main__":
    main()
