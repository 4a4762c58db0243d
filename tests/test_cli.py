"""Tests for the block-gambler command line."""

import pytest
from click.testing import CliRunner
from web3 import Web3

import block_gambler.cli as cli_module
from block_gambler.cli import cli
from conftest import ACCOUNT, CHAIN_ID, FAUCET, GAME, TOKEN, FakeProvider


@pytest.fixture
def fake(monkeypatch):
    provider = FakeProvider()
    monkeypatch.setattr(cli_module, "make_provider", lambda config: provider)
    monkeypatch.setenv("GAME_CONTRACT_ADDRESS", GAME)
    monkeypatch.setenv("TOKEN_CONTRACT_ADDRESS", TOKEN)
    monkeypatch.setenv("CHAIN_ID", str(CHAIN_ID))
    monkeypatch.setenv("BLOCK_WAIT_TIME", "0")
    monkeypatch.setenv("COOLDOWN", "0")
    monkeypatch.setenv("BET_AMOUNT", "100")
    monkeypatch.setenv("BET_MODE", "manual")
    monkeypatch.setenv("BET_GUESS", "0")
    monkeypatch.delenv("FAUCET_CONTRACT_ADDRESS", raising=False)
    return provider


@pytest.fixture
def runner():
    return CliRunner()


class TestRun:
    def test_runs_requested_bets(self, runner, fake):
        result = runner.invoke(cli, ["run", "--count", "2", "--guess", "A"])

        assert result.exit_code == 0, result.output
        assert "Betting finished: 2/2 bets resolved." in result.output
        assert [c[2][0] for c in fake.sent("placeBet")] == ["a", "a"]

    def test_random_mode(self, runner, fake):
        result = runner.invoke(cli, ["run", "--count", "3", "--mode", "random"])
        assert result.exit_code == 0, result.output
        assert len(fake.sent("placeBet")) == 3

    def test_invalid_guess_exits_before_sending(self, runner, fake):
        result = runner.invoke(cli, ["run", "--count", "1", "--guess", "g"])

        assert result.exit_code == 1
        assert "Invalid guess" in result.output
        assert fake.sent() == []

    @pytest.mark.parametrize("amount", ["abc", "nan", "inf", "Infinity"])
    def test_bad_amount_is_a_usage_error(self, runner, fake, amount):
        result = runner.invoke(cli, ["run", "--amount", amount, "--count", "1"])

        assert result.exit_code == 2
        assert "--amount" in result.output
        assert not isinstance(result.exception, ArithmeticError)
        assert fake.calls == []

    def test_amount_below_one_wei(self, runner, fake):
        result = runner.invoke(cli, ["run", "--amount", "0.0000000000000000001", "--count", "1"])

        assert result.exit_code == 1
        assert "at least 1 wei" in result.output
        assert fake.sent() == []

    def test_unknown_mode_is_rejected_by_click(self, runner, fake):
        result = runner.invoke(cli, ["run", "--mode", "martingale"])
        assert result.exit_code == 2

    def test_failed_run_exits_nonzero(self, runner, fake):
        fake.emit_bet_event = False
        result = runner.invoke(cli, ["run", "--count", "1", "--guess", "a"])
        assert result.exit_code == 1
        assert fake.sent("resolveBet") == []

    def test_wrong_chain(self, runner, fake):
        fake.chain = 1
        result = runner.invoke(cli, ["run", "--count", "1"])
        assert result.exit_code == 1
        assert fake.sent() == []

        result = runner.invoke(cli, ["run", "--count", "1", "--allow-chain-mismatch"])
        assert result.exit_code == 0, result.output

    def test_no_wallet(self, runner, fake):
        fake.available = False
        result = runner.invoke(cli, ["run"])
        assert result.exit_code == 1
        assert "No wallet detected" in result.output


class TestStatus:
    def test_shows_account_and_counter(self, runner, fake):
        fake.next_bet_id = 8
        result = runner.invoke(cli, ["status"])

        assert result.exit_code == 0, result.output
        assert ACCOUNT in result.output
        assert "Bets placed on the game: 7" in result.output
        assert "1000" in result.output


class TestBet:
    def test_shows_record(self, runner, fake):
        fake.bets[5] = [ACCOUNT, "c", Web3.to_wei(100, "ether"), b"c", True,
                        Web3.to_wei(1200, "ether"), 50, True]
        result = runner.invoke(cli, ["bet", "5"])

        assert result.exit_code == 0, result.output
        assert "Guess: c" in result.output
        assert "Outcome: won" in result.output
        assert "Reward: 1200 tokens" in result.output

    def test_pending_record(self, runner, fake):
        fake.bets[6] = [ACCOUNT, "c", 1, b"0", False, 0, 50, False]
        result = runner.invoke(cli, ["bet", "6"])
        assert "Outcome: pending" in result.output
        assert "Reward" not in result.output


    def test_unprintable_target_is_shown_raw(self, runner, fake):
        fake.bets[7] = [ACCOUNT, "c", 1, b"\x00", False, 0, 50, True]
        result = runner.invoke(cli, ["bet", "7"])
        assert result.exit_code == 0, result.output
        assert "Outcome: lost" in result.output


class TestClaim:
    def test_requires_faucet(self, runner, fake):
        result = runner.invoke(cli, ["claim"])
        assert result.exit_code == 1
        assert "FAUCET_CONTRACT_ADDRESS" in result.output
        assert fake.sent() == []

    def test_claims(self, runner, fake, monkeypatch):
        monkeypatch.setenv("FAUCET_CONTRACT_ADDRESS", FAUCET)
        result = runner.invoke(cli, ["claim"])

        assert result.exit_code == 0, result.output
        assert fake.sent("claim") == [("send", "claim", ())]
        assert "Claim confirmed." in result.output


class TestConfig:
    def test_shows_configuration(self, runner, fake):
        result = runner.invoke(cli, ["config"])
        assert result.exit_code == 0
        assert f"Chain ID: {CHAIN_ID}" in result.output
        assert "Faucet: Not set" in result.output


def test_version(runner):
    result = runner.invoke(cli, ["--version"])
    assert result.exit_code == 0
    assert "0.1.0" in result.output
