"""
Error taxonomy for BlockGambler.

Connection and validation errors stop a run before it starts. RunAborted
subclasses end a run in progress; nothing is retried because a placed but
unresolved bet cannot be replayed without risking a duplicate wager.
"""


class BlockGamblerError(Exception):
    """Base class for everything this package raises on purpose."""


# Remote calls

class ProviderError(BlockGamblerError):
    """A call to the wallet/RPC provider failed."""


class TransactionReverted(ProviderError):
    """A transaction was included but its receipt status is not 1."""

    def __init__(self, tx_hash: str, message: str = ""):
        self.tx_hash = tx_hash
        super().__init__(message or f"Transaction reverted: {tx_hash}")


# Connection time

class ConnectError(BlockGamblerError):
    pass


class WalletUnavailable(ConnectError):
    pass


class UserRejected(ConnectError):
    pass


class ChainMismatch(ConnectError):
    def __init__(self, actual: int, expected: int):
        self.actual = actual
        self.expected = expected
        super().__init__(f"Connected to chain {actual}, expected {expected}")


class NotConnected(ConnectError):
    def __init__(self, message: str = "Connect wallet first."):
        super().__init__(message)


# Validation

class InvalidGuess(BlockGamblerError):
    def __init__(self, guess):
        self.guess = guess
        super().__init__(f"Invalid guess {guess!r}: expected one of 0-9 or a-f")


class InvalidRunConfig(BlockGamblerError):
    """Bet amount, count or mode cannot be used for a run."""


# Mid-run

class RunAborted(BlockGamblerError):
    """Ends the whole run, not just the current iteration."""


class ApprovalFailed(RunAborted):
    pass


class PlaceBetFailed(RunAborted):
    pass


class BetIdExtractionFailed(RunAborted):
    """The bet transaction was included but emitted no BetPlaced event."""

    def __init__(self, tx_hash: str):
        self.tx_hash = tx_hash
        super().__init__(f"Failed to extract betId from {tx_hash}")


class ResolveFailed(RunAborted):
    pass


class BalanceFetchFailed(BlockGamblerError):
    """Logged and swallowed by the orchestrator."""


# Outside the run

class ClaimFailed(BlockGamblerError):
    """The faucet claim transaction failed."""
