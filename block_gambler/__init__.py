"""
BlockGambler - one hex digit, one block hash, sixteen ways to be right.

An automated betting loop for the on-chain guess game: approve once, then
place a bet, wait for the block, resolve it, read the outcome, repeat.
"""

__version__ = "0.1.0"
__codename__ = "last_hex_standing"
