"""Stake Pool: single-pool staking ledger with time-proportional rewards."""

__version__ = "0.1.0"
