"""Errors raised by staking pool operations."""
from typing import Any, Optional


class StakingError(Exception):
    """Base class for every rejected pool operation.

    A raised StakingError means the operation had no effect: ledger state,
    custodied value and event history are exactly as before the call.
    """

    code = "staking_error"

    def __init__(self, reason: str, details: Optional[Any] = None):
        super().__init__(reason)
        self.reason = reason
        self.details = details

    def __str__(self) -> str:
        if self.details is None:
            return f"{self.code}: {self.reason}"
        return f"{self.code}: {self.reason} ({self.details})"


class InvalidAmount(StakingError):
    """Amount is zero, negative, or larger than the available balance."""

    code = "invalid_amount"


class NoActiveStake(InvalidAmount):
    """Participant has never staked, or has withdrawn everything."""

    code = "no_active_stake"


class PolicyViolation(StakingError):
    """Minimum staking period has not elapsed yet."""

    code = "policy_violation"


class Unauthorized(StakingError):
    code = "unauthorized"


class NothingToClaim(StakingError):
    code = "nothing_to_claim"


class TransferFailed(StakingError):
    """Outgoing value transfer was rejected; the whole operation is aborted."""

    code = "transfer_failed"


class PoolInsolvent(TransferFailed):
    """Reward payout exceeds the available reward pool (solvency guard on)."""

    code = "pool_insolvent"
