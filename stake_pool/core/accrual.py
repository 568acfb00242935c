"""Reward accrual arithmetic."""
from typing import Optional

from loguru import logger

from .errors import PoolInsolvent
from .ledger import LedgerTransaction, StakeRecord

# Reward rates are fixed-point numbers with 18 decimals
REWARD_PRECISION = 10**18


def pending_reward(record: Optional[StakeRecord], current_time: int, rate: int) -> int:
    """Calculate the reward accrued since the record was last settled.

    reward = amount * rate * elapsed // 10**18, rounded down. Anything below
    the precision is forfeited, not carried into the next interval.

    Args:
        record: Participant record, None if the participant never staked
        current_time: Timestamp to accrue up to
        rate: Reward rate per second, scaled by REWARD_PRECISION

    Returns:
        Accrued reward, 0 for empty records or a clock that moved backwards
    """
    if record is None or record.amount == 0:
        return 0
    elapsed = current_time - record.last_claim_time
    if elapsed <= 0:
        return 0
    return record.amount * rate * elapsed // REWARD_PRECISION


def settle(tx: LedgerTransaction, participant: str, now: int,
           solvency_guard: bool = False) -> int:
    """Pay out everything accrued by a participant up to ``now``.

    Advances last_claim_time and the lifetime counter on the staged state and
    queues the payout on the transaction, so the bookkeeping and the transfer
    commit or fail together.

    Returns:
        Reward paid, 0 if nothing was due
    """
    record = tx.record(participant)
    reward = pending_reward(record, now, tx.state.reward_rate_per_second)
    if reward == 0:
        return 0

    if solvency_guard:
        available = tx.state.custodied - tx.state.total_staked
        if reward > available:
            raise PoolInsolvent(
                "reward exceeds available reward pool",
                {"reward": reward, "available": available},
            )

    record.last_claim_time = now
    record.total_rewards_claimed += reward
    tx.pay(participant, reward)
    logger.debug(f"Settled {reward} for {participant} at {now}")
    return reward
