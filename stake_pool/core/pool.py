"""Staking pool operations: stake, claim, unstake and administration."""
from typing import Callable, List, Optional

from loguru import logger
from pydantic import BaseModel

from .accrual import pending_reward, settle
from .auth import AdministratorCheck, Authorizer
from .clock import Clock, SystemClock
from .config import PoolConfig
from .errors import (
    InvalidAmount,
    NoActiveStake,
    NothingToClaim,
    PolicyViolation,
    StakingError,
    Unauthorized,
)
from .events import EventKind, EventLog, Listener, PoolEvent
from .ledger import Ledger, PoolState
from .wallet import Transfer


def _is_whole(value) -> bool:
    """Amounts and rates are integers in the smallest unit; bools and floats are not."""
    return isinstance(value, int) and not isinstance(value, bool)


class RecordView(BaseModel):
    """Read-only projection of a participant's stake."""
    amount: int
    start_time: int
    pending_reward: int
    total_rewards_claimed: int
    exists: bool = True


class StakingPool:
    """Single-asset staking pool with time-proportional rewards.

    Every public method runs under the ledger lock and reads the clock once.
    Mutations are staged in a ledger transaction together with the matching
    outgoing transfer; events are published only after the commit.
    """

    def __init__(self,
                 config: PoolConfig,
                 transfer: Transfer,
                 clock: Optional[Clock] = None,
                 authorizer: Optional[Authorizer] = None,
                 ledger: Optional[Ledger] = None,
                 events: Optional[EventLog] = None):
        """Initialize the pool.

        Args:
            config: Construction parameters
            transfer: Primitive moving value out of the pool
            clock: Time source, wall clock by default
            authorizer: Administrator check, defaults to the configured administrator
            ledger: Existing ledger to resume from instead of a fresh one
            events: Existing event log to resume from
        """
        self.config = config
        self.transfer = transfer
        self.clock = clock or SystemClock()
        self.ledger = ledger or Ledger(PoolState(
            administrator=config.administrator,
            reward_rate_per_second=config.reward_rate_per_second,
            minimum_staking_period=config.minimum_staking_period,
        ))
        self.authorizer = authorizer or AdministratorCheck(self.ledger.state.administrator)
        self.events = events or EventLog()

    # ==================== Participant operations ====================

    def stake(self, participant: str, amount: int) -> None:
        """Deposit principal.

        Rewards accrued on an existing balance are paid out first, so the new
        principal only earns from now on. The deposited value is taken into
        custody as part of the same transaction.

        Raises:
            InvalidAmount: If amount is not positive
            TransferFailed: If paying the accrued reward fails
        """
        with self.ledger.lock:
            now = self.clock.now()
            if not _is_whole(amount) or amount <= 0:
                raise self._reject(InvalidAmount("stake amount must be a positive integer", {"amount": amount}))

            pending: List[PoolEvent] = []
            with self.ledger.transaction(self.transfer) as tx:
                tx.receive(amount)
                tx.state.total_staked += amount

                record = tx.record(participant)
                if record is not None and record.amount > 0:
                    reward = settle(tx, participant, now, self.config.solvency_guard)
                    if reward:
                        pending.append(self._event(EventKind.REWARDS_CLAIMED, participant, reward, now))

                if record is None:
                    record = tx.open_record(participant, now)
                record.amount += amount
                record.last_claim_time = max(record.last_claim_time, now)
                pending.append(self._event(EventKind.STAKED, participant, amount, now))

            self.events.publish(pending)

    def claim_rewards(self, participant: str) -> int:
        """Pay out the participant's pending reward.

        Returns:
            Amount paid

        Raises:
            NoActiveStake: If the participant holds no principal
            NothingToClaim: If no reward has accrued
            TransferFailed: If the payout is rejected
        """
        with self.ledger.lock:
            now = self.clock.now()
            record = self.ledger.lookup(participant)
            if record is None or record.amount == 0:
                raise self._reject(NoActiveStake("no stake found", {"participant": participant}))

            with self.ledger.transaction(self.transfer) as tx:
                reward = settle(tx, participant, now, self.config.solvency_guard)
                if reward == 0:
                    raise self._reject(NothingToClaim("no rewards accrued", {"participant": participant}))

            self.events.publish([self._event(EventKind.REWARDS_CLAIMED, participant, reward, now)])
            return reward

    def unstake(self, participant: str, amount: int) -> None:
        """Withdraw principal after the minimum staking period.

        The period is counted from the participant's first deposit. Pending
        rewards on the full pre-withdrawal balance are paid in the same
        transfer as the principal.

        Raises:
            NoActiveStake: If the participant holds no principal
            PolicyViolation: If the minimum staking period has not elapsed
            InvalidAmount: If amount is not positive or exceeds the balance
            TransferFailed: If the payout is rejected
        """
        with self.ledger.lock:
            now = self.clock.now()
            record = self.ledger.lookup(participant)
            if record is None:
                raise self._reject(NoActiveStake("no stake found", {"participant": participant}))

            unlock_at = record.start_time + self.ledger.state.minimum_staking_period
            if now < unlock_at:
                raise self._reject(PolicyViolation(
                    "minimum staking period not met", {"unlock_time": unlock_at, "now": now}
                ))
            if record.amount == 0:
                raise self._reject(NoActiveStake("no stake found", {"participant": participant}))
            if not _is_whole(amount) or amount <= 0 or amount > record.amount:
                raise self._reject(InvalidAmount(
                    "invalid unstake amount", {"amount": amount, "staked": record.amount}
                ))

            pending: List[PoolEvent] = []
            with self.ledger.transaction(self.transfer) as tx:
                reward = settle(tx, participant, now, self.config.solvency_guard)
                if reward:
                    pending.append(self._event(EventKind.REWARDS_CLAIMED, participant, reward, now))

                staged = tx.record(participant)
                staged.amount -= amount
                tx.state.total_staked -= amount
                tx.pay(participant, amount)
                pending.append(self._event(EventKind.UNSTAKED, participant, amount, now))

            self.events.publish(pending)

    # ==================== Administration ====================

    def fund_pool(self, caller: str, amount: int) -> None:
        """Add value to the reward pool. Administrator only."""
        with self.ledger.lock:
            self._require_administrator(caller)
            if not _is_whole(amount) or amount <= 0:
                raise self._reject(InvalidAmount("funding amount must be a positive integer", {"amount": amount}))

            with self.ledger.transaction(self.transfer) as tx:
                tx.receive(amount)
            logger.info(f"Pool funded with {amount} by {caller}")

    def set_reward_rate(self, caller: str, new_rate: int) -> None:
        """Replace the reward rate. Administrator only.

        The new rate applies to every participant's next settlement, covering
        the whole interval since their last claim.
        """
        with self.ledger.lock:
            self._require_administrator(caller)
            if not _is_whole(new_rate) or new_rate < 0:
                raise self._reject(InvalidAmount("reward rate must be a non-negative integer", {"rate": new_rate}))

            with self.ledger.transaction(self.transfer) as tx:
                old_rate = tx.state.reward_rate_per_second
                tx.state.reward_rate_per_second = new_rate
            logger.info(f"Reward rate changed from {old_rate} to {new_rate} by {caller}")

    # ==================== Views ====================

    def pending_reward(self, participant: str) -> int:
        with self.ledger.lock:
            return pending_reward(
                self.ledger.lookup(participant),
                self.clock.now(),
                self.ledger.state.reward_rate_per_second,
            )

    def get_record(self, participant: str) -> RecordView:
        """Get a participant's stake, zeroed if they never staked."""
        with self.ledger.lock:
            record = self.ledger.lookup(participant)
            if record is None:
                return RecordView(amount=0, start_time=0, pending_reward=0,
                                  total_rewards_claimed=0, exists=False)
            return RecordView(
                amount=record.amount,
                start_time=record.start_time,
                pending_reward=self.pending_reward(participant),
                total_rewards_claimed=record.total_rewards_claimed,
            )

    def get_available_pool_balance(self) -> int:
        """Custodied value not earmarked as principal; negative if underfunded."""
        with self.ledger.lock:
            return self.ledger.state.custodied - self.ledger.state.total_staked

    def unlock_time(self, participant: str) -> Optional[int]:
        """Earliest timestamp at which the participant may unstake."""
        with self.ledger.lock:
            record = self.ledger.lookup(participant)
            if record is None:
                return None
            return record.start_time + self.ledger.state.minimum_staking_period

    def participants(self) -> List[str]:
        with self.ledger.lock:
            return self.ledger.participants()

    @property
    def total_staked(self) -> int:
        return self.ledger.state.total_staked

    @property
    def custodied(self) -> int:
        return self.ledger.state.custodied

    @property
    def reward_rate_per_second(self) -> int:
        return self.ledger.state.reward_rate_per_second

    @property
    def minimum_staking_period(self) -> int:
        return self.ledger.state.minimum_staking_period

    @property
    def administrator(self) -> str:
        return self.ledger.state.administrator

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        return self.events.subscribe(listener)

    # ==================== Helpers ====================

    def _require_administrator(self, caller: str) -> None:
        if not self.authorizer.is_administrator(caller):
            raise self._reject(Unauthorized("caller is not the administrator", {"caller": caller}))

    def _event(self, kind: EventKind, participant: str, amount: int, now: int) -> PoolEvent:
        return PoolEvent(kind=kind, participant=participant, amount=amount, timestamp=now)

    @staticmethod
    def _reject(error: StakingError) -> StakingError:
        logger.warning(f"Rejected: {error}")
        return error
