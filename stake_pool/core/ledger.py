"""Ledger state for the staking pool."""
import threading
from contextlib import contextmanager
from typing import TYPE_CHECKING, Dict, Iterator, List, Optional, Set

from loguru import logger
from pydantic import BaseModel, Field

from .errors import TransferFailed

if TYPE_CHECKING:
    from .wallet import Transfer


class StakeRecord(BaseModel):
    """Principal and reward bookkeeping for one participant.

    Records are created on the first deposit and never deleted; a record
    with ``amount == 0`` belongs to a participant who withdrew everything.
    """
    amount: int = Field(default=0, ge=0)
    start_time: int  # first ever deposit, never moves
    last_claim_time: int  # rewards are paid up to here
    total_rewards_claimed: int = Field(default=0, ge=0)


class PoolState(BaseModel):
    """Pool-wide aggregates plus every participant record."""
    administrator: str
    reward_rate_per_second: int = Field(ge=0)
    minimum_staking_period: int = Field(ge=0)
    total_staked: int = 0
    custodied: int = 0
    records: Dict[str, StakeRecord] = Field(default_factory=dict)


class LedgerTransaction:
    """Staged changes to a copy of the pool state.

    Aggregates are copied up front; participant records are copied the first
    time the transaction touches them, so untouched records are shared with
    the live state and never modified.

    Outgoing transfers are queued with :meth:`pay` and only executed when the
    enclosing :meth:`Ledger.transaction` block exits cleanly. A transaction
    has a single counterparty, so at most one external transfer is made and
    it either happens together with the state change or not at all.
    """

    def __init__(self, state: PoolState):
        self.state = state.model_copy(update={"records": dict(state.records)})
        self.payouts: Dict[str, int] = {}
        self._staged: Set[str] = set()

    def record(self, participant: str) -> Optional[StakeRecord]:
        record = self.state.records.get(participant)
        if record is not None and participant not in self._staged:
            record = record.model_copy()
            self.state.records[participant] = record
            self._staged.add(participant)
        return record

    def open_record(self, participant: str, now: int) -> StakeRecord:
        """Create the record for a participant's first deposit."""
        if participant in self.state.records:
            raise ValueError(f"Record for {participant} already exists")
        record = StakeRecord(amount=0, start_time=now, last_claim_time=now)
        self.state.records[participant] = record
        self._staged.add(participant)
        return record

    def receive(self, amount: int) -> None:
        """Take custody of value attached to the call."""
        self.state.custodied += amount

    def pay(self, to: str, amount: int) -> None:
        """Queue an outgoing transfer, releasing custodied value."""
        if self.payouts and to not in self.payouts:
            raise ValueError("A ledger transaction pays a single counterparty")
        if amount > self.state.custodied:
            raise TransferFailed(
                "custodied balance cannot cover transfer",
                {"to": to, "amount": amount, "custodied": self.state.custodied},
            )
        self.state.custodied -= amount
        self.payouts[to] = self.payouts.get(to, 0) + amount

    def flush(self, transfer: "Transfer") -> None:
        for to, amount in self.payouts.items():
            if amount == 0:
                continue
            try:
                moved = transfer.transfer(to, amount)
            except Exception as e:
                logger.error(f"Transfer of {amount} to {to} raised {e!r}, rolling back")
                raise TransferFailed("transfer raised", {"to": to, "amount": amount}) from e
            if not moved:
                logger.error(f"Transfer of {amount} to {to} failed, rolling back")
                raise TransferFailed("transfer rejected", {"to": to, "amount": amount})


class Ledger:
    """Owner of the pool state.

    All access goes through one re-entrant lock; mutations go through
    :meth:`transaction` so a failed operation never leaves partial state.
    """

    def __init__(self, state: PoolState):
        self._state = state
        self._lock = threading.RLock()

    @property
    def state(self) -> PoolState:
        return self._state

    @property
    def lock(self) -> threading.RLock:
        return self._lock

    def lookup(self, participant: str) -> Optional[StakeRecord]:
        """Get a participant's record, or None if they never staked."""
        return self._state.records.get(participant)

    def participants(self) -> List[str]:
        return sorted(self._state.records)

    def is_consistent(self) -> bool:
        """Check that total_staked matches the sum of record balances."""
        staked = sum(record.amount for record in self._state.records.values())
        return staked == self._state.total_staked and self._state.custodied >= 0

    @contextmanager
    def transaction(self, transfer: "Transfer") -> Iterator[LedgerTransaction]:
        """Stage changes on a copy of the state and commit them atomically.

        Args:
            transfer: Value-transfer primitive used to flush queued payouts

        Raises:
            TransferFailed: If a queued payout is rejected; nothing is committed
        """
        with self._lock:
            tx = LedgerTransaction(self._state)
            yield tx
            tx.flush(transfer)
            self._state = tx.state
            logger.debug(f"Committed ledger transaction, payouts={tx.payouts}")
