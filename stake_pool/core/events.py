"""Notifications published by the staking pool."""
from enum import Enum
from typing import Callable, List, Optional

from loguru import logger
from pydantic import BaseModel


class EventKind(str, Enum):
    STAKED = "Staked"
    UNSTAKED = "Unstaked"
    REWARDS_CLAIMED = "RewardsClaimed"


class PoolEvent(BaseModel):
    """A committed pool operation, as seen by external observers."""
    kind: EventKind
    participant: str
    amount: int
    timestamp: int


Listener = Callable[[PoolEvent], None]

# Only the most recent events are kept in memory and in snapshots
DEFAULT_HISTORY_LIMIT = 1000


class EventLog:
    """Recent committed events plus the listeners to notify."""

    def __init__(self, history: Optional[List[PoolEvent]] = None,
                 limit: int = DEFAULT_HISTORY_LIMIT):
        if limit <= 0:
            raise ValueError("History limit must be positive")
        self.limit = limit
        self.history: List[PoolEvent] = list(history or [])[-limit:]
        self._listeners: List[Listener] = []

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register a listener; returns a callable that removes it again."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def publish(self, events: List[PoolEvent]) -> None:
        """Record and dispatch events of an operation that already committed."""
        for event in events:
            self.history.append(event)
            if len(self.history) > self.limit:
                del self.history[:-self.limit]
            logger.info(f"{event.kind.value}: {event.participant} amount={event.amount} at {event.timestamp}")
            for listener in list(self._listeners):
                try:
                    listener(event)
                except Exception as e:
                    # The operation is committed; a broken observer cannot undo it
                    logger.exception(f"Event listener failed on {event.kind.value}: {e}")
