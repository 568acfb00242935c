"""JSON snapshot storage for a staking pool and its wallets."""
import json
from pathlib import Path
from typing import Dict, List, Optional

from loguru import logger
from pydantic import BaseModel, Field

from .clock import Clock
from .config import PoolConfig, get_data_dir
from .events import EventLog, PoolEvent
from .ledger import Ledger, PoolState
from .pool import StakingPool
from .wallet import WalletBook


class PoolSnapshot(BaseModel):
    """Everything needed to resume a pool between CLI invocations."""
    config: PoolConfig
    state: PoolState
    wallets: Dict[str, int] = Field(default_factory=dict)
    events: List[PoolEvent] = Field(default_factory=list)


class PoolStore:
    """Keeps one pool snapshot in ``<data dir>/pool.json``."""

    def __init__(self, data_dir: Optional[Path] = None):
        self.data_dir = Path(data_dir) if data_dir else get_data_dir()
        self.path = self.data_dir / "pool.json"

    def exists(self) -> bool:
        return self.path.exists()

    def create(self, config: PoolConfig, clock: Optional[Clock] = None) -> StakingPool:
        """Start a fresh pool and write its first snapshot."""
        pool = StakingPool(config, WalletBook(), clock=clock)
        self.save(pool)
        logger.info(f"Created pool administered by {config.administrator} at {self.path}")
        return pool

    def load(self, clock: Optional[Clock] = None) -> StakingPool:
        """Resume the pool from disk.

        Raises:
            FileNotFoundError: If no pool has been created yet
            ValueError: If the snapshot is corrupted
        """
        if not self.exists():
            raise FileNotFoundError(f"No pool found at {self.path}")

        try:
            with open(self.path, 'r') as f:
                snapshot = PoolSnapshot(**json.load(f))
        except (json.JSONDecodeError, TypeError) as e:
            raise ValueError(f"Corrupted pool snapshot {self.path}: {e}")

        return StakingPool(
            snapshot.config,
            WalletBook(snapshot.wallets),
            clock=clock,
            ledger=Ledger(snapshot.state),
            events=EventLog(snapshot.events),
        )

    def save(self, pool: StakingPool) -> None:
        """Write the pool's current state to disk."""
        if not isinstance(pool.transfer, WalletBook):
            raise TypeError("Only pools paying into a WalletBook can be stored")

        with pool.ledger.lock:
            snapshot = PoolSnapshot(
                config=pool.config,
                state=pool.ledger.state,
                wallets=pool.transfer.balances,
                events=pool.events.history,
            )
            self.data_dir.mkdir(parents=True, exist_ok=True)
            tmp_path = self.path.with_suffix(".json.tmp")
            with open(tmp_path, 'w') as f:
                f.write(snapshot.model_dump_json(indent=2))
            tmp_path.replace(self.path)
        logger.debug(f"Saved pool snapshot to {self.path}")
