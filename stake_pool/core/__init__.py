"""Core ledger, accrual and pool operations."""
from .accrual import REWARD_PRECISION, pending_reward
from .auth import AdministratorCheck
from .clock import ManualClock, SystemClock
from .config import PoolConfig, configure_logging, get_data_dir
from .errors import (
    InvalidAmount,
    NoActiveStake,
    NothingToClaim,
    PolicyViolation,
    PoolInsolvent,
    StakingError,
    TransferFailed,
    Unauthorized,
)
from .events import EventKind, EventLog, PoolEvent
from .ledger import Ledger, PoolState, StakeRecord
from .pool import RecordView, StakingPool
from .store import PoolStore
from .wallet import WalletBook
