"""Test configuration and fixtures for Stake Pool."""
import os
import pytest
from unittest.mock import MagicMock
from stake_pool.core.clock import ManualClock
from stake_pool.core.config import PoolConfig, configure_logging
from stake_pool.core.pool import StakingPool
from stake_pool.core.store import PoolStore
from stake_pool.core.wallet import WalletBook

START_TIME = 1_700_000_000
RATE = 10**16  # 0.01 per unit of principal per second
MIN_PERIOD = 100
ADMIN = "admin.testnet"

@pytest.fixture(autouse=True)
def reset_logging():
    """Point loguru back at the current stderr after every test."""
    yield
    configure_logging("DEBUG")

@pytest.fixture
def clock():
    """Create a manual clock starting at a fixed timestamp."""
    return ManualClock(START_TIME)

@pytest.fixture
def wallets():
    """Create in-memory wallets receiving pool payouts."""
    return WalletBook()

@pytest.fixture
def config():
    """Return the default pool configuration for tests."""
    return PoolConfig(
        administrator=ADMIN,
        reward_rate_per_second=RATE,
        minimum_staking_period=MIN_PERIOD
    )

@pytest.fixture
def pool(config, wallets, clock):
    """Create a staking pool funded with plenty of rewards."""
    staking_pool = StakingPool(config, wallets, clock=clock)
    staking_pool.fund_pool(ADMIN, 1_000_000)
    return staking_pool

@pytest.fixture
def mock_transfer():
    """Create a mock transfer primitive that succeeds."""
    transfer = MagicMock(spec=WalletBook)
    transfer.transfer.return_value = True
    return transfer

@pytest.fixture
def store(tmp_path):
    """Create a pool store in a temporary directory."""
    return PoolStore(tmp_path / "pool-data")

@pytest.fixture
def env_setup(tmp_path):
    """Set up environment variables for testing."""
    os.environ["STAKE_POOL_DATA_DIR"] = str(tmp_path / "env-data")
    os.environ["STAKE_POOL_LOG_LEVEL"] = "DEBUG"
    yield
    del os.environ["STAKE_POOL_DATA_DIR"]
    del os.environ["STAKE_POOL_LOG_LEVEL"]
