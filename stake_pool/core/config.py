"""Pool configuration, data directory and logging setup."""
import os
import sys
from pathlib import Path
from typing import Optional, Union

import yaml
from loguru import logger
from pydantic import BaseModel, Field


def get_data_dir() -> Path:
    """Get the directory holding the CLI state file."""
    return Path(os.getenv(
        "STAKE_POOL_DATA_DIR",
        os.path.join(os.path.expanduser("~"), ".stake-pool")
    ))


def configure_logging(level: Optional[str] = None) -> None:
    """Send loguru output to stderr at the configured level."""
    level = level or os.getenv("STAKE_POOL_LOG_LEVEL", "INFO")
    logger.remove()
    logger.add(sys.stderr, level=level.upper())


class PoolConfig(BaseModel):
    """Construction parameters of a staking pool."""
    administrator: str = Field(min_length=1)
    reward_rate_per_second: int = Field(default=0, ge=0)  # scaled by 10**18
    minimum_staking_period: int = Field(default=0, ge=0)  # seconds
    solvency_guard: bool = False  # refuse rewards not backed by the reward pool

    @classmethod
    def from_yaml(cls, path: Union[str, Path]) -> "PoolConfig":
        """Load configuration from a YAML file.

        Raises:
            FileNotFoundError: If the file does not exist
            ValueError: If the file is not valid YAML or not a mapping
        """
        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"Config file not found: {path}")

        with open(path, "r") as f:
            try:
                data = yaml.safe_load(f)
            except yaml.YAMLError as e:
                raise ValueError(f"Invalid YAML config: {e}")

        if not isinstance(data, dict):
            raise ValueError(f"Config file {path} must contain a mapping")
        return cls(**data)
