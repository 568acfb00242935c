"""Stake Pool CLI."""
from datetime import datetime
from pathlib import Path
from typing import Callable, Optional

import click
from loguru import logger
from pydantic import ValidationError

from .core.clock import ManualClock, SystemClock
from .core.config import PoolConfig, configure_logging
from .core.errors import StakingError
from .core.pool import StakingPool
from .core.store import PoolStore


def _open_pool(ctx: click.Context) -> Optional[StakingPool]:
    store: PoolStore = ctx.obj["store"]
    try:
        return store.load(clock=ctx.obj["clock"])
    except FileNotFoundError:
        logger.error("No pool found. Create one with: stake-pool init --admin <account>")
    except ValueError as e:
        logger.error(f"Failed to load pool: {e}")
    ctx.exit(1)


def _run(ctx: click.Context, action: Callable[[StakingPool], None]) -> None:
    """Run a mutating command against the stored pool and save on success."""
    pool = _open_pool(ctx)
    try:
        action(pool)
    except StakingError as e:
        logger.error(f"Operation failed: {e}")
        ctx.exit(1)
    ctx.obj["store"].save(pool)


def _format_time(timestamp: int) -> str:
    return datetime.fromtimestamp(timestamp).isoformat(sep=" ")


@click.group()
@click.version_option(package_name="stake-pool")
@click.option('--data-dir', type=click.Path(file_okay=False), default=None,
              help='Directory holding the pool state (default: $STAKE_POOL_DATA_DIR or ~/.stake-pool)')
@click.option('--now', 'now', type=int, default=None, help='Pin the clock to this unix timestamp')
@click.pass_context
def cli(ctx: click.Context, data_dir: Optional[str], now: Optional[int]):
    """Stake Pool CLI for staking, claiming rewards and managing the pool."""
    configure_logging()
    ctx.ensure_object(dict)
    ctx.obj["store"] = PoolStore(Path(data_dir) if data_dir else None)
    ctx.obj["clock"] = ManualClock(now) if now is not None else SystemClock()


@cli.command()
@click.option('--admin', default=None, help='Administrator account ID')
@click.option('--rate', type=int, default=None, help='Reward rate per second, scaled by 10^18')
@click.option('--min-period', type=int, default=None, help='Minimum staking period in seconds')
@click.option('--config', 'config_path', type=click.Path(exists=True, dir_okay=False), default=None,
              help='YAML file with pool configuration')
@click.option('--force', is_flag=True, help='Overwrite an existing pool')
@click.pass_context
def init(ctx: click.Context, admin: Optional[str], rate: Optional[int], min_period: Optional[int],
         config_path: Optional[str], force: bool):
    """Create a new staking pool."""
    store: PoolStore = ctx.obj["store"]
    if store.exists() and not force:
        logger.error(f"A pool already exists at {store.path}. Use --force to replace it")
        ctx.exit(1)

    try:
        data = PoolConfig.from_yaml(config_path).model_dump() if config_path else {}
        if admin is not None:
            data["administrator"] = admin
        if rate is not None:
            data["reward_rate_per_second"] = rate
        if min_period is not None:
            data["minimum_staking_period"] = min_period
        config = PoolConfig(**data)
    except (ValueError, ValidationError) as e:
        logger.error(f"Invalid pool configuration: {e}")
        ctx.exit(1)

    store.create(config, clock=ctx.obj["clock"])
    click.echo(f"Pool created. Administrator: {config.administrator}")
    click.echo(f"Reward rate: {config.reward_rate_per_second} per second (x10^-18)")
    click.echo(f"Minimum staking period: {config.minimum_staking_period}s")


@cli.command()
@click.argument('account')
@click.argument('amount', type=int)
@click.pass_context
def stake(ctx: click.Context, account: str, amount: int):
    """Stake AMOUNT for ACCOUNT."""
    def action(pool: StakingPool):
        pool.stake(account, amount)
        click.echo(f"Staked {amount} for {account}. Total staked: {pool.get_record(account).amount}")

    _run(ctx, action)


@cli.command()
@click.argument('account')
@click.pass_context
def claim(ctx: click.Context, account: str):
    """Claim pending rewards for ACCOUNT."""
    def action(pool: StakingPool):
        reward = pool.claim_rewards(account)
        click.echo(f"Claimed {reward} for {account}")

    _run(ctx, action)


@cli.command()
@click.argument('account')
@click.argument('amount', type=int)
@click.pass_context
def unstake(ctx: click.Context, account: str, amount: int):
    """Withdraw AMOUNT of principal for ACCOUNT."""
    def action(pool: StakingPool):
        pool.unstake(account, amount)
        click.echo(f"Unstaked {amount} for {account}. Remaining: {pool.get_record(account).amount}")

    _run(ctx, action)


@cli.group()
def pool():
    """Manage the reward pool."""
    pass


@pool.command()
@click.argument('caller')
@click.argument('amount', type=int)
@click.pass_context
def fund(ctx: click.Context, caller: str, amount: int):
    """Fund the reward pool with AMOUNT. Administrator only."""
    def action(staking_pool: StakingPool):
        staking_pool.fund_pool(caller, amount)
        click.echo(f"Funded pool with {amount}. Available rewards: {staking_pool.get_available_pool_balance()}")

    _run(ctx, action)


@pool.command('set-rate')
@click.argument('caller')
@click.argument('rate', type=int)
@click.pass_context
def set_rate(ctx: click.Context, caller: str, rate: int):
    """Set the reward rate per second. Administrator only."""
    def action(staking_pool: StakingPool):
        staking_pool.set_reward_rate(caller, rate)
        click.echo(f"Reward rate set to {rate}")

    _run(ctx, action)


@pool.command()
@click.pass_context
def balance(ctx: click.Context):
    """Show custodied value, total staked and available rewards."""
    staking_pool = _open_pool(ctx)
    click.echo(f"Custodied: {staking_pool.custodied}")
    click.echo(f"Total staked: {staking_pool.total_staked}")
    click.echo(f"Available rewards: {staking_pool.get_available_pool_balance()}")
    click.echo(f"Reward rate: {staking_pool.reward_rate_per_second}")


@cli.group()
def view():
    """Inspect stakes and events."""
    pass


@view.command()
@click.argument('account')
@click.pass_context
def pending(ctx: click.Context, account: str):
    """Show pending rewards for ACCOUNT."""
    staking_pool = _open_pool(ctx)
    click.echo(str(staking_pool.pending_reward(account)))


@view.command()
@click.argument('account')
@click.pass_context
def record(ctx: click.Context, account: str):
    """Show the stake record of ACCOUNT."""
    staking_pool = _open_pool(ctx)
    stake_record = staking_pool.get_record(account)
    if not stake_record.exists:
        logger.info(f"No stake found for {account}")
        logger.info("To stake, use: stake-pool stake <account> <amount>")
        click.echo(f"{account}: no stake")
        return

    click.echo(f"\nStake of {account}:")
    click.echo("-" * 60)
    click.echo(f"Amount: {stake_record.amount}")
    click.echo(f"Staked since: {_format_time(stake_record.start_time)}")
    click.echo(f"Unlocks at: {_format_time(staking_pool.unlock_time(account))}")
    click.echo(f"Pending reward: {stake_record.pending_reward}")
    click.echo(f"Total rewards claimed: {stake_record.total_rewards_claimed}")


@view.command()
@click.option('--limit', default=20, help='Number of most recent events to show')
@click.pass_context
def events(ctx: click.Context, limit: int):
    """Show the most recent pool events."""
    staking_pool = _open_pool(ctx)
    history = staking_pool.events.history[-limit:] if limit > 0 else []
    if not history:
        click.echo("No events yet")
        return

    click.echo(f"{'Time':<22}{'Event':<16}{'Account':<24}{'Amount':>20}")
    click.echo("-" * 82)
    for event in history:
        click.echo(
            f"{_format_time(event.timestamp):<22}"
            f"{event.kind.value:<16}"
            f"{event.participant:<24}"
            f"{event.amount:>20}"
        )


@view.command()
@click.argument('account')
@click.pass_context
def wallet(ctx: click.Context, account: str):
    """Show the total paid out to ACCOUNT."""
    staking_pool = _open_pool(ctx)
    click.echo(f"{account}: {staking_pool.transfer.get_balance(account)}")


if __name__ == "__main__":
    cli()
