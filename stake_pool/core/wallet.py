"""Participant wallets receiving payouts from the pool."""
from typing import Dict, Optional, Protocol, Set

from loguru import logger


class Transfer(Protocol):
    def transfer(self, to: str, amount: int) -> bool:
        """Move value out of the pool; all-or-nothing, True on success."""
        ...


class WalletBook:
    """In-memory wallets credited by the pool's outgoing transfers.

    Transfers to a blocked account are rejected, which is how a refusing
    recipient is simulated.
    """

    def __init__(self, balances: Optional[Dict[str, int]] = None):
        self.balances: Dict[str, int] = dict(balances or {})
        self.blocked: Set[str] = set()

    def transfer(self, to: str, amount: int) -> bool:
        if amount < 0:
            logger.error(f"Refusing negative transfer of {amount} to {to}")
            return False
        if to in self.blocked:
            logger.warning(f"Transfer to blocked account {to} rejected")
            return False
        self.balances[to] = self.balances.get(to, 0) + amount
        return True

    def get_balance(self, account_id: str) -> int:
        """Get the amount received so far by an account."""
        return self.balances.get(account_id, 0)

    def block(self, account_id: str) -> None:
        self.blocked.add(account_id)

    def unblock(self, account_id: str) -> None:
        self.blocked.discard(account_id)
