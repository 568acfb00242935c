"""Administrator authorization."""
from typing import Protocol


class Authorizer(Protocol):
    def is_administrator(self, identity: str) -> bool:
        ...


class AdministratorCheck:
    """Grants administrator rights to exactly one identity."""

    def __init__(self, administrator: str):
        if not administrator:
            raise ValueError("Administrator identity is required")
        self.administrator = administrator

    def is_administrator(self, identity: str) -> bool:
        return identity == self.administrator
