"""
Execution environment handed to every ledger call: store, clock, authorizer.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable

from nestera.database.store import LedgerStore
from nestera.host.auth import Authorizer
from nestera.host.clock import SystemClock


@dataclass
class Env:
    store: LedgerStore
    authorizer: Authorizer
    clock: Callable[[], int] = field(default_factory=SystemClock)

    def now(self) -> int:
        return self.clock()

    def require_auth(self, address: str) -> None:
        self.authorizer.require_auth(address)

    def with_authorizer(self, authorizer: Authorizer) -> "Env":
        """Same store and clock, different caller (used per HTTP request)."""
        return Env(store=self.store, authorizer=authorizer, clock=self.clock)
