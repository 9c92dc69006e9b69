"""
Host clock bindings. The ledger only ever asks "what is the current ledger
timestamp" (unsigned seconds); where that comes from is up to the host.
"""

from __future__ import annotations

import time

from nestera.core.arithmetic import is_u64


class SystemClock:
    """Wall-clock seconds."""

    def __call__(self) -> int:
        return int(time.time())


class ManualClock:
    """Settable clock for tests and offline tools."""

    def __init__(self, timestamp: int = 0) -> None:
        self.set(timestamp)

    def set(self, timestamp: int) -> None:
        if not is_u64(timestamp):
            raise ValueError(f"timestamp must be an unsigned 64-bit integer, got {timestamp!r}")
        self.timestamp = timestamp

    def advance(self, seconds: int) -> None:
        self.set(self.timestamp + seconds)

    def __call__(self) -> int:
        return self.timestamp
