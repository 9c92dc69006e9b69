"""
Host bindings — the collaborators a ledger call runs against.

Store (durability), clock (ledger time) and authorizer (who approved the
call). Swappable so the same ledger code runs under tests, tools and HTTP.
"""

from nestera.host.auth import Authorizer, HeaderAuthorizer, MockAuthorizer
from nestera.host.clock import ManualClock, SystemClock
from nestera.host.env import Env

__all__ = [
    "Authorizer",
    "Env",
    "HeaderAuthorizer",
    "ManualClock",
    "MockAuthorizer",
    "SystemClock",
]
