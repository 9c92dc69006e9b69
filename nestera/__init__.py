"""
Nestera — savings ledger for per-user balances, savings plans, group saves,
and admin-signed mint authorizations.

Modular layout: persistent key/value store (database), host bindings
(clock, caller authorization), ledger state machines, and a thin HTTP surface.
"""

__version__ = "0.1.0"
