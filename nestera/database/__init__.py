"""
Persistence layer — tagged key-space and the transactional key/value store.

SQLite by default via LedgerStore; any SQLAlchemy URL works (e.g. PostgreSQL).
"""

from nestera.database.keys import (
    AdminKey,
    GroupContributionKey,
    GroupIdCounterKey,
    GroupKey,
    GroupMembershipKey,
    LedgerKey,
    PlanIdCounterKey,
    PlanKey,
    UsedMintKey,
    UserKey,
    UserPlansKey,
)
from nestera.database.store import LedgerStore, StoreTransaction

__all__ = [
    "AdminKey",
    "GroupContributionKey",
    "GroupIdCounterKey",
    "GroupKey",
    "GroupMembershipKey",
    "LedgerKey",
    "LedgerStore",
    "PlanIdCounterKey",
    "PlanKey",
    "StoreTransaction",
    "UsedMintKey",
    "UserKey",
    "UserPlansKey",
]
