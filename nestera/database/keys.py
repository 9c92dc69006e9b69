"""
Tagged key-space for the ledger store.

Every stored record lives under exactly one key type. Keys encode to a
stable string ("<tag>:<part>:<part>") used as the primary key of the
key/value table; the tag keeps spaces disjoint, so a group id never collides
with a plan id even when the numbers match.
"""

from __future__ import annotations

from dataclasses import dataclass, fields


@dataclass(frozen=True)
class LedgerKey:
    """Base for all keys. Subclasses set TAG and declare their parts as fields."""

    TAG = ""

    def encode(self) -> str:
        parts = [str(getattr(self, f.name)) for f in fields(self)]
        return ":".join([self.TAG, *parts]) if parts else self.TAG


@dataclass(frozen=True)
class AdminKey(LedgerKey):
    TAG = "admin"


@dataclass(frozen=True)
class UserKey(LedgerKey):
    TAG = "user"
    address: str


@dataclass(frozen=True)
class UserPlansKey(LedgerKey):
    """Insertion-ordered list of plan ids owned by one user."""

    TAG = "user_plans"
    address: str


@dataclass(frozen=True)
class PlanIdCounterKey(LedgerKey):
    TAG = "plan_id_counter"


@dataclass(frozen=True)
class GroupIdCounterKey(LedgerKey):
    TAG = "group_id_counter"


@dataclass(frozen=True)
class PlanKey(LedgerKey):
    TAG = "plan"
    owner: str
    plan_id: int


@dataclass(frozen=True)
class GroupKey(LedgerKey):
    TAG = "group"
    group_id: int


@dataclass(frozen=True)
class GroupMembershipKey(LedgerKey):
    TAG = "group_member"
    user: str
    group_id: int


@dataclass(frozen=True)
class GroupContributionKey(LedgerKey):
    TAG = "group_contribution"
    group_id: int
    user: str


@dataclass(frozen=True)
class UsedMintKey(LedgerKey):
    """Marker for a redeemed mint message (sha256 hex of the signed bytes)."""

    TAG = "used_mint"
    digest: str
