"""
Data models for the savings ledger.

User accounts, the closed set of plan kinds, savings plans, group saves and
the (never stored) mint payload. Records serialize to plain dicts for the
key/value store; amounts stay Python ints end to end.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Any, Union

from solders.pubkey import Pubkey

from nestera.core.arithmetic import is_i128, is_u32, is_u64


def validate_address(address: str) -> str:
    """Validate a base58 Ed25519 public key. Returns the stripped address; raises ValueError if invalid."""
    address = (address or "").strip()
    if not address:
        raise ValueError("address must be non-empty")
    try:
        Pubkey.from_string(address)
    except Exception as e:
        raise ValueError(f"Invalid address: {e}") from e
    return address


def _require(check: bool, message: str) -> None:
    if not check:
        raise ValueError(message)


@dataclass
class User:
    """
    Per-user aggregate state. savings_count counts every plan ever created.

    total_balance is flexi_balance plus the balances of all the user's plans;
    only flexi_balance can leave through withdraw_flexi.
    """

    total_balance: int = 0
    savings_count: int = 0
    flexi_balance: int = 0

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "User":
        return cls(
            total_balance=int(data["total_balance"]),
            savings_count=int(data["savings_count"]),
            flexi_balance=int(data.get("flexi_balance", 0)),
        )


# -----------------------------------------------------------------------------
# Plan kinds (tagged union)
# -----------------------------------------------------------------------------


@dataclass(frozen=True)
class Flexi:
    """No lock; deposit and withdraw any time."""


@dataclass(frozen=True)
class Lock:
    """Withdrawals rejected before unlock_time (ledger timestamp)."""

    unlock_time: int

    def __post_init__(self) -> None:
        _require(is_u64(self.unlock_time), "unlock_time must be u64")


@dataclass(frozen=True)
class Goal:
    """Single-user goal; the plan completes once balance >= target_amount."""

    category: str
    target_amount: int
    contribution_type: int

    def __post_init__(self) -> None:
        _require(bool(self.category), "category must be non-empty")
        _require(is_i128(self.target_amount), "target_amount must be i128")
        _require(is_u32(self.contribution_type), "contribution_type must be u32")


@dataclass(frozen=True)
class Group:
    """Pointer to a GroupSave; pooled funds live in the group record."""

    group_id: int
    is_public: bool
    contribution_type: int
    target_amount: int

    def __post_init__(self) -> None:
        _require(is_u64(self.group_id), "group_id must be u64")
        _require(isinstance(self.is_public, bool), "is_public must be bool")
        _require(is_u32(self.contribution_type), "contribution_type must be u32")
        _require(is_i128(self.target_amount), "target_amount must be i128")


PlanType = Union[Flexi, Lock, Goal, Group]

_PLAN_KINDS: dict[str, type] = {"flexi": Flexi, "lock": Lock, "goal": Goal, "group": Group}
_KIND_NAMES: dict[type, str] = {v: k for k, v in _PLAN_KINDS.items()}


def plan_type_to_dict(plan_type: PlanType) -> dict[str, Any]:
    kind = _KIND_NAMES.get(type(plan_type))
    if kind is None:
        raise ValueError(f"Unknown plan type: {plan_type!r}")
    return {"kind": kind, **asdict(plan_type)}


def plan_type_from_dict(data: dict[str, Any]) -> PlanType:
    data = dict(data)
    kind = str(data.pop("kind", "")).lower()
    cls = _PLAN_KINDS.get(kind)
    if cls is None:
        raise ValueError(f"Unknown plan kind: {kind!r}")
    return cls(**data)


# -----------------------------------------------------------------------------
# Records
# -----------------------------------------------------------------------------


@dataclass
class SavingsPlan:
    """
    One savings instrument owned by one user.

    Lifecycle: active -> completed (Goal target reached / Group pool reached)
    and active|completed -> withdrawn (a withdrawal emptied the plan).
    interest_rate is in basis points and informational only.
    """

    plan_id: int
    plan_type: PlanType
    balance: int
    start_time: int
    last_deposit: int
    last_withdraw: int
    interest_rate: int
    is_completed: bool = False
    is_withdrawn: bool = False

    def to_dict(self) -> dict[str, Any]:
        return {
            "plan_id": self.plan_id,
            "plan_type": plan_type_to_dict(self.plan_type),
            "balance": self.balance,
            "start_time": self.start_time,
            "last_deposit": self.last_deposit,
            "last_withdraw": self.last_withdraw,
            "interest_rate": self.interest_rate,
            "is_completed": self.is_completed,
            "is_withdrawn": self.is_withdrawn,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "SavingsPlan":
        return cls(
            plan_id=int(data["plan_id"]),
            plan_type=plan_type_from_dict(data["plan_type"]),
            balance=int(data["balance"]),
            start_time=int(data["start_time"]),
            last_deposit=int(data["last_deposit"]),
            last_withdraw=int(data["last_withdraw"]),
            interest_rate=int(data["interest_rate"]),
            is_completed=bool(data["is_completed"]),
            is_withdrawn=bool(data["is_withdrawn"]),
        )


@dataclass
class GroupSave:
    """
    Pooled multi-party savings. member_count and current_amount only grow;
    is_completed is sticky once current_amount >= target_amount.
    """

    group_id: int
    is_public: bool
    target_amount: int
    current_amount: int
    member_count: int
    max_members: int
    contribution_type: int
    creator: str
    is_completed: bool
    created_at: int

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "GroupSave":
        return cls(**data)


@dataclass(frozen=True)
class MintPayload:
    """
    Admin-signed mint instruction. Not persisted; it only exists as the
    message whose signature is checked. timestamp is when the admin signed,
    expiry_duration the validity window in seconds.
    """

    user: str
    amount: int
    timestamp: int
    expiry_duration: int

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "MintPayload":
        return cls(
            user=str(data["user"]),
            amount=int(data["amount"]),
            timestamp=int(data["timestamp"]),
            expiry_duration=int(data["expiry_duration"]),
        )
