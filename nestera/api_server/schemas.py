"""
Request / response models for the HTTP binding.

Amounts are i128 on the ledger; JSON integers of any size are accepted, as
are decimal strings (coerced by pydantic).
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field

from nestera.ledger.models import GroupSave, MintPayload, SavingsPlan, User


class AdminRequest(BaseModel):
    """POST /admin/initialize and PUT /admin body."""

    admin: str = Field(..., min_length=32, max_length=64, description="Admin Ed25519 public key (base58)")


class AdminResponse(BaseModel):
    admin: str
    initialized: bool = True


class MintPayloadBody(BaseModel):
    user: str = Field(..., description="Recipient address (base58)")
    amount: int = Field(..., description="Signed 128-bit amount")
    timestamp: int = Field(..., ge=0, description="Unix time the admin signed")
    expiry_duration: int = Field(..., ge=0, description="Validity window in seconds")

    def to_payload(self) -> MintPayload:
        return MintPayload(
            user=self.user.strip(),
            amount=self.amount,
            timestamp=self.timestamp,
            expiry_duration=self.expiry_duration,
        )


class MintRequest(BaseModel):
    """POST /mint and /mint/verify body. signature is base58 (Solana style)."""

    payload: MintPayloadBody
    signature: str = Field(..., min_length=1, max_length=128)
    credit: bool = Field(False, description="Also credit the amount to the user's total balance")


class MintResponse(BaseModel):
    user: str
    amount: int
    credited: bool


class VerifyResponse(BaseModel):
    valid: bool


class AmountRequest(BaseModel):
    amount: int


class UserResponse(BaseModel):
    user: str
    total_balance: int
    savings_count: int
    flexi_balance: int

    @classmethod
    def from_record(cls, user: str, record: User) -> "UserResponse":
        return cls(
            user=user,
            total_balance=record.total_balance,
            savings_count=record.savings_count,
            flexi_balance=record.flexi_balance,
        )


class ExistsResponse(BaseModel):
    exists: bool


class CreatePlanRequest(BaseModel):
    """plan_type: {"kind": "flexi"} | {"kind": "lock", "unlock_time": ...} | {"kind": "goal", ...} | {"kind": "group", ...}"""

    plan_type: dict[str, Any]
    initial_deposit: int = 0


class PlanIdResponse(BaseModel):
    plan_id: int


class PlanResponse(BaseModel):
    plan_id: int
    plan_type: dict[str, Any]
    balance: int
    start_time: int
    last_deposit: int
    last_withdraw: int
    interest_rate: int
    is_completed: bool
    is_withdrawn: bool

    @classmethod
    def from_plan(cls, plan: SavingsPlan) -> "PlanResponse":
        return cls(**plan.to_dict())


class CreateGroupRequest(BaseModel):
    creator: str
    is_public: bool = True
    target_amount: int
    max_members: int
    contribution_type: int = 0


class GroupIdResponse(BaseModel):
    group_id: int


class GroupResponse(BaseModel):
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

    @classmethod
    def from_group(cls, group: GroupSave) -> "GroupResponse":
        return cls(**group.to_dict())


class MemberRequest(BaseModel):
    user: str


class ContributeRequest(BaseModel):
    user: str
    amount: int


class MemberResponse(BaseModel):
    group_id: int
    user: str
    is_member: bool
    contribution: int
