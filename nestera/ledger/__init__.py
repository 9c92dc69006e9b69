"""
Ledger layer — account ledger, savings plan state machine, group saves,
admin registry and mint authorization, plus the NesteraContract facade.
"""

from nestera.ledger.contract import NesteraContract
from nestera.ledger.models import (
    Flexi,
    Goal,
    Group,
    GroupSave,
    Lock,
    MintPayload,
    PlanType,
    SavingsPlan,
    User,
)

__all__ = [
    "Flexi",
    "Goal",
    "Group",
    "GroupSave",
    "Lock",
    "MintPayload",
    "NesteraContract",
    "PlanType",
    "SavingsPlan",
    "User",
]
