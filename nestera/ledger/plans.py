"""
Savings plan state machine (Flexi / Lock / Goal / Group).

Plan ids come from one global monotonic counter starting at 1; records are
keyed by (owner, plan_id) and each owner keeps an insertion-ordered id list.
Dispatch is on the plan kind: Lock gates withdrawals on unlock_time, Goal
completes once its balance reaches target, Group mirrors the completion of
its pooled group record.
"""

from __future__ import annotations

from nestera.core.arithmetic import (
    checked_add_i128,
    checked_increment_u64,
    checked_sub_i128,
    is_i128,
    is_u64,
)
from nestera.core.exceptions import (
    InsufficientBalance,
    InvalidAmount,
    NotGroupMember,
    PlanAlreadyWithdrawn,
    PlanLocked,
    PlanNotFound,
)
from nestera.database.keys import GroupKey, GroupMembershipKey, PlanIdCounterKey, PlanKey, UserPlansKey
from nestera.database.store import StoreTransaction
from nestera.host.env import Env
from nestera.ledger import users
from nestera.ledger.models import Goal, Group, Lock, PlanType, SavingsPlan, validate_address
from nestera.nestera_logging import get_logger

logger = get_logger(__name__)


def _next_plan_id(txn: StoreTransaction) -> int:
    plan_id = checked_increment_u64(int(txn.get(PlanIdCounterKey(), 0)))
    txn.set(PlanIdCounterKey(), plan_id)
    return plan_id


def _load_plan(txn: StoreTransaction, user: str, plan_id: int) -> SavingsPlan:
    if not is_u64(plan_id):
        raise PlanNotFound(f"plan {plan_id!r} not found for {user}")
    data = txn.get(PlanKey(user, plan_id))
    if data is None:
        raise PlanNotFound(f"plan {plan_id} not found for {user}")
    return _with_group_status(txn, SavingsPlan.from_dict(data))


def _save_plan(txn: StoreTransaction, user: str, plan: SavingsPlan) -> None:
    txn.set(PlanKey(user, plan.plan_id), plan.to_dict())


def _with_group_status(txn: StoreTransaction, plan: SavingsPlan) -> SavingsPlan:
    """Group plans complete when their pool does."""
    if isinstance(plan.plan_type, Group) and not plan.is_completed:
        group = txn.get(GroupKey(plan.plan_type.group_id))
        if group is not None and group.get("is_completed"):
            plan.is_completed = True
    return plan


def _check_group_link(txn: StoreTransaction, user: str, group_id: int) -> None:
    """A Group plan must point at an existing group the user belongs to."""
    if not txn.has(GroupKey(group_id)):
        raise PlanNotFound(f"group {group_id} not found")
    if not txn.has(GroupMembershipKey(user, group_id)):
        raise NotGroupMember(f"user {user} is not a member of group {group_id}")


def _goal_reached(plan: SavingsPlan) -> bool:
    return isinstance(plan.plan_type, Goal) and plan.balance >= plan.plan_type.target_amount


def create_savings_plan(
    env: Env,
    user: str,
    plan_type: PlanType,
    initial_deposit: int,
    *,
    interest_rate: int = 0,
) -> int:
    """
    Open a plan funded with initial_deposit (may be 0). Registers the user on
    first use. Returns the new plan id.
    """
    user = validate_address(user)
    env.require_auth(user)
    if not is_i128(initial_deposit) or initial_deposit < 0:
        raise InvalidAmount(f"initial deposit must be a non-negative i128, got {initial_deposit!r}")
    if isinstance(plan_type, Goal) and plan_type.target_amount <= 0:
        raise InvalidAmount(f"goal target must be positive, got {plan_type.target_amount}")
    now = env.now()
    with env.store.transaction() as txn:
        record = users.load_or_create(txn, user)
        if isinstance(plan_type, Group):
            _check_group_link(txn, user, plan_type.group_id)
        plan_id = _next_plan_id(txn)
        plan = SavingsPlan(
            plan_id=plan_id,
            plan_type=plan_type,
            balance=initial_deposit,
            start_time=now,
            last_deposit=now if initial_deposit > 0 else 0,
            last_withdraw=0,
            interest_rate=interest_rate,
        )
        plan.is_completed = _goal_reached(plan)
        _save_plan(txn, user, plan)

        plan_ids = list(txn.get(UserPlansKey(user), []))
        plan_ids.append(plan_id)
        txn.set(UserPlansKey(user), plan_ids)

        record.total_balance = checked_add_i128(record.total_balance, initial_deposit)
        record.savings_count = checked_increment_u64(record.savings_count)
        users.save(txn, user, record)
    logger.info(
        "plan_created",
        user=user,
        plan_id=plan_id,
        plan_kind=type(plan_type).__name__.lower(),
        initial_deposit=initial_deposit,
    )
    return plan_id


def get_savings_plan(env: Env, user: str, plan_id: int) -> SavingsPlan:
    user = validate_address(user)
    with env.store.transaction() as txn:
        return _load_plan(txn, user, plan_id)


def get_user_savings_plans(env: Env, user: str) -> list[SavingsPlan]:
    """All plans owned by user, in creation order. Empty for unknown users."""
    user = validate_address(user)
    with env.store.transaction() as txn:
        return [_load_plan(txn, user, pid) for pid in txn.get(UserPlansKey(user), [])]


def deposit_to_plan(env: Env, user: str, plan_id: int, amount: int) -> SavingsPlan:
    user = validate_address(user)
    env.require_auth(user)
    users.require_positive_amount(amount)
    now = env.now()
    with env.store.transaction() as txn:
        record = users.load(txn, user)
        plan = _load_plan(txn, user, plan_id)
        if plan.is_withdrawn:
            raise PlanAlreadyWithdrawn(f"plan {plan_id} is withdrawn and accepts no deposits")
        plan.balance = checked_add_i128(plan.balance, amount)
        plan.last_deposit = now
        if _goal_reached(plan):
            plan.is_completed = True
        record.total_balance = checked_add_i128(record.total_balance, amount)
        _save_plan(txn, user, plan)
        users.save(txn, user, record)
    logger.info(
        "plan_deposit",
        user=user,
        plan_id=plan_id,
        amount=amount,
        balance=plan.balance,
        is_completed=plan.is_completed,
    )
    return plan


def withdraw_from_plan(env: Env, user: str, plan_id: int, amount: int) -> SavingsPlan:
    """Withdraw from one plan; a withdrawal that empties it marks the plan withdrawn."""
    user = validate_address(user)
    env.require_auth(user)
    users.require_positive_amount(amount)
    now = env.now()
    with env.store.transaction() as txn:
        record = users.load(txn, user)
        plan = _load_plan(txn, user, plan_id)
        if plan.is_withdrawn:
            raise PlanAlreadyWithdrawn(f"plan {plan_id} is already withdrawn")
        if isinstance(plan.plan_type, Lock) and now < plan.plan_type.unlock_time:
            raise PlanLocked(f"plan {plan_id} is locked until {plan.plan_type.unlock_time}")
        if amount > plan.balance:
            raise InsufficientBalance(f"withdrawal of {amount} exceeds plan balance {plan.balance}")
        plan.balance = checked_sub_i128(plan.balance, amount)
        plan.last_withdraw = now
        if plan.balance == 0:
            plan.is_withdrawn = True
        record.total_balance = checked_sub_i128(record.total_balance, amount)
        _save_plan(txn, user, plan)
        users.save(txn, user, record)
    logger.info(
        "plan_withdraw",
        user=user,
        plan_id=plan_id,
        amount=amount,
        balance=plan.balance,
        is_withdrawn=plan.is_withdrawn,
    )
    return plan
