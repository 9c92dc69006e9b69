"""
Tests for the savings plan state machine: creation, lookups, plan kinds,
deposits/withdrawals and lifecycle transitions.
"""

from __future__ import annotations

import pytest

from nestera.core.exceptions import (
    InsufficientBalance,
    InvalidAmount,
    NotGroupMember,
    PlanAlreadyWithdrawn,
    PlanLocked,
    PlanNotFound,
    UserNotFound,
)
from nestera.ledger.models import (
    Flexi,
    Goal,
    Group,
    Lock,
    SavingsPlan,
    User,
    plan_type_from_dict,
    plan_type_to_dict,
)


def test_user_instantiation():
    user = User(total_balance=1_000_000, savings_count=3)
    assert user.total_balance == 1_000_000
    assert user.savings_count == 3


def test_plan_kinds_carry_their_payloads():
    lock = Lock(2_000_000)
    goal = Goal("education", 5_000_000, 1)
    group = Group(101, True, 2, 10_000_000)
    assert lock.unlock_time == 2_000_000
    assert (goal.category, goal.target_amount, goal.contribution_type) == ("education", 5_000_000, 1)
    assert (group.group_id, group.is_public, group.contribution_type, group.target_amount) == (
        101,
        True,
        2,
        10_000_000,
    )
    assert Flexi() == Flexi()
    assert Lock(1) != Lock(2)


def test_plan_type_dict_form():
    assert plan_type_to_dict(Flexi()) == {"kind": "flexi"}
    assert plan_type_to_dict(Lock(5)) == {"kind": "lock", "unlock_time": 5}
    assert plan_type_from_dict({"kind": "goal", "category": "car", "target_amount": 10, "contribution_type": 2}) == Goal(
        "car", 10, 2
    )
    with pytest.raises(ValueError, match="Unknown plan kind"):
        plan_type_from_dict({"kind": "bond"})


def test_savings_plan_record_roundtrip():
    plan = SavingsPlan(
        plan_id=4,
        plan_type=Group(101, True, 2, 10_000_000),
        balance=3_000_000,
        start_time=1_000_000,
        last_deposit=1_600_000,
        last_withdraw=0,
        interest_rate=700,
    )
    assert SavingsPlan.from_dict(plan.to_dict()) == plan


def test_create_savings_plan(contract, new_address):
    """First plan gets id 1; balance equals the initial deposit."""
    user = new_address()
    plan_id = contract.create_savings_plan(user, Flexi(), 1000)
    assert plan_id == 1
    plan = contract.get_savings_plan(user, plan_id)
    assert plan.plan_id == plan_id
    assert plan.plan_type == Flexi()
    assert plan.balance == 1000
    assert plan.start_time == 1000
    assert plan.is_completed is False
    assert plan.is_withdrawn is False


def test_create_savings_plan_registers_user(contract, new_address):
    """Creating a plan registers an unknown user and counts the deposit."""
    user = new_address()
    with pytest.raises(UserNotFound):
        contract.get_user(user)
    contract.create_savings_plan(user, Flexi(), 1000)
    record = contract.get_user(user)
    assert record.total_balance == 1000
    assert record.savings_count == 1


def test_create_savings_plan_negative_deposit(contract, new_address):
    user = new_address()
    with pytest.raises(InvalidAmount):
        contract.create_savings_plan(user, Flexi(), -1)
    assert contract.user_exists(user) is False


def test_create_savings_plan_zero_deposit(contract, new_address):
    user = new_address()
    plan_id = contract.create_savings_plan(user, Lock(5000), 0)
    plan = contract.get_savings_plan(user, plan_id)
    assert plan.balance == 0
    assert plan.last_deposit == 0


def test_plan_ids_strictly_increase_across_users(contract, new_address):
    alice, bob = new_address(), new_address()
    ids = [
        contract.create_savings_plan(alice, Flexi(), 1),
        contract.create_savings_plan(bob, Flexi(), 1),
        contract.create_savings_plan(alice, Lock(10), 1),
    ]
    assert ids == [1, 2, 3]


def test_get_user_savings_plans(contract, new_address):
    user = new_address()
    plan1_id = contract.create_savings_plan(user, Flexi(), 1000)
    plan2_id = contract.create_savings_plan(user, Lock(2_000_000), 2000)
    plans = contract.get_user_savings_plans(user)
    assert [p.plan_id for p in plans] == [plan1_id, plan2_id]
    assert plans[1].plan_type == Lock(2_000_000)
    record = contract.get_user(user)
    assert record.total_balance == 3000
    assert record.savings_count == 2


def test_get_user_savings_plans_unknown_user(contract, new_address):
    assert contract.get_user_savings_plans(new_address()) == []


def test_get_savings_plan_not_owned(contract, new_address):
    """Plans are only visible to their owner."""
    owner, other = new_address(), new_address()
    plan_id = contract.create_savings_plan(owner, Flexi(), 10)
    with pytest.raises(PlanNotFound):
        contract.get_savings_plan(other, plan_id)
    with pytest.raises(PlanNotFound):
        contract.get_savings_plan(owner, 999)


def test_deposit_to_plan_updates_plan_and_total(contract, clock, new_address):
    user = new_address()
    plan_id = contract.create_savings_plan(user, Flexi(), 100)
    clock.set(2000)
    plan = contract.deposit_to_plan(user, plan_id, 50)
    assert plan.balance == 150
    assert plan.last_deposit == 2000
    assert contract.get_user(user).total_balance == 150


def test_goal_completes_when_target_reached(contract, new_address):
    user = new_address()
    plan_id = contract.create_savings_plan(user, Goal("education", 1000, 1), 400)
    assert contract.get_savings_plan(user, plan_id).is_completed is False
    contract.deposit_to_plan(user, plan_id, 600)
    assert contract.get_savings_plan(user, plan_id).is_completed is True


def test_goal_created_at_target_is_completed(contract, new_address):
    user = new_address()
    plan_id = contract.create_savings_plan(user, Goal("trip", 500, 2), 500)
    assert contract.get_savings_plan(user, plan_id).is_completed is True


def test_goal_completion_is_sticky(contract, new_address):
    """Withdrawing below target after completion does not reopen the goal."""
    user = new_address()
    plan_id = contract.create_savings_plan(user, Goal("car", 100, 1), 150)
    plan = contract.withdraw_from_plan(user, plan_id, 100)
    assert plan.balance == 50
    assert plan.is_completed is True


def test_withdraw_from_plan_empties_and_marks_withdrawn(contract, clock, new_address):
    user = new_address()
    plan_id = contract.create_savings_plan(user, Flexi(), 300)
    clock.set(3000)
    plan = contract.withdraw_from_plan(user, plan_id, 100)
    assert plan.is_withdrawn is False
    assert plan.last_withdraw == 3000
    plan = contract.withdraw_from_plan(user, plan_id, 200)
    assert plan.balance == 0
    assert plan.is_withdrawn is True
    assert contract.get_user(user).total_balance == 0


def test_withdrawn_plan_rejects_deposits(contract, new_address):
    user = new_address()
    plan_id = contract.create_savings_plan(user, Flexi(), 10)
    contract.withdraw_from_plan(user, plan_id, 10)
    with pytest.raises(PlanAlreadyWithdrawn):
        contract.deposit_to_plan(user, plan_id, 5)
    with pytest.raises(PlanAlreadyWithdrawn):
        contract.withdraw_from_plan(user, plan_id, 5)


def test_lock_plan_rejects_early_withdrawal(contract, clock, new_address):
    user = new_address()
    plan_id = contract.create_savings_plan(user, Lock(5000), 1000)
    clock.set(4999)
    with pytest.raises(PlanLocked):
        contract.withdraw_from_plan(user, plan_id, 100)
    clock.set(5000)
    plan = contract.withdraw_from_plan(user, plan_id, 100)
    assert plan.balance == 900


def test_withdraw_more_than_plan_balance(contract, new_address):
    user = new_address()
    plan_id = contract.create_savings_plan(user, Flexi(), 100)
    contract.deposit_flexi(user, 1000)
    with pytest.raises(InsufficientBalance):
        contract.withdraw_from_plan(user, plan_id, 101)
    assert contract.get_savings_plan(user, plan_id).balance == 100


def test_flexi_withdraw_cannot_release_lock_funds(contract, clock, new_address):
    """Lock plan money is not part of the Flexi bucket before unlock."""
    user = new_address()
    plan_id = contract.create_savings_plan(user, Lock(clock() + 10_000), 1000)
    with pytest.raises(InsufficientBalance):
        contract.withdraw_flexi(user, 1000)
    record = contract.get_user(user)
    assert record.total_balance == 1000
    assert record.flexi_balance == 0
    assert contract.get_savings_plan(user, plan_id).balance == 1000


def test_flexi_withdraw_limited_to_flexi_bucket(contract, new_address):
    """Plan balances count toward total_balance but only flexi funds leave via withdraw_flexi."""
    user = new_address()
    plan_id = contract.create_savings_plan(user, Flexi(), 100)
    contract.deposit_flexi(user, 30)
    with pytest.raises(InsufficientBalance):
        contract.withdraw_flexi(user, 31)
    contract.withdraw_flexi(user, 30)
    contract.withdraw_from_plan(user, plan_id, 100)
    record = contract.get_user(user)
    assert record.total_balance == 0
    assert record.flexi_balance == 0


@pytest.mark.parametrize("target", [0, -10])
def test_goal_requires_positive_target(contract, new_address, target):
    user = new_address()
    with pytest.raises(InvalidAmount):
        contract.create_savings_plan(user, Goal("trip", target, 1), 100)
    assert contract.user_exists(user) is False


def test_group_plan_requires_existing_group(contract, registered):
    user = registered()
    with pytest.raises(PlanNotFound):
        contract.create_savings_plan(user, Group(42, True, 1, 1000), 0)
    assert contract.get_user_savings_plans(user) == []


def test_group_plan_requires_membership(contract, registered):
    creator, outsider = registered(), registered()
    group_id = contract.create_group_save(creator, True, 1000, 5, 1)
    with pytest.raises(NotGroupMember):
        contract.create_savings_plan(outsider, Group(group_id, True, 1, 1000), 0)
    contract.join_group_save(outsider, group_id)
    assert contract.create_savings_plan(outsider, Group(group_id, True, 1, 1000), 0) == 1


def test_plan_operation_check_order(contract, new_address, registered):
    unknown = new_address()
    with pytest.raises(InvalidAmount):
        contract.deposit_to_plan(unknown, 1, 0)
    with pytest.raises(UserNotFound):
        contract.deposit_to_plan(unknown, 1, 10)
    with pytest.raises(PlanNotFound):
        contract.withdraw_from_plan(registered(), 1, 10)


def test_group_plan_reflects_pool_completion(contract, registered):
    """A Group plan is completed once its pool reaches target."""
    creator = registered()
    group_id = contract.create_group_save(creator, True, 1000, 5, 1)
    plan_id = contract.create_savings_plan(creator, Group(group_id, True, 1, 1000), 0)
    assert contract.get_savings_plan(creator, plan_id).is_completed is False
    contract.contribute_to_group_save(creator, group_id, 1000)
    assert contract.get_savings_plan(creator, plan_id).is_completed is True
    assert contract.get_user_savings_plans(creator)[0].is_completed is True
