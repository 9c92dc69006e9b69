"""
Group savings: pooled plans with membership, capacity and per-member contributions.

Membership flags and contribution accumulators are separate keyed records,
not lists inside the group, so group records stay fixed-size and per-member
lookups are a single read. Group ids use their own counter, independent of
plan ids.

Private groups accept no joins; invitations are not supported.
"""

from __future__ import annotations

from nestera.core.arithmetic import checked_add_i128, checked_increment_u64, is_i128, is_u32, is_u64
from nestera.core.exceptions import (
    GroupFull,
    InvalidAmount,
    InvalidGroupConfig,
    NotGroupMember,
    PlanNotFound,
    UserAlreadyExists,
    UserNotFound,
)
from nestera.database.keys import GroupContributionKey, GroupIdCounterKey, GroupKey, GroupMembershipKey
from nestera.database.store import StoreTransaction
from nestera.host.env import Env
from nestera.ledger import users
from nestera.ledger.models import GroupSave, validate_address
from nestera.nestera_logging import get_logger

logger = get_logger(__name__)


def _load_group(txn: StoreTransaction, group_id: int) -> GroupSave:
    if not is_u64(group_id):
        raise PlanNotFound(f"group {group_id!r} not found")
    data = txn.get(GroupKey(group_id))
    if data is None:
        raise PlanNotFound(f"group {group_id} not found")
    return GroupSave.from_dict(data)


def _save_group(txn: StoreTransaction, group: GroupSave) -> None:
    txn.set(GroupKey(group.group_id), group.to_dict())


def _add_member(txn: StoreTransaction, group_id: int, user: str) -> None:
    txn.set(GroupContributionKey(group_id, user), 0)
    txn.set(GroupMembershipKey(user, group_id), True)


def create_group_save(
    env: Env,
    creator: str,
    is_public: bool,
    target_amount: int,
    max_members: int,
    contribution_type: int,
) -> int:
    """Create a group with the creator as its first member. Returns the new group id."""
    creator = validate_address(creator)
    env.require_auth(creator)
    if not is_i128(target_amount) or target_amount <= 0:
        raise InvalidAmount(f"target amount must be a positive i128, got {target_amount!r}")
    if not is_u32(max_members) or max_members == 0:
        raise InvalidGroupConfig(f"max_members must be between 1 and 2**32-1, got {max_members!r}")
    if not is_u32(contribution_type):
        raise InvalidGroupConfig(f"contribution_type must be u32, got {contribution_type!r}")
    now = env.now()
    with env.store.transaction() as txn:
        if not users.exists(txn, creator):
            raise UserNotFound(f"user {creator} is not registered")
        group_id = checked_increment_u64(int(txn.get(GroupIdCounterKey(), 0)))
        txn.set(GroupIdCounterKey(), group_id)
        group = GroupSave(
            group_id=group_id,
            is_public=bool(is_public),
            target_amount=target_amount,
            current_amount=0,
            member_count=1,
            max_members=max_members,
            contribution_type=contribution_type,
            creator=creator,
            is_completed=False,
            created_at=now,
        )
        _save_group(txn, group)
        _add_member(txn, group_id, creator)
    logger.info(
        "group_created",
        creator=creator,
        group_id=group_id,
        is_public=group.is_public,
        target_amount=target_amount,
        max_members=max_members,
    )
    return group_id


def join_group_save(env: Env, user: str, group_id: int) -> None:
    """
    Join a public group. Checks, first failure wins: UserNotFound, PlanNotFound,
    NotGroupMember (private group), GroupFull, UserAlreadyExists (already a member).
    """
    user = validate_address(user)
    env.require_auth(user)
    with env.store.transaction() as txn:
        if not users.exists(txn, user):
            raise UserNotFound(f"user {user} is not registered")
        group = _load_group(txn, group_id)
        if not group.is_public:
            raise NotGroupMember(f"group {group_id} is private")
        if group.member_count >= group.max_members:
            raise GroupFull(f"group {group_id} is full ({group.member_count}/{group.max_members})")
        if txn.has(GroupMembershipKey(user, group_id)):
            raise UserAlreadyExists(f"user {user} is already a member of group {group_id}")
        group.member_count += 1
        _add_member(txn, group_id, user)
        _save_group(txn, group)
    logger.info("group_joined", user=user, group_id=group_id, member_count=group.member_count)


def contribute_to_group_save(env: Env, user: str, group_id: int, amount: int) -> None:
    """
    Add amount to the pool and to the member's own accumulator. Checks:
    InvalidAmount, UserNotFound, NotGroupMember, PlanNotFound. Contributions
    past the target are accepted; completion is sticky.
    """
    user = validate_address(user)
    env.require_auth(user)
    users.require_positive_amount(amount)
    with env.store.transaction() as txn:
        if not users.exists(txn, user):
            raise UserNotFound(f"user {user} is not registered")
        if not is_u64(group_id) or not txn.has(GroupMembershipKey(user, group_id)):
            raise NotGroupMember(f"user {user} is not a member of group {group_id}")
        group = _load_group(txn, group_id)
        group.current_amount = checked_add_i128(group.current_amount, amount)

        contribution_key = GroupContributionKey(group_id, user)
        contribution = checked_add_i128(int(txn.get(contribution_key, 0)), amount)
        txn.set(contribution_key, contribution)

        if group.current_amount >= group.target_amount:
            group.is_completed = True
        _save_group(txn, group)
    logger.info(
        "group_contribution",
        user=user,
        group_id=group_id,
        amount=amount,
        member_total=contribution,
        current_amount=group.current_amount,
        is_completed=group.is_completed,
    )


def get_group(env: Env, group_id: int) -> GroupSave:
    with env.store.transaction() as txn:
        return _load_group(txn, group_id)


def get_member_contribution(env: Env, group_id: int, user: str) -> int:
    """Member's accumulated contribution; 0 when the user never contributed or never joined."""
    user = validate_address(user)
    if not is_u64(group_id):
        return 0
    with env.store.transaction() as txn:
        return int(txn.get(GroupContributionKey(group_id, user), 0))


def is_group_member(env: Env, user: str, group_id: int) -> bool:
    user = validate_address(user)
    if not is_u64(group_id):
        return False
    with env.store.transaction() as txn:
        return txn.has(GroupMembershipKey(user, group_id))
