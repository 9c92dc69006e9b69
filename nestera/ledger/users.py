"""
Account ledger: per-user aggregate state (total_balance, savings_count,
flexi_balance).

Flexi deposits and withdrawals act on the single implicit Flexi bucket
(flexi_balance); no plan record is touched. Funds held in plans count toward
total_balance but are only released through withdraw_from_plan, so Lock
plans stay locked. All balance changes go through checked i128 arithmetic.
"""

from __future__ import annotations

from nestera.core.arithmetic import checked_add_i128, checked_sub_i128, is_i128
from nestera.core.exceptions import InsufficientBalance, InvalidAmount, UserAlreadyExists, UserNotFound
from nestera.database.keys import UserKey
from nestera.database.store import StoreTransaction
from nestera.host.env import Env
from nestera.ledger.models import User, validate_address
from nestera.nestera_logging import get_logger

logger = get_logger(__name__)


def require_positive_amount(amount: int) -> None:
    """InvalidAmount unless amount is an i128 strictly greater than zero."""
    if not is_i128(amount) or amount <= 0:
        raise InvalidAmount(f"amount must be a positive i128, got {amount!r}")


def exists(txn: StoreTransaction, user: str) -> bool:
    return txn.has(UserKey(user))


def load(txn: StoreTransaction, user: str) -> User:
    data = txn.get(UserKey(user))
    if data is None:
        raise UserNotFound(f"user {user} is not registered")
    return User.from_dict(data)


def save(txn: StoreTransaction, user: str, record: User) -> None:
    txn.set(UserKey(user), record.to_dict())


def load_or_create(txn: StoreTransaction, user: str) -> User:
    data = txn.get(UserKey(user))
    return User.from_dict(data) if data is not None else User()


def credit(txn: StoreTransaction, user: str, amount: int) -> User:
    """Add amount to an existing user's Flexi bucket and total_balance (checked). Returns the updated record."""
    record = load(txn, user)
    record.flexi_balance = checked_add_i128(record.flexi_balance, amount)
    record.total_balance = checked_add_i128(record.total_balance, amount)
    save(txn, user, record)
    return record


def initialize_user(env: Env, user: str) -> None:
    user = validate_address(user)
    env.require_auth(user)
    with env.store.transaction() as txn:
        if exists(txn, user):
            raise UserAlreadyExists(f"user {user} is already registered")
        save(txn, user, User())
    logger.info("user_initialized", user=user)


def user_exists(env: Env, user: str) -> bool:
    user = validate_address(user)
    with env.store.transaction() as txn:
        return exists(txn, user)


def get_user(env: Env, user: str) -> User:
    user = validate_address(user)
    with env.store.transaction() as txn:
        return load(txn, user)


def deposit_flexi(env: Env, user: str, amount: int) -> User:
    user = validate_address(user)
    env.require_auth(user)
    require_positive_amount(amount)
    with env.store.transaction() as txn:
        record = credit(txn, user, amount)
    logger.info(
        "flexi_deposit",
        user=user,
        amount=amount,
        flexi_balance=record.flexi_balance,
        total_balance=record.total_balance,
    )
    return record


def withdraw_flexi(env: Env, user: str, amount: int) -> User:
    user = validate_address(user)
    env.require_auth(user)
    require_positive_amount(amount)
    with env.store.transaction() as txn:
        record = load(txn, user)
        if amount > record.flexi_balance:
            raise InsufficientBalance(
                f"withdrawal of {amount} exceeds flexi balance {record.flexi_balance}"
            )
        record.flexi_balance = checked_sub_i128(record.flexi_balance, amount)
        record.total_balance = checked_sub_i128(record.total_balance, amount)
        save(txn, user, record)
    logger.info(
        "flexi_withdraw",
        user=user,
        amount=amount,
        flexi_balance=record.flexi_balance,
        total_balance=record.total_balance,
    )
    return record
