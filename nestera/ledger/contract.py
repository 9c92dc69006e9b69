"""
NesteraContract — the public call surface over one host environment.

Each method is one atomic call against the store. Typed SavingsError
failures propagate to the caller unchanged and are logged once here.
"""

from __future__ import annotations

import functools
from typing import Any, Callable, TypeVar

from solders.signature import Signature

from nestera.config.settings import Settings, get_settings
from nestera.core.exceptions import SavingsError
from nestera.database.store import LedgerStore
from nestera.host.auth import Authorizer
from nestera.host.clock import SystemClock
from nestera.host.env import Env
from nestera.ledger import admin, groups, mint, plans, users
from nestera.ledger.models import GroupSave, MintPayload, PlanType, SavingsPlan, User
from nestera.nestera_logging import get_logger

logger = get_logger(__name__)

F = TypeVar("F", bound=Callable[..., Any])


def _ledger_call(func: F) -> F:
    @functools.wraps(func)
    def wrapper(self: "NesteraContract", *args: Any, **kwargs: Any) -> Any:
        try:
            return func(self, *args, **kwargs)
        except SavingsError as e:
            logger.warning("ledger_call_rejected", call=func.__name__, error=e.kind, code=e.code, detail=e.detail)
            raise

    return wrapper  # type: ignore[return-value]


class NesteraContract:
    def __init__(self, env: Env, settings: Settings | None = None) -> None:
        self.env = env
        self.settings = settings or get_settings()

    @classmethod
    def from_settings(cls, authorizer: Authorizer, settings: Settings | None = None) -> "NesteraContract":
        """Build a contract over a fresh store at settings.database_url, wall clock."""
        settings = settings or get_settings()
        store = LedgerStore(settings.database_url)
        store.init_db()
        return cls(Env(store=store, authorizer=authorizer, clock=SystemClock()), settings)

    def with_authorizer(self, authorizer: Authorizer) -> "NesteraContract":
        return NesteraContract(self.env.with_authorizer(authorizer), self.settings)

    # -- admin ---------------------------------------------------------------

    @_ledger_call
    def initialize(self, admin_address: str) -> None:
        admin.initialize(self.env, admin_address)

    def is_initialized(self) -> bool:
        return admin.is_initialized(self.env)

    @_ledger_call
    def get_admin(self) -> str:
        return admin.get_admin(self.env)

    get_admin_public_key = get_admin

    @_ledger_call
    def update_admin(self, new_admin: str) -> None:
        admin.update_admin(self.env, new_admin)

    # -- mint ----------------------------------------------------------------

    @_ledger_call
    def verify_signature(self, payload: MintPayload, signature: bytes | str | Signature) -> bool:
        return mint.verify_signature(self.env, payload, signature, settings=self.settings)

    @_ledger_call
    def mint(self, payload: MintPayload, signature: bytes | str | Signature) -> int:
        return mint.mint(self.env, payload, signature, settings=self.settings)

    @_ledger_call
    def mint_and_credit(self, payload: MintPayload, signature: bytes | str | Signature) -> int:
        return mint.mint_and_credit(self.env, payload, signature, settings=self.settings)

    # -- users ---------------------------------------------------------------

    @_ledger_call
    def initialize_user(self, user: str) -> None:
        users.initialize_user(self.env, user)

    def user_exists(self, user: str) -> bool:
        return users.user_exists(self.env, user)

    @_ledger_call
    def get_user(self, user: str) -> User:
        return users.get_user(self.env, user)

    @_ledger_call
    def deposit_flexi(self, user: str, amount: int) -> None:
        users.deposit_flexi(self.env, user, amount)

    @_ledger_call
    def withdraw_flexi(self, user: str, amount: int) -> None:
        users.withdraw_flexi(self.env, user, amount)

    # -- plans ---------------------------------------------------------------

    @_ledger_call
    def create_savings_plan(self, user: str, plan_type: PlanType, initial_deposit: int) -> int:
        return plans.create_savings_plan(self.env, user, plan_type, initial_deposit)

    @_ledger_call
    def get_savings_plan(self, user: str, plan_id: int) -> SavingsPlan:
        return plans.get_savings_plan(self.env, user, plan_id)

    def get_user_savings_plans(self, user: str) -> list[SavingsPlan]:
        return plans.get_user_savings_plans(self.env, user)

    @_ledger_call
    def deposit_to_plan(self, user: str, plan_id: int, amount: int) -> SavingsPlan:
        return plans.deposit_to_plan(self.env, user, plan_id, amount)

    @_ledger_call
    def withdraw_from_plan(self, user: str, plan_id: int, amount: int) -> SavingsPlan:
        return plans.withdraw_from_plan(self.env, user, plan_id, amount)

    # -- groups --------------------------------------------------------------

    @_ledger_call
    def create_group_save(
        self,
        creator: str,
        is_public: bool,
        target_amount: int,
        max_members: int,
        contribution_type: int,
    ) -> int:
        return groups.create_group_save(
            self.env, creator, is_public, target_amount, max_members, contribution_type
        )

    @_ledger_call
    def join_group_save(self, user: str, group_id: int) -> None:
        groups.join_group_save(self.env, user, group_id)

    @_ledger_call
    def contribute_to_group_save(self, user: str, group_id: int, amount: int) -> None:
        groups.contribute_to_group_save(self.env, user, group_id, amount)

    @_ledger_call
    def get_group(self, group_id: int) -> GroupSave:
        return groups.get_group(self.env, group_id)

    def get_member_contribution(self, group_id: int, user: str) -> int:
        return groups.get_member_contribution(self.env, group_id, user)

    def is_group_member(self, user: str, group_id: int) -> bool:
        return groups.is_group_member(self.env, user, group_id)
