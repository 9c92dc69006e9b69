"""
Admin registry: the single admin address, which is also the Ed25519 key
that signs mint payloads.

Initialized once; rotation needs authorization from both the current admin
and the incoming one, so control never passes to a key that cannot act.
"""

from __future__ import annotations

from solders.pubkey import Pubkey

from nestera.core.exceptions import AlreadyInitialized, NotInitialized
from nestera.database.keys import AdminKey
from nestera.database.store import StoreTransaction
from nestera.host.env import Env
from nestera.ledger.models import validate_address
from nestera.nestera_logging import get_logger

logger = get_logger(__name__)


def load_admin(txn: StoreTransaction) -> str:
    data = txn.get(AdminKey())
    if not data or not data.get("initialized"):
        raise NotInitialized("admin key has not been set")
    return str(data["admin"])


def load_admin_pubkey(txn: StoreTransaction) -> Pubkey:
    return Pubkey.from_string(load_admin(txn))


def initialize(env: Env, admin: str) -> None:
    admin = validate_address(admin)
    with env.store.transaction() as txn:
        if txn.has(AdminKey()):
            raise AlreadyInitialized("admin key is already set")
        txn.set(AdminKey(), {"admin": admin, "initialized": True})
    logger.info("admin_initialized", admin=admin)


def is_initialized(env: Env) -> bool:
    with env.store.transaction() as txn:
        return txn.has(AdminKey())


def get_admin(env: Env) -> str:
    with env.store.transaction() as txn:
        return load_admin(txn)


def update_admin(env: Env, new_admin: str) -> None:
    """Rotate the admin. Requires the current admin's and the new admin's authorization."""
    new_admin = validate_address(new_admin)
    with env.store.transaction() as txn:
        current = load_admin(txn)
        env.require_auth(current)
        env.require_auth(new_admin)
        txn.set(AdminKey(), {"admin": new_admin, "initialized": True})
    logger.info("admin_rotated", previous_admin=current, admin=new_admin)
