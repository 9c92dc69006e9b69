"""
Mint authorization: verify an admin-signed, time-bounded mint payload and
report the authorized amount.

Message layout (little-endian, 80 bytes):
    b"nestera-mint-v1" | user pubkey (32) | amount i128 (16) | timestamp u64 (8) | expiry_duration u64 (8)

Checks in order: admin initialized, signature over the exact message,
expiry (now <= timestamp + expiry_duration, inclusive), then for mint only:
non-negative amount and, when enabled, single-use redemption.
mint() does not credit anyone; mint_and_credit() applies the amount to the
user's Flexi bucket (and total_balance) in the same transaction.
"""

from __future__ import annotations

import hashlib
import struct

from solders.keypair import Keypair
from solders.pubkey import Pubkey
from solders.signature import Signature

from nestera.config.settings import Settings, get_settings
from nestera.core.arithmetic import checked_add_u64, is_i128, is_u64
from nestera.core.exceptions import (
    InvalidAmount,
    SignatureAlreadyUsed,
    SignatureExpired,
    SignatureInvalid,
)
from nestera.database.keys import UsedMintKey
from nestera.database.store import StoreTransaction
from nestera.host.env import Env
from nestera.ledger import admin, users
from nestera.ledger.models import MintPayload
from nestera.nestera_logging import get_logger

logger = get_logger(__name__)

MINT_DOMAIN = b"nestera-mint-v1"
SIGNATURE_LEN = 64


def encode_mint_payload(payload: MintPayload) -> bytes:
    """Canonical bytes the admin signs. Raises InvalidAmount / ValueError for unencodable fields."""
    if not is_i128(payload.amount):
        raise InvalidAmount(f"amount must be an i128, got {payload.amount!r}")
    if not is_u64(payload.timestamp) or not is_u64(payload.expiry_duration):
        raise ValueError("timestamp and expiry_duration must be u64")
    try:
        user = Pubkey.from_string(payload.user)
    except Exception as e:
        raise ValueError(f"invalid payload user: {e}") from e
    return (
        MINT_DOMAIN
        + bytes(user)
        + payload.amount.to_bytes(16, "little", signed=True)
        + struct.pack("<QQ", payload.timestamp, payload.expiry_duration)
    )


def sign_mint_payload(keypair: Keypair, payload: MintPayload) -> bytes:
    """Off-chain admin side: 64-byte Ed25519 signature over the canonical message."""
    return bytes(keypair.sign_message(encode_mint_payload(payload)))


def _as_signature(signature: bytes | str | Signature) -> Signature:
    if isinstance(signature, Signature):
        return signature
    try:
        if isinstance(signature, str):
            return Signature.from_string(signature.strip())
        raw = bytes(signature)
        if len(raw) != SIGNATURE_LEN:
            raise ValueError(f"expected {SIGNATURE_LEN} bytes, got {len(raw)}")
        return Signature.from_bytes(raw)
    except Exception as e:
        raise SignatureInvalid(f"malformed signature: {e}") from e


def _authorize(
    txn: StoreTransaction,
    env: Env,
    payload: MintPayload,
    signature: bytes | str | Signature,
    settings: Settings,
) -> bytes:
    """Shared verification path. Returns the signed message bytes."""
    admin_pubkey = admin.load_admin_pubkey(txn)
    try:
        message = encode_mint_payload(payload)
    except ValueError as e:
        raise SignatureInvalid(f"payload cannot have been signed: {e}") from e
    if not _as_signature(signature).verify(admin_pubkey, message):
        raise SignatureInvalid("signature does not match payload and admin key")

    expiry = checked_add_u64(payload.timestamp, payload.expiry_duration)
    if expiry is None:
        raise SignatureExpired("payload expiry overflows u64")
    now = env.now()
    if now > expiry:
        raise SignatureExpired(f"payload expired at {expiry}, now {now}")
    max_expiry = settings.mint_max_expiry_seconds
    if max_expiry and payload.expiry_duration > max_expiry:
        raise SignatureExpired(
            f"expiry_duration {payload.expiry_duration}s exceeds the {max_expiry}s limit"
        )
    return message


def _redeem(txn: StoreTransaction, payload: MintPayload, message: bytes, settings: Settings) -> str:
    """Mint-only checks after verification; marks the message used when replay protection is on."""
    if payload.amount < 0:
        raise InvalidAmount(f"mint amount must be >= 0, got {payload.amount}")
    digest = hashlib.sha256(message).hexdigest()
    if settings.mint_replay_protection:
        used_key = UsedMintKey(digest)
        if txn.has(used_key):
            raise SignatureAlreadyUsed("this mint payload has already been redeemed")
        txn.set(used_key, True)
    return digest


def verify_signature(
    env: Env,
    payload: MintPayload,
    signature: bytes | str | Signature,
    *,
    settings: Settings | None = None,
) -> bool:
    """Pure check: True when the payload is admin-signed and unexpired; raises otherwise."""
    settings = settings or get_settings()
    with env.store.transaction() as txn:
        _authorize(txn, env, payload, signature, settings)
    return True


def mint(
    env: Env,
    payload: MintPayload,
    signature: bytes | str | Signature,
    *,
    settings: Settings | None = None,
) -> int:
    """Verify and return the authorized amount. Crediting is left to the caller."""
    settings = settings or get_settings()
    with env.store.transaction() as txn:
        message = _authorize(txn, env, payload, signature, settings)
        digest = _redeem(txn, payload, message, settings)
    logger.info("mint_authorized", user=payload.user, amount=payload.amount, digest=digest)
    return payload.amount


def mint_and_credit(
    env: Env,
    payload: MintPayload,
    signature: bytes | str | Signature,
    *,
    settings: Settings | None = None,
) -> int:
    """mint() plus a checked credit to the payload user's Flexi bucket, atomically."""
    settings = settings or get_settings()
    with env.store.transaction() as txn:
        message = _authorize(txn, env, payload, signature, settings)
        digest = _redeem(txn, payload, message, settings)
        record = users.credit(txn, payload.user, payload.amount)
    logger.info(
        "mint_credited",
        user=payload.user,
        amount=payload.amount,
        total_balance=record.total_balance,
        digest=digest,
    )
    return payload.amount
