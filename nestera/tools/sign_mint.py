"""
Sign a mint payload with the admin key (off-chain side of the mint flow).

Prints the JSON body accepted by POST /mint: {"payload": {...}, "signature": "<base58>"}.

Usage:
  python -m nestera.tools.sign_mint --user <address> --amount 500 --expiry 3600
  python -m nestera.tools.sign_mint --user <address> --amount 500 --timestamp 1000 --key-file admin.json

Key: --key-file (JSON array of 64 bytes, solana-keygen format) or
NESTERA_ADMIN_SECRET (base58 64-byte secret, or the same JSON array).
"""

from __future__ import annotations

import argparse
import json
import os
import sys
import time
from pathlib import Path

import base58
from solders.keypair import Keypair
from solders.signature import Signature

from nestera.config.env import load_nestera_env
from nestera.ledger.mint import sign_mint_payload
from nestera.ledger.models import MintPayload, validate_address
from nestera.nestera_logging import get_logger

logger = get_logger(__name__)

DEFAULT_EXPIRY_SEC = 3600


def load_keypair(secret: str) -> Keypair:
    """Load Keypair from a base58 string or a JSON array of 64 bytes."""
    raw = secret.strip()
    if raw.startswith("["):
        try:
            arr = json.loads(raw)
            if len(arr) >= 64:
                return Keypair.from_bytes(bytes(arr[:64]))
        except (json.JSONDecodeError, TypeError, ValueError):
            pass
    try:
        return Keypair.from_bytes(base58.b58decode(raw))
    except Exception as e:
        logger.warning("admin_keypair_load_failed", error=str(e))
        raise ValueError("Invalid admin secret key") from e


def build_signed_request(keypair: Keypair, payload: MintPayload) -> dict:
    signature = Signature.from_bytes(sign_mint_payload(keypair, payload))
    return {"payload": payload.to_dict(), "signature": str(signature)}


def _parse_args(argv: list[str] | None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Sign a Nestera mint payload with the admin key.")
    parser.add_argument("--user", required=True, help="Recipient address (base58)")
    parser.add_argument("--amount", required=True, type=int, help="Amount to mint")
    parser.add_argument("--timestamp", type=int, default=None, help="Signing time (default: now)")
    parser.add_argument("--expiry", type=int, default=DEFAULT_EXPIRY_SEC, help="Validity window in seconds")
    parser.add_argument("--key-file", type=Path, default=None, help="Admin keypair JSON file")
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> int:
    args = _parse_args(argv)
    load_nestera_env()
    if args.key_file is not None:
        secret = args.key_file.read_text(encoding="utf-8")
    else:
        secret = (os.getenv("NESTERA_ADMIN_SECRET") or "").strip()
    if not secret:
        print("[sign_mint] ERROR: pass --key-file or set NESTERA_ADMIN_SECRET", file=sys.stderr)
        return 1
    try:
        keypair = load_keypair(secret)
        payload = MintPayload(
            user=validate_address(args.user),
            amount=args.amount,
            timestamp=args.timestamp if args.timestamp is not None else int(time.time()),
            expiry_duration=args.expiry,
        )
        request = build_signed_request(keypair, payload)
    except ValueError as e:
        print(f"[sign_mint] ERROR: {e}", file=sys.stderr)
        return 1
    logger.info("mint_payload_signed", admin=str(keypair.pubkey()), user=payload.user, amount=payload.amount)
    print(json.dumps(request))
    return 0


if __name__ == "__main__":
    sys.exit(main())
