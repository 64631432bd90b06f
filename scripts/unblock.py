"""Unblock a phone number directly in Redis.

Usage:
    python scripts/unblock.py +15551234567
    python scripts/unblock.py 5551234567 --clear-opt-out
    python scripts/unblock.py +15551234567 --all   # also remove historical suspicious counters

Requires REDIS_URL and REDIS_ENABLED=true in the environment or .env.
"""

import argparse
import asyncio
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent))

from smsgate.core.exceptions import InvalidPhoneNumberError, StoreUnavailableError
from smsgate.core.phone import normalize_to_e164_us
from smsgate.domain.services.admin_service import AdminService
from smsgate.infrastructure.redis import redis_client


async def unblock(phone: str, clear_opt_out: bool, clear_history: bool) -> None:
    await redis_client.connect()
    try:
        result = await AdminService(redis_client).unblock(
            phone, clear_opt_out=clear_opt_out, clear_history=clear_history
        )
    finally:
        await redis_client.disconnect()

    print(f"✓ Blocklist entry removed: {result.removed_from_blocklist}")
    print(f"✓ Burst keys deleted: {result.burst_deleted}")
    if clear_history:
        print(f"✓ Suspicious-content keys deleted: {result.suspicious_deleted}")
    if clear_opt_out:
        print("✓ Cleared opt-out flags")
        print("  If Advanced Opt-Out is on, the user must still text START once.")


def main() -> None:
    parser = argparse.ArgumentParser(description="Unblock a sender in the counter store")
    parser.add_argument("phone", help="Phone number (e.g. +15551234567 or 5551234567)")
    parser.add_argument("--all", action="store_true", help="Also delete historical suspicious counters")
    parser.add_argument("--clear-opt-out", action="store_true", help="Also clear a STOP opt-out")
    args = parser.parse_args()

    try:
        phone = normalize_to_e164_us(args.phone)
    except InvalidPhoneNumberError as e:
        parser.error(str(e))

    print(f"Unblocking {phone}...")
    try:
        asyncio.run(unblock(phone, args.clear_opt_out, args.all))
    except StoreUnavailableError as e:
        print(f"Unblock failed: {e}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
