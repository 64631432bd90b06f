"""Bulk admin CLI: normalizes US phone numbers and calls the admin endpoints.

Usage:
    ADMIN_BASE_URL=... ADMIN_TOKEN=... python scripts/bulk_admin.py unblock 619-555-1234 "(619)555-6789"
    ADMIN_BASE_URL=... ADMIN_TOKEN=... python scripts/bulk_admin.py whitelist-add 6195551234 +16195556789
    ADMIN_BASE_URL=... ADMIN_TOKEN=... python scripts/bulk_admin.py whitelist-remove --file phones.txt
    python scripts/bulk_admin.py whitelist-add --file phones.txt --dry-run

Files may separate numbers by newline, comma, semicolon or tab; lines starting
with # or // are ignored.
"""

import argparse
import asyncio
import os
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent))

import httpx

from smsgate.core.exceptions import InvalidPhoneNumberError
from smsgate.core.phone import normalize_to_e164_us, parse_phone_list

ENDPOINTS = {
    "unblock": "/admin/unblock",
    "whitelist-add": "/admin/whitelist-add",
    "whitelist-remove": "/admin/whitelist-remove",
}


async def call_endpoint(
    client: httpx.AsyncClient,
    base_url: str,
    token: str,
    action: str,
    phone: str,
) -> dict:
    """POST one phone to an admin endpoint and return the JSON body."""
    response = await client.post(
        f"{base_url}{ENDPOINTS[action]}",
        data={"phone": phone, "token": token},
        timeout=10.0,
    )
    try:
        payload = response.json()
    except ValueError:
        payload = {"raw": response.text}
    if response.status_code >= 400:
        detail = payload.get("detail") if isinstance(payload, dict) else None
        raise RuntimeError(f"HTTP {response.status_code} → {detail or response.text}")
    return payload


async def run_bulk(
    action: str,
    phones: list[str],
    base_url: str,
    token: str,
    concurrency: int = 5,
) -> int:
    """Call the endpoint for every phone with bounded concurrency.

    Returns:
        Number of failed calls
    """
    semaphore = asyncio.Semaphore(max(1, concurrency))
    failures = 0

    async with httpx.AsyncClient() as client:

        async def bounded(phone: str) -> None:
            nonlocal failures
            async with semaphore:
                try:
                    result = await call_endpoint(client, base_url, token, action, phone)
                    print(f"✓ {phone} {result}")
                except (httpx.HTTPError, RuntimeError) as e:
                    failures += 1
                    print(f"✗ {phone} {e}", file=sys.stderr)

        await asyncio.gather(*(bounded(phone) for phone in phones))

    return failures


def main() -> None:
    parser = argparse.ArgumentParser(
        description="Bulk unblock / whitelist management via the admin API",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )
    parser.add_argument("action", choices=sorted(ENDPOINTS), help="Admin action to run")
    parser.add_argument("phones", nargs="*", help="Phone numbers in any common US format")
    parser.add_argument("--file", type=Path, help="Read phone numbers from a file")
    parser.add_argument("--concurrency", type=int, default=5, help="Parallel requests (default 5)")
    parser.add_argument("--dry-run", action="store_true", help="Print normalized numbers and exit")
    args = parser.parse_args()

    blob = args.file.read_text(encoding="utf-8") if args.file else "\n".join(args.phones)
    raw_entries = parse_phone_list(blob)
    if not raw_entries:
        parser.error("no phone numbers given")

    phones: list[str] = []
    invalid = 0
    for entry in raw_entries:
        try:
            phone = normalize_to_e164_us(entry)
        except InvalidPhoneNumberError as e:
            invalid += 1
            print(f"✗ {e}", file=sys.stderr)
            continue
        if phone not in phones:
            phones.append(phone)

    if args.dry_run:
        print("\n".join(phones))
        sys.exit(1 if invalid else 0)

    base_url = os.environ.get("ADMIN_BASE_URL", "").rstrip("/")
    token = os.environ.get("ADMIN_TOKEN", "")
    if not base_url or not token:
        parser.error("set ADMIN_BASE_URL and ADMIN_TOKEN")

    failures = asyncio.run(run_bulk(args.action, phones, base_url, token, args.concurrency))
    print(f"Done: {len(phones) - failures} ok, {failures + invalid} failed")
    sys.exit(1 if failures or invalid else 0)


if __name__ == "__main__":
    main()
