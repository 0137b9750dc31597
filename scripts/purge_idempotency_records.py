#!/usr/bin/env python3
"""Delete idempotency records older than IDEMPOTENCY_TTL_HOURS.

Usage:
    python scripts/purge_idempotency_records.py

Run hourly from cron. Expired records are already ignored by lookups; this
only reclaims space. Exits 0 on success, 1 on failure.
"""

from __future__ import annotations

import sys
from datetime import timedelta
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from worktrail.config import get_settings
from worktrail.db.session import SessionLocal
from worktrail.services.idempotency import IdempotencyStore


def main() -> int:
    store = IdempotencyStore(SessionLocal, timedelta(hours=get_settings().idempotency_ttl_hours))
    try:
        removed = store.purge_expired()
    except Exception as e:
        print(f"ERROR: {e}", file=sys.stderr)
        return 1
    print(f"status=completed removed={removed}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
