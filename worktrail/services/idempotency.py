"""Request fingerprinting and the idempotency record store.

A fingerprint is the SHA-256 of ``"{user_id}:{METHOD}:{path}:{canonical body}"``
where the body is re-serialized with sorted keys, so key order never changes it.
Records are only written for 2xx responses and are treated as absent once
older than the TTL; ``purge_expired`` deletes them.
"""

from __future__ import annotations

import hashlib
import json
import logging
from collections.abc import Callable
from datetime import UTC, datetime, timedelta
from typing import Any

from sqlalchemy.orm import Session

from worktrail.models.idempotency_record import IdempotencyRecord

logger = logging.getLogger(__name__)


def canonical_body(raw: bytes | str | None) -> str:
    """Canonical JSON for a request body; empty or non-JSON bodies become ``null``."""
    parsed: Any = None
    if raw:
        try:
            parsed = json.loads(raw)
        except (ValueError, UnicodeDecodeError):
            parsed = None
    return json.dumps(parsed, sort_keys=True, separators=(",", ":"))


def fingerprint(user_id: int | str, method: str, path: str, body: bytes | str | None) -> str:
    material = f"{user_id}:{method.upper()}:{path}:{canonical_body(body)}"
    return hashlib.sha256(material.encode("utf-8")).hexdigest()


class IdempotencyStore:
    """Persistence for cached responses, one short-lived session per call."""

    def __init__(self, session_factory: Callable[[], Session], ttl: timedelta) -> None:
        self.session_factory = session_factory
        self.ttl = ttl

    def lookup(self, key: str, now: datetime | None = None) -> IdempotencyRecord | None:
        """Return the live record for ``key``. Errors propagate; the caller fails open."""
        cutoff = (now or datetime.now(UTC)) - self.ttl
        db = self.session_factory()
        try:
            record = (
                db.query(IdempotencyRecord)
                .filter(IdempotencyRecord.key == key, IdempotencyRecord.created_at >= cutoff)
                .first()
            )
            if record is not None:
                db.expunge(record)
            return record
        finally:
            db.close()

    def save(
        self, key: str, status_code: int, response_body: Any, now: datetime | None = None
    ) -> None:
        """Persist a response. Never raises; a concurrent duplicate key is expected.

        An expired record still holding ``key`` (not yet purged) is replaced in
        the same transaction. A live record for ``key`` is left alone.
        """
        now = now or datetime.now(UTC)
        try:
            with self.session_factory() as db:
                db.query(IdempotencyRecord).filter(
                    IdempotencyRecord.key == key,
                    IdempotencyRecord.created_at < now - self.ttl,
                ).delete(synchronize_session=False)
                db.add(
                    IdempotencyRecord(
                        key=key,
                        status_code=status_code,
                        response_body=response_body,
                        created_at=now,
                    )
                )
                db.commit()
        except Exception:
            logger.warning("Idempotency record not saved for key %s", key, exc_info=True)

    def purge_expired(self, now: datetime | None = None) -> int:
        """Delete records older than the TTL. Returns the number removed."""
        cutoff = (now or datetime.now(UTC)) - self.ttl
        db = self.session_factory()
        try:
            removed = (
                db.query(IdempotencyRecord)
                .filter(IdempotencyRecord.created_at < cutoff)
                .delete(synchronize_session=False)
            )
            db.commit()
            return removed
        finally:
            db.close()
