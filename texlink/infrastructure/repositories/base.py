from __future__ import annotations

from datetime import datetime, timezone
from decimal import Decimal
from typing import Any, Iterable

from texlink.errors import DuplicateKeyError, SystemError, is_unique_violation


def to_datetime(value: Any) -> datetime | None:
    if value is None:
        return None
    if isinstance(value, datetime):
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc)

    raw = str(value).strip()
    if not raw:
        return None
    normalized = raw[:-1] + "+00:00" if raw.endswith("Z") else raw
    try:
        parsed = datetime.fromisoformat(normalized)
    except ValueError:
        return None
    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


def to_iso(value: datetime | None) -> str | None:
    if value is None:
        return None
    return value.astimezone(timezone.utc).isoformat()


def to_decimal(value: Any) -> Decimal | None:
    if value is None or value == "":
        return None
    return Decimal(str(value))


class BaseRepository:
    @staticmethod
    def write(db, sql: str, params: Iterable[Any] | None = None):
        """Execute a write, mapping unique violations to ``DuplicateKeyError``.

        Any other driver failure surfaces as a critical ``SystemError``; the
        surrounding transaction is rolled back by ``Database.transaction``.
        """
        try:
            return db.execute(sql, tuple(params or ()))
        except Exception as exc:  # noqa: BLE001
            if is_unique_violation(exc):
                raise DuplicateKeyError(details=str(exc)) from exc
            raise SystemError(code="storage_error", details=str(exc)) from exc
