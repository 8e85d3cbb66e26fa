from __future__ import annotations

import uuid
from datetime import datetime, timezone
from typing import Callable


Clock = Callable[[], datetime]


def new_id() -> str:
    return uuid.uuid4().hex


def as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)
