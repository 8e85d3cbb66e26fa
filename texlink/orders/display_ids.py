from __future__ import annotations

import re
import secrets
import string
from datetime import datetime, timezone
from typing import Callable


DisplayIdGenerator = Callable[[], str]

_ALPHABET = string.ascii_uppercase + string.digits
_REVISION_SUFFIX = re.compile(r"-R\d+$")


def random_code(length: int = 4) -> str:
    return "".join(secrets.choice(_ALPHABET) for _ in range(length))


def generate_display_id(prefix: str = "TX", *, now: datetime | None = None, code: str | None = None) -> str:
    moment = (now or datetime.now(timezone.utc)).astimezone(timezone.utc)
    return f"{prefix}-{moment.strftime('%Y%m%d')}-{code or random_code()}"


def make_generator(prefix: str = "TX") -> DisplayIdGenerator:
    return lambda: generate_display_id(prefix)


def base_display_id(display_id: str) -> str:
    return _REVISION_SUFFIX.sub("", str(display_id or "").strip())


def child_display_id(parent_display_id: str, revision_number: int) -> str:
    return f"{base_display_id(parent_display_id)}-R{int(revision_number)}"
