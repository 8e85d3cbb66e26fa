from __future__ import annotations

from typing import FrozenSet

from texlink.domain.models import CompanyMembership
from texlink.errors import PermissionError as AppPermissionError
from texlink.permissions.resolver import calculate_effective_permissions


def require_permissions(
    membership: CompanyMembership | None,
    *permissions: str,
    require_all: bool = False,
) -> FrozenSet[str]:
    effective = calculate_effective_permissions(membership)
    if not permissions:
        return effective
    matches = [permission in effective for permission in permissions]
    if all(matches) if require_all else any(matches):
        return effective
    raise AppPermissionError(
        code="permission_denied",
        message_key="permission_denied",
        http_status=403,
        critical=False,
        payload={"required_permissions": list(permissions)},
    )
