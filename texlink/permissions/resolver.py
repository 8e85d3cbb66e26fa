from __future__ import annotations

from typing import Dict, FrozenSet, Iterable

from texlink.domain.models import CompanyMembership, PermissionOverride
from texlink.permissions.role_permissions import ALL_PERMISSIONS, ROLE_PERMISSIONS, normalize_role


def _normalized_overrides(overrides: Iterable[PermissionOverride]) -> Dict[str, bool]:
    latest: Dict[str, bool] = {}
    for override in overrides:
        latest[override.permission] = bool(override.granted)
    return latest


def calculate_effective_permissions(membership: CompanyMembership | None) -> FrozenSet[str]:
    """Merge the role template with per-member overrides.

    Company admins get every permission. Otherwise a granted override adds
    and a denied override removes; one value per permission key is kept, so
    the order overrides were stored in never matters.
    """
    if membership is None or not membership.is_active:
        return frozenset()
    if membership.is_company_admin:
        return frozenset(ALL_PERMISSIONS)

    effective = set(ROLE_PERMISSIONS[normalize_role(membership.company_role)])
    for permission, granted in _normalized_overrides(membership.overrides).items():
        if granted:
            effective.add(permission)
        else:
            effective.discard(permission)
    return frozenset(effective)


def has_permission(membership: CompanyMembership | None, permission: str) -> bool:
    return permission in calculate_effective_permissions(membership)


def has_all_permissions(membership: CompanyMembership | None, permissions: Iterable[str]) -> bool:
    effective = calculate_effective_permissions(membership)
    return all(permission in effective for permission in permissions)


def has_any_permission(membership: CompanyMembership | None, permissions: Iterable[str]) -> bool:
    effective = calculate_effective_permissions(membership)
    return any(permission in effective for permission in permissions)
