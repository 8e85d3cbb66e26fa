import unittest

from texlink.domain.models import BRAND, CompanyMembership, PermissionOverride
from texlink.errors import PermissionError
from texlink.permissions.resolver import (
    calculate_effective_permissions,
    has_all_permissions,
    has_any_permission,
    has_permission,
)
from texlink.permissions.role_permissions import (
    ALL_PERMISSIONS,
    ORDERS_ACCEPT_REJECT,
    ORDERS_CREATE,
    ORDERS_DELETE,
    ORDERS_UPDATE_STATUS,
    ORDERS_VIEW,
    ROLE_PERMISSIONS,
    SALES,
    VIEWER,
    normalize_role,
    permission_categories,
    role_info,
)
from texlink.policies import require_permissions


def _membership(role="SALES", *, admin=False, active=True, overrides=()):
    return CompanyMembership(
        id="cu-1",
        user_id="user-1",
        company_id="brand-1",
        company_type=BRAND,
        company_role=role,
        is_company_admin=admin,
        is_active=active,
        overrides=list(overrides),
    )


class PermissionResolverTest(unittest.TestCase):
    def test_missing_or_inactive_membership_has_no_permissions(self) -> None:
        self.assertEqual(calculate_effective_permissions(None), frozenset())
        self.assertEqual(calculate_effective_permissions(_membership(admin=True, active=False)), frozenset())

    def test_company_admin_gets_every_permission(self) -> None:
        membership = _membership(VIEWER, admin=True, overrides=[PermissionOverride(ORDERS_VIEW, False)])
        self.assertEqual(calculate_effective_permissions(membership), frozenset(ALL_PERMISSIONS))

    def test_role_template_is_the_baseline(self) -> None:
        self.assertEqual(calculate_effective_permissions(_membership(SALES)), ROLE_PERMISSIONS[SALES])

    def test_grant_and_revoke_overrides(self) -> None:
        membership = _membership(
            SALES,
            overrides=[
                PermissionOverride(ORDERS_UPDATE_STATUS, True),
                PermissionOverride(ORDERS_CREATE, False),
            ],
        )
        effective = calculate_effective_permissions(membership)
        self.assertIn(ORDERS_UPDATE_STATUS, effective)
        self.assertNotIn(ORDERS_CREATE, effective)
        self.assertIn(ORDERS_VIEW, effective)

    def test_unknown_role_falls_back_to_viewer(self) -> None:
        self.assertEqual(normalize_role("gerente"), VIEWER)
        self.assertEqual(calculate_effective_permissions(_membership("gerente")), ROLE_PERMISSIONS[VIEWER])

    def test_helpers(self) -> None:
        membership = _membership(SALES)
        self.assertTrue(has_permission(membership, ORDERS_CREATE))
        self.assertFalse(has_permission(membership, ORDERS_DELETE))
        self.assertTrue(has_any_permission(membership, [ORDERS_DELETE, ORDERS_VIEW]))
        self.assertFalse(has_all_permissions(membership, [ORDERS_DELETE, ORDERS_VIEW]))

    def test_require_permissions_raises_forbidden(self) -> None:
        with self.assertRaises(PermissionError) as ctx:
            require_permissions(_membership(VIEWER), ORDERS_ACCEPT_REJECT)
        self.assertEqual(ctx.exception.http_status, 403)
        self.assertEqual(ctx.exception.payload["required_permissions"], [ORDERS_ACCEPT_REJECT])

        effective = require_permissions(_membership(SALES), ORDERS_CREATE, ORDERS_DELETE)
        self.assertIn(ORDERS_CREATE, effective)
        with self.assertRaises(PermissionError):
            require_permissions(_membership(SALES), ORDERS_CREATE, ORDERS_DELETE, require_all=True)

    def test_role_catalog(self) -> None:
        info = role_info("sales")
        self.assertEqual(info["role"], SALES)
        self.assertEqual(info["permissions"], sorted(ROLE_PERMISSIONS[SALES]))

        catalog_permissions = [
            permission["key"] for category in permission_categories() for permission in category["permissions"]
        ]
        self.assertEqual(sorted(catalog_permissions), sorted(ALL_PERMISSIONS))


if __name__ == "__main__":
    unittest.main()
