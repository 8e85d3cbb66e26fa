from __future__ import annotations

import logging
from typing import Dict, List

from texlink.domain.models import CompanyMembership
from texlink.errors import NotFoundError, ValidationError
from texlink.infrastructure.repositories import CompanyRepository
from texlink.permissions.resolver import calculate_effective_permissions
from texlink.permissions.role_permissions import (
    TEAM_MANAGE_PERMISSIONS,
    is_known_permission,
    permission_categories,
    role_info,
)
from texlink.policies import require_permissions


logger = logging.getLogger("texlink.permissions")


class PermissionsService:
    """Reads effective permissions and manages per-member overrides.

    When ``actor_id`` is given, the acting user must hold
    ``TEAM_MANAGE_PERMISSIONS`` in the same company.
    """

    def __init__(self, *, company_repository: CompanyRepository | None = None) -> None:
        self.company_repository = company_repository or CompanyRepository()

    def _membership(self, db, user_id: str, company_id: str) -> CompanyMembership:
        membership = self.company_repository.get_membership(db, user_id, company_id)
        if membership is None:
            raise NotFoundError(
                code="membership_not_found",
                details=f"Usuario {user_id} nao pertence a empresa {company_id}",
                payload={"user_id": user_id, "company_id": company_id},
            )
        return membership

    def _authorize(self, db, actor_id: str | None, company_id: str) -> None:
        if actor_id is None:
            return
        require_permissions(self.company_repository.get_membership(db, actor_id, company_id), TEAM_MANAGE_PERMISSIONS)

    def get_user_permissions(self, db, *, user_id: str, company_id: str) -> List[str]:
        membership = self.company_repository.get_membership(db, user_id, company_id)
        if membership is None:
            return []
        return sorted(calculate_effective_permissions(membership))

    def has_permission(self, db, *, user_id: str, company_id: str, permission: str) -> bool:
        return permission in self.get_user_permissions(db, user_id=user_id, company_id=company_id)

    def set_permission_override(
        self,
        db,
        *,
        user_id: str,
        company_id: str,
        permission: str,
        granted: bool,
        actor_id: str | None = None,
    ) -> List[str]:
        if not is_known_permission(permission):
            raise ValidationError(
                code="permission_unknown",
                message_key="permission_unknown",
                details=f"permission={permission!r}",
            )
        with db.transaction():
            self._authorize(db, actor_id, company_id)
            membership = self._membership(db, user_id, company_id)
            self.company_repository.upsert_override(
                db,
                membership_id=membership.id,
                permission=permission,
                granted=bool(granted),
            )
        logger.info(
            "permission_override_set",
            extra={"user_id": user_id, "company_id": company_id, "permission": permission, "granted": bool(granted)},
        )
        return self.get_user_permissions(db, user_id=user_id, company_id=company_id)

    def remove_permission_override(
        self,
        db,
        *,
        user_id: str,
        company_id: str,
        permission: str,
        actor_id: str | None = None,
    ) -> List[str]:
        with db.transaction():
            self._authorize(db, actor_id, company_id)
            membership = self._membership(db, user_id, company_id)
            removed = self.company_repository.delete_override(db, membership_id=membership.id, permission=permission)
        logger.info(
            "permission_override_removed",
            extra={"user_id": user_id, "company_id": company_id, "permission": permission, "removed": removed},
        )
        return self.get_user_permissions(db, user_id=user_id, company_id=company_id)

    def clear_permission_overrides(self, db, *, user_id: str, company_id: str, actor_id: str | None = None) -> List[str]:
        with db.transaction():
            self._authorize(db, actor_id, company_id)
            membership = self._membership(db, user_id, company_id)
            removed = self.company_repository.clear_overrides(db, membership_id=membership.id)
        logger.info(
            "permission_overrides_cleared",
            extra={"user_id": user_id, "company_id": company_id, "removed": removed},
        )
        return self.get_user_permissions(db, user_id=user_id, company_id=company_id)

    def role_catalog(self, role: str | None = None) -> Dict[str, object]:
        return {"role": role_info(role), "categories": permission_categories()}
