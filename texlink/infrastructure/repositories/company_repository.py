from __future__ import annotations

import uuid
from typing import List

from texlink.domain.models import CompanyMembership, PermissionOverride, utc_now
from texlink.infrastructure.repositories.base import BaseRepository, to_iso


_MEMBERSHIP_SELECT = """
    SELECT cu.id, cu.user_id, cu.company_id, cu.company_role, cu.is_company_admin, cu.is_active,
           c.company_type, u.name AS user_name
    FROM company_users cu
    JOIN companies c ON c.id = cu.company_id
    JOIN users u ON u.id = cu.user_id
"""


class CompanyRepository(BaseRepository):
    """Companies, users, memberships and per-member permission overrides."""

    def create_company(
        self,
        db,
        *,
        legal_name: str,
        company_type: str,
        trade_name: str | None = None,
        company_id: str | None = None,
    ) -> str:
        company_id = company_id or uuid.uuid4().hex
        self.write(
            db,
            """
            INSERT INTO companies (id, legal_name, trade_name, company_type, created_at)
            VALUES (?, ?, ?, ?, ?)
            """,
            (company_id, legal_name, trade_name, company_type, to_iso(utc_now())),
        )
        return company_id

    def create_user(self, db, *, name: str, email: str, user_id: str | None = None) -> str:
        user_id = user_id or uuid.uuid4().hex
        self.write(
            db,
            "INSERT INTO users (id, name, email, created_at) VALUES (?, ?, ?, ?)",
            (user_id, name, email, to_iso(utc_now())),
        )
        return user_id

    def add_membership(
        self,
        db,
        *,
        user_id: str,
        company_id: str,
        company_role: str = "VIEWER",
        is_company_admin: bool = False,
        is_active: bool = True,
    ) -> str:
        membership_id = uuid.uuid4().hex
        self.write(
            db,
            """
            INSERT INTO company_users (id, user_id, company_id, company_role, is_company_admin, is_active, created_at)
            VALUES (?, ?, ?, ?, ?, ?, ?)
            """,
            (
                membership_id,
                user_id,
                company_id,
                company_role,
                1 if is_company_admin else 0,
                1 if is_active else 0,
                to_iso(utc_now()),
            ),
        )
        return membership_id

    def set_membership_active(self, db, membership_id: str, is_active: bool) -> None:
        self.write(db, "UPDATE company_users SET is_active = ? WHERE id = ?", (1 if is_active else 0, membership_id))

    def get_memberships(self, db, user_id: str) -> List[CompanyMembership]:
        rows = db.execute(
            _MEMBERSHIP_SELECT + " WHERE cu.user_id = ? ORDER BY cu.created_at, cu.id",
            (user_id,),
        ).fetchall()
        return [self._membership(db, row) for row in rows]

    def get_membership(self, db, user_id: str, company_id: str) -> CompanyMembership | None:
        row = db.execute(
            _MEMBERSHIP_SELECT + " WHERE cu.user_id = ? AND cu.company_id = ?",
            (user_id, company_id),
        ).fetchone()
        return self._membership(db, row) if row else None

    def list_overrides(self, db, membership_id: str) -> List[PermissionOverride]:
        rows = db.execute(
            """
            SELECT permission, granted
            FROM company_user_permissions
            WHERE company_user_id = ?
            ORDER BY updated_at, permission
            """,
            (membership_id,),
        ).fetchall()
        return [PermissionOverride(permission=str(row["permission"]), granted=bool(row["granted"])) for row in rows]

    def upsert_override(self, db, *, membership_id: str, permission: str, granted: bool) -> None:
        self.write(
            db,
            """
            INSERT INTO company_user_permissions (id, company_user_id, permission, granted, updated_at)
            VALUES (?, ?, ?, ?, ?)
            ON CONFLICT (company_user_id, permission)
            DO UPDATE SET granted = excluded.granted, updated_at = excluded.updated_at
            """,
            (uuid.uuid4().hex, membership_id, permission, 1 if granted else 0, to_iso(utc_now())),
        )

    def delete_override(self, db, *, membership_id: str, permission: str) -> int:
        cursor = self.write(
            db,
            "DELETE FROM company_user_permissions WHERE company_user_id = ? AND permission = ?",
            (membership_id, permission),
        )
        return int(cursor.rowcount or 0)

    def clear_overrides(self, db, *, membership_id: str) -> int:
        cursor = self.write(
            db,
            "DELETE FROM company_user_permissions WHERE company_user_id = ?",
            (membership_id,),
        )
        return int(cursor.rowcount or 0)

    def _membership(self, db, row) -> CompanyMembership:
        membership_id = str(row["id"])
        return CompanyMembership(
            id=membership_id,
            user_id=str(row["user_id"]),
            company_id=str(row["company_id"]),
            company_type=str(row["company_type"]),
            company_role=str(row["company_role"]),
            is_company_admin=bool(row["is_company_admin"]),
            is_active=bool(row["is_active"]),
            user_name=str(row["user_name"] or ""),
            overrides=self.list_overrides(db, membership_id),
        )
