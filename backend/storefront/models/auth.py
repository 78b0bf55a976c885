from __future__ import annotations

from ..extensions import db
from ..time_utils import to_utc_z, utcnow


class Role(db.Model):
    """
    Named role. Permissions are derived from the name (see permissions/definitions.py),
    not stored per row.

    Names are unique case-insensitively; the service layer checks with lower()
    before writing and the unique constraint catches exact-case races.
    """
    __tablename__ = "roles"
    __table_args__ = (
        db.UniqueConstraint("name", name="uq_roles_name"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(64), nullable=False)
    description = db.Column(db.String(255), nullable=True)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
        }


class User(db.Model):
    """
    User accounts for authentication and attribution.

    WHY soft delete: orders, payments and reviews keep pointing at their author.
    Deactivated users cannot log in and drop out of default listings, but the
    row stays.
    """
    __tablename__ = "users"
    __table_args__ = (
        db.UniqueConstraint("username", name="uq_users_username"),
        db.Index("ix_users_role_id", "role_id"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    username = db.Column(db.String(50), nullable=False, index=True)

    # Bcrypt hashed password
    password_hash = db.Column(db.String(255), nullable=False)

    email = db.Column(db.String(255), nullable=True, index=True)
    phone = db.Column(db.String(20), nullable=True)

    role_id = db.Column(db.Integer, db.ForeignKey("roles.id"), nullable=True)

    is_active = db.Column(db.Boolean, nullable=False, default=True)

    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)
    updated_at = db.Column(db.DateTime, nullable=True)

    def to_dict(self, role: Role | None = None) -> dict:
        return {
            "id": self.id,
            "username": self.username,
            "email": self.email,
            "phone": self.phone,
            "roleId": self.role_id,
            "roleName": role.name if role else None,
            "isActive": self.is_active,
            "createdAt": to_utc_z(self.created_at),
            "updatedAt": to_utc_z(self.updated_at),
        }
