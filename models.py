"""Shared SQLAlchemy models: staff users, their roles and sync status codes."""

from flask_login import UserMixin

from extensions import db

ROLE_ADMIN = "admin"
ROLE_ORGANIZER = "organizer"
ROLE_ATTENDANCE = "attendance"
ALL_ROLES = (ROLE_ADMIN, ROLE_ORGANIZER, ROLE_ATTENDANCE)

# Status values written to every *_sync table
SYNC_STATUS_SYNCED = 1
SYNC_STATUS_ERROR = 2


class ADBUser(UserMixin, db.Model):
    """A staff member allowed to sign in."""

    __tablename__ = "adb_users"

    id = db.Column(db.Integer, primary_key=True)
    email = db.Column(db.String(255), unique=True, nullable=False)
    name = db.Column(db.String(255), nullable=False, default="")
    disabled = db.Column(db.Boolean, nullable=False, default=False)

    roles = db.relationship(
        "UserRole",
        back_populates="user",
        cascade="all, delete-orphan",
        lazy="selectin",
    )

    @property
    def is_active(self) -> bool:
        return not self.disabled

    @property
    def role_names(self) -> list[str]:
        return [r.role for r in self.roles]

    def to_json(self) -> dict:
        return {
            "id": self.id,
            "email": self.email,
            "name": self.name,
            "disabled": self.disabled,
            "roles": sorted(self.role_names),
        }

    def __repr__(self) -> str:  # pragma: no cover - debug helper
        return f"<ADBUser {self.email}>"


class UserRole(db.Model):
    __tablename__ = "users_roles"

    user_id = db.Column(db.Integer, db.ForeignKey("adb_users.id", ondelete="CASCADE"), primary_key=True)
    role = db.Column(db.String(50), primary_key=True)

    user = db.relationship("ADBUser", back_populates="roles")
