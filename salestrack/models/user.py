"""User + Profile models.

- User: credential row (email + password hash). Flask-Login identity.
- Profile: application-level record (name, role, contact details) sharing
  the user's id. Both rows are created and updated together in one
  transaction by profile_service.

Deleting a User cascades to its profile, owned prospects, follow-ups it
assigned or was assigned, and its notifications.
"""

import uuid

from flask_login import UserMixin

from salestrack.extensions import db
from salestrack.utils import isoformat


class User(UserMixin, db.Model):
    __tablename__ = "users"

    id = db.Column(
        db.String(36), primary_key=True, default=lambda: str(uuid.uuid4())
    )
    email = db.Column(db.String(255), unique=True, nullable=False)
    password_hash = db.Column(db.String(255), nullable=False)
    created_at = db.Column(
        db.DateTime(timezone=True), server_default=db.func.now()
    )

    # --- Relationships ---
    profile = db.relationship(
        "Profile",
        back_populates="user",
        uselist=False,
        cascade="all, delete-orphan",
    )
    prospects = db.relationship(
        "Prospect",
        back_populates="sales",
        cascade="all, delete",
    )
    assigned_follow_ups = db.relationship(
        "FollowUp",
        foreign_keys="FollowUp.assigned_to",
        back_populates="assignee",
        cascade="all, delete",
    )
    created_follow_ups = db.relationship(
        "FollowUp",
        foreign_keys="FollowUp.assigned_by",
        back_populates="assigner",
        cascade="all, delete",
    )
    notifications = db.relationship(
        "Notification",
        back_populates="user",
        cascade="all, delete",
    )

    @property
    def role(self):
        return self.profile.role if self.profile else None

    @property
    def is_admin(self):
        return self.role == "admin"

    def to_session_dict(self):
        """Shape returned by login and /auth/session."""
        return {
            "user": {"id": self.id, "email": self.email},
            "profile": self.profile.to_dict() if self.profile else None,
        }

    def __repr__(self):
        return f"<User {self.email}>"


class Profile(db.Model):
    __tablename__ = "profiles"

    ROLES = ["admin", "sales"]

    id = db.Column(
        db.String(36),
        db.ForeignKey("users.id", ondelete="CASCADE"),
        primary_key=True,
    )
    email = db.Column(db.String(255), unique=True, nullable=False)
    username = db.Column(db.String(100), unique=True, nullable=True)
    phone = db.Column(db.String(50), nullable=True)
    full_name = db.Column(db.String(255), nullable=False)
    role = db.Column(db.String(20), nullable=False, default="sales")  # admin | sales
    photo_url = db.Column(db.String(1000), nullable=True)
    created_at = db.Column(
        db.DateTime(timezone=True), server_default=db.func.now()
    )
    updated_at = db.Column(
        db.DateTime(timezone=True),
        server_default=db.func.now(),
        onupdate=db.func.now(),
    )

    # --- Relationships ---
    user = db.relationship("User", back_populates="profile")

    def to_dict(self):
        return {
            "id": self.id,
            "email": self.email,
            "username": self.username,
            "phone": self.phone,
            "full_name": self.full_name,
            "role": self.role,
            "photo_url": self.photo_url,
            "created_at": isoformat(self.created_at),
            "updated_at": isoformat(self.updated_at),
        }

    def to_summary(self):
        """Compact form nested inside prospect / follow-up payloads."""
        return {
            "id": self.id,
            "full_name": self.full_name,
            "email": self.email,
            "role": self.role,
        }

    def __repr__(self):
        return f"<Profile {self.email} ({self.role})>"
