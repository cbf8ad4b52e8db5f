"""FollowUp model.

A scheduled task assigned by an admin to a sales user to re-contact a
prospect. Status rules (enforced in follow_up_service):
  - completed: stamps completed_at and closes the prospect as "done"
  - rescheduled: stored as "pending" with the new scheduled_at
"""

import uuid
from datetime import datetime, timezone

from salestrack.extensions import db
from salestrack.utils import isoformat


class FollowUp(db.Model):
    __tablename__ = "follow_ups"

    # -- Valid statuses --
    STATUSES = ["pending", "in_progress", "completed", "rescheduled"]

    # -- Statuses counted as outstanding work --
    OPEN_STATUSES = ["pending", "in_progress"]

    id = db.Column(
        db.String(36), primary_key=True, default=lambda: str(uuid.uuid4())
    )
    prospect_id = db.Column(
        db.String(36),
        db.ForeignKey("prospects.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    assigned_by = db.Column(
        db.String(36),
        db.ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
    )
    assigned_to = db.Column(
        db.String(36),
        db.ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    scheduled_at = db.Column(db.DateTime(timezone=True), nullable=False)
    status = db.Column(
        db.String(50), default="pending", nullable=False, index=True
    )  # pending | in_progress | completed | rescheduled
    notes = db.Column(db.Text, nullable=False, default="")
    completed_at = db.Column(db.DateTime(timezone=True), nullable=True)
    created_at = db.Column(
        db.DateTime(timezone=True), server_default=db.func.now(), index=True
    )
    updated_at = db.Column(
        db.DateTime(timezone=True),
        server_default=db.func.now(),
        onupdate=db.func.now(),
    )

    # --- Relationships ---
    prospect = db.relationship("Prospect", back_populates="follow_ups")
    assigner = db.relationship(
        "User",
        foreign_keys=[assigned_by],
        back_populates="created_follow_ups",
    )
    assignee = db.relationship(
        "User",
        foreign_keys=[assigned_to],
        back_populates="assigned_follow_ups",
    )

    @property
    def is_overdue(self):
        if self.status == "completed" or self.scheduled_at is None:
            return False
        scheduled = self.scheduled_at
        if scheduled.tzinfo is None:
            # SQLite hands back naive values; they were stored as UTC
            scheduled = scheduled.replace(tzinfo=timezone.utc)
        return scheduled < datetime.now(timezone.utc)

    def to_dict(self):
        return {
            "id": self.id,
            "prospect_id": self.prospect_id,
            "assigned_by": self.assigned_by,
            "assigned_to": self.assigned_to,
            "scheduled_date": isoformat(self.scheduled_at),
            "status": self.status,
            "notes": self.notes,
            "completed_at": isoformat(self.completed_at),
            "created_at": isoformat(self.created_at),
            "updated_at": isoformat(self.updated_at),
        }

    def __repr__(self):
        return f"<FollowUp prospect={self.prospect_id} ({self.status})>"
