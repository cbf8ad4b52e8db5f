"""Notification model.

In-app notifications polled by the dashboard badge. Rows are written in
the same transaction as the event that triggers them (new prospect,
follow-up assigned, follow-up updated). No delivery guarantee.
"""

import uuid

from salestrack.extensions import db
from salestrack.utils import isoformat


class Notification(db.Model):
    __tablename__ = "notifications"

    TYPES = ["new_prospect", "follow_up_assigned", "follow_up_updated"]
    REFERENCE_TYPES = ["prospect", "follow_up"]

    id = db.Column(
        db.String(36), primary_key=True, default=lambda: str(uuid.uuid4())
    )
    user_id = db.Column(
        db.String(36),
        db.ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    type = db.Column(db.String(50), nullable=False)
    title = db.Column(db.String(255), nullable=False)
    message = db.Column(db.Text, nullable=False)
    reference_id = db.Column(db.String(36), nullable=True)
    reference_type = db.Column(db.String(50), nullable=True)  # prospect | follow_up
    is_read = db.Column(db.Boolean, default=False, nullable=False)
    created_at = db.Column(
        db.DateTime(timezone=True), server_default=db.func.now(), index=True
    )

    # --- Relationships ---
    user = db.relationship("User", back_populates="notifications")

    def to_dict(self):
        return {
            "id": self.id,
            "user_id": self.user_id,
            "type": self.type,
            "title": self.title,
            "message": self.message,
            "reference_id": self.reference_id,
            "reference_type": self.reference_type,
            "is_read": bool(self.is_read),
            "created_at": isoformat(self.created_at),
        }

    def __repr__(self):
        return f"<Notification {self.type} -> {self.user_id}>"
