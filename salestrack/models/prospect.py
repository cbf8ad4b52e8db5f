"""Prospect model.

A lead registered by (and owned by) one sales user.
Pipeline: awaiting_follow_up -> in_follow_up -> done | closed
"""

import uuid

from salestrack.extensions import db
from salestrack.utils import isoformat


class Prospect(db.Model):
    __tablename__ = "prospects"

    # -- Valid statuses for pipeline tracking --
    STATUSES = [
        "awaiting_follow_up",
        "in_follow_up",
        "done",
        "closed",
    ]

    id = db.Column(
        db.String(36), primary_key=True, default=lambda: str(uuid.uuid4())
    )
    name = db.Column(db.String(255), nullable=False)
    phone = db.Column(db.String(50), nullable=False)
    address = db.Column(db.Text, nullable=False)
    need = db.Column(db.Text, nullable=False)  # what the customer is looking for
    status = db.Column(
        db.String(50), default="awaiting_follow_up", nullable=False, index=True
    )
    sales_id = db.Column(
        db.String(36),
        db.ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    created_at = db.Column(
        db.DateTime(timezone=True), server_default=db.func.now(), index=True
    )
    updated_at = db.Column(
        db.DateTime(timezone=True),
        server_default=db.func.now(),
        onupdate=db.func.now(),
    )

    # --- Relationships ---
    sales = db.relationship("User", back_populates="prospects")
    follow_ups = db.relationship(
        "FollowUp",
        back_populates="prospect",
        cascade="all, delete",
        order_by="FollowUp.scheduled_at",
    )

    def to_dict(self):
        return {
            "id": self.id,
            "name": self.name,
            "phone": self.phone,
            "address": self.address,
            "need": self.need,
            "status": self.status,
            "sales_id": self.sales_id,
            "created_at": isoformat(self.created_at),
            "updated_at": isoformat(self.updated_at),
        }

    def __repr__(self):
        return f"<Prospect {self.name} ({self.status})>"
