"""Follow-up service: assignment, status rules, joined listings.

Status rules applied on update:
  - completed   -> completed_at stamped, parent prospect moved to "done"
  - rescheduled -> new scheduled_at required, stored back as "pending"

Creating a follow-up moves its prospect to "in_follow_up" and notifies the
assignee; updating one notifies the admin who assigned it. Each of these
multi-row writes happens inside the caller's single transaction.

Functions flush but do NOT commit; the caller commits.
"""

import logging
from datetime import datetime, timezone

from sqlalchemy.orm import aliased

from salestrack.extensions import db
from salestrack.models.follow_up import FollowUp
from salestrack.models.prospect import Prospect
from salestrack.models.user import Profile
from salestrack.services import notification_service
from salestrack.utils import apply_date_bounds, parse_datetime, sanitize

logger = logging.getLogger(__name__)

UPDATABLE_FIELDS = ["status", "notes", "scheduled_date", "assigned_to"]


def _check_status(status):
    if status not in FollowUp.STATUSES:
        raise ValueError(
            f"Invalid status '{status}'. Must be one of: {', '.join(FollowUp.STATUSES)}"
        )


def _check_assignee(user_id):
    assignee = db.session.get(Profile, user_id) if user_id else None
    if assignee is None:
        raise ValueError("Assignee user not found.")
    if assignee.role != "sales":
        raise ValueError("Follow-ups can only be assigned to sales users.")
    return assignee


def create_follow_up(actor_user_id, prospect_id, assigned_to, scheduled_date, notes=None):
    """Assign a follow-up for a prospect to a sales user.

    Args:
        actor_user_id: Admin creating the assignment (stored as assigned_by).
        prospect_id: Prospect UUID string.
        assigned_to: Sales user UUID string.
        scheduled_date: ISO date/datetime string.
        notes: Optional instructions (sanitized).

    Returns:
        Tuple of (follow_up, prospect, assigner_profile, assignee_profile).

    Raises:
        ValueError: If a referenced row is missing or input is invalid.
    """
    if not prospect_id or not assigned_to or not scheduled_date:
        raise ValueError("Prospect, assignee and scheduled date are required.")

    prospect = db.session.get(Prospect, prospect_id)
    if prospect is None:
        raise ValueError("Prospect not found.")

    assigner = db.session.get(Profile, actor_user_id)
    if assigner is None:
        raise ValueError("Assigning user not found.")
    assignee = _check_assignee(assigned_to)

    scheduled_at = parse_datetime(scheduled_date, "scheduled date")

    follow_up = FollowUp(
        prospect_id=prospect.id,
        assigned_by=assigner.id,
        assigned_to=assignee.id,
        scheduled_at=scheduled_at,
        status="pending",
        notes=sanitize(notes) or "",
    )
    db.session.add(follow_up)

    if prospect.status == "awaiting_follow_up":
        prospect.status = "in_follow_up"

    db.session.flush()

    notification_service.notify_users(
        [assignee.id],
        type="follow_up_assigned",
        title="New Follow-Up",
        message=f"You have been assigned to follow up prospect: {prospect.name}",
        reference_id=follow_up.id,
        reference_type="follow_up",
    )

    logger.info(
        f"Follow-up {follow_up.id} assigned to {assignee.email} "
        f"for prospect {prospect.name}"
    )
    return follow_up, prospect, assigner, assignee


def update_follow_up(follow_up, data, actor):
    """Apply a partial update and the completion / reschedule rules.

    Args:
        follow_up: The FollowUp to update.
        data: Dict from the request body.
        actor: The logged-in User.

    Returns:
        True if this update moved the follow-up to "completed".

    Raises:
        ValueError: If nothing updatable was supplied or a value is invalid.
    """
    present = [f for f in UPDATABLE_FIELDS if data.get(f) is not None]
    if not present:
        raise ValueError("Nothing to update.")

    was_completed = follow_up.status == "completed"

    if "notes" in present:
        follow_up.notes = sanitize(data["notes"]) or ""

    if "assigned_to" in present and data["assigned_to"] != follow_up.assigned_to:
        if actor.role != "admin":
            raise ValueError("Only administrators can reassign follow-ups.")
        follow_up.assigned_to = _check_assignee(data["assigned_to"]).id

    new_status = data.get("status")
    if new_status is not None:
        _check_status(new_status)

    if new_status == "rescheduled":
        if not data.get("scheduled_date"):
            raise ValueError("A new scheduled date is required to reschedule.")
        follow_up.scheduled_at = parse_datetime(data["scheduled_date"], "scheduled date")
        follow_up.status = "pending"
        follow_up.completed_at = None
    else:
        if "scheduled_date" in present:
            follow_up.scheduled_at = parse_datetime(data["scheduled_date"], "scheduled date")
        if new_status is not None:
            follow_up.status = new_status
            if new_status == "completed":
                if not was_completed:
                    follow_up.completed_at = datetime.now(timezone.utc)
                follow_up.prospect.status = "done"
            else:
                follow_up.completed_at = None

    db.session.flush()

    if follow_up.assigned_by != actor.id:
        actor_name = actor.profile.full_name if actor.profile else actor.email
        notification_service.notify_users(
            [follow_up.assigned_by],
            type="follow_up_updated",
            title="Follow-Up Updated",
            message=(
                f"{actor_name} updated the follow-up for prospect: "
                f"{follow_up.prospect.name}"
            ),
            reference_id=follow_up.id,
            reference_type="follow_up",
        )

    became_completed = follow_up.status == "completed" and not was_completed
    if became_completed:
        logger.info(
            f"Follow-up {follow_up.id} completed; prospect "
            f"{follow_up.prospect_id} marked done"
        )
    return became_completed


def delete_follow_up(follow_up):
    follow_up_id = follow_up.id
    db.session.delete(follow_up)
    db.session.flush()
    logger.info(f"Follow-up deleted: {follow_up_id}")


# ──────────────────────────────────────────────
# Joined listings
# ──────────────────────────────────────────────

def _joined_query():
    """follow_ups JOIN prospects JOIN profiles (twice: assigner, assignee)."""
    by_profile = aliased(Profile, name="assigned_by_profile")
    to_profile = aliased(Profile, name="assigned_to_profile")
    query = (
        db.session.query(FollowUp, Prospect, by_profile, to_profile)
        .join(Prospect, Prospect.id == FollowUp.prospect_id)
        .join(by_profile, by_profile.id == FollowUp.assigned_by)
        .join(to_profile, to_profile.id == FollowUp.assigned_to)
    )
    return query


def serialize_row(follow_up, prospect, assigned_by, assigned_to):
    """Flatten one joined row into the nested shape the UI consumes."""
    row = follow_up.to_dict()
    row["is_overdue"] = follow_up.is_overdue
    row["prospect"] = prospect.to_dict()
    row["assigned_by_profile"] = assigned_by.to_summary()
    row["assigned_to_profile"] = assigned_to.to_summary()
    return row


def list_follow_ups(assigned_to=None, start_date=None, end_date=None, status=None):
    """Joined follow-up rows matching the filters, soonest schedule first."""
    query = _joined_query()
    if assigned_to:
        query = query.filter(FollowUp.assigned_to == assigned_to)
    if status:
        _check_status(status)
        query = query.filter(FollowUp.status == status)
    query = apply_date_bounds(query, FollowUp.created_at, start_date, end_date)
    rows = query.order_by(FollowUp.scheduled_at.asc()).all()
    return [serialize_row(*row) for row in rows]


def get_follow_up_row(follow_up_id):
    """Single joined row, or None."""
    row = _joined_query().filter(FollowUp.id == follow_up_id).first()
    return serialize_row(*row) if row else None
