"""Prospect service: CRUD, owner scoping, admin fan-out.

Creating a prospect also inserts one `new_prospect` notification per
admin in the same transaction. Listing supports the sales-owner, date range
and status filters used by the dashboard and reports.

Functions flush but do NOT commit; the caller commits.
"""

import logging

from salestrack.extensions import db
from salestrack.models.prospect import Prospect
from salestrack.models.user import Profile
from salestrack.services import notification_service, profile_service
from salestrack.utils import apply_date_bounds, sanitize

logger = logging.getLogger(__name__)

REQUIRED_FIELDS = ["name", "phone", "address", "need"]
UPDATABLE_FIELDS = ["name", "phone", "address", "need", "status", "sales_id"]


def _check_status(status):
    if status not in Prospect.STATUSES:
        raise ValueError(
            f"Invalid status '{status}'. Must be one of: {', '.join(Prospect.STATUSES)}"
        )


def _check_sales_owner(sales_id):
    owner = db.session.get(Profile, sales_id) if sales_id else None
    if owner is None:
        raise ValueError("Sales user not found.")
    if owner.role != "sales":
        raise ValueError("Prospects can only be owned by sales users.")
    return owner


def create_prospect(actor, name, phone, address, need, sales_id=None, status=None):
    """Register a new prospect and notify every admin.

    Args:
        actor: The logged-in User creating the prospect.
        name, phone, address, need: Prospect details (sanitized).
        sales_id: Owning sales user. Ignored for sales actors (they always
            own what they create); required for admin actors.
        status: Optional initial status, defaults to awaiting_follow_up.

    Returns:
        Tuple of (prospect, admin_profiles). Admins were notified in-app.

    Raises:
        ValueError: On missing fields, invalid status, or a bad owner.
    """
    values = {
        "name": sanitize(name),
        "phone": sanitize(phone),
        "address": sanitize(address),
        "need": sanitize(need),
    }
    missing = [field for field in REQUIRED_FIELDS if not values[field]]
    if missing:
        raise ValueError(f"Missing required fields: {', '.join(missing)}.")

    if actor.role == "sales":
        sales_id = actor.id
    owner = _check_sales_owner(sales_id)

    status = status or "awaiting_follow_up"
    _check_status(status)

    prospect = Prospect(sales_id=owner.id, status=status, **values)
    db.session.add(prospect)
    db.session.flush()

    admins = profile_service.admin_profiles()
    notification_service.notify_users(
        [admin.id for admin in admins],
        type="new_prospect",
        title="New Prospect",
        message=f"{owner.full_name} added a new prospect: {prospect.name}",
        reference_id=prospect.id,
        reference_type="prospect",
    )

    logger.info(f"Prospect created: {prospect.name} (sales={owner.email})")
    return prospect, admins


def update_prospect(prospect, data, actor):
    """Apply a partial update.

    Only fields present in `data` are written. Sales users cannot move a
    prospect to another owner.

    Raises:
        ValueError: If nothing updatable was supplied or a value is invalid.
    """
    present = [f for f in UPDATABLE_FIELDS if data.get(f) is not None]
    if not present:
        raise ValueError("Nothing to update.")

    for field in ("name", "phone", "address", "need"):
        if field in present:
            value = sanitize(data[field])
            if not value:
                raise ValueError(f"{field.capitalize()} cannot be empty.")
            setattr(prospect, field, value)

    if "status" in present:
        _check_status(data["status"])
        if data["status"] != prospect.status:
            logger.info(
                f"Prospect {prospect.id} status {prospect.status} -> {data['status']}"
            )
        prospect.status = data["status"]

    if "sales_id" in present and data["sales_id"] != prospect.sales_id:
        if actor.role != "admin":
            raise ValueError("Only administrators can reassign prospects.")
        owner = _check_sales_owner(data["sales_id"])
        prospect.sales_id = owner.id

    db.session.flush()
    return prospect


def delete_prospect(prospect):
    name = prospect.name
    db.session.delete(prospect)
    db.session.flush()
    logger.info(f"Prospect deleted: {name}")


def list_prospects(sales_id=None, start_date=None, end_date=None, status=None):
    """Prospects matching the given filters, newest first.

    Empty filters are ignored, mirroring how the dashboard omits unset
    query params.
    """
    query = Prospect.query
    if sales_id:
        query = query.filter(Prospect.sales_id == sales_id)
    if status:
        _check_status(status)
        query = query.filter(Prospect.status == status)
    query = apply_date_bounds(query, Prospect.created_at, start_date, end_date)
    return query.order_by(Prospect.created_at.desc(), Prospect.name.asc()).all()


def serialize_with_sales(prospect, sales_profile):
    row = prospect.to_dict()
    row["sales"] = sales_profile.to_summary() if sales_profile else None
    return row


def list_prospects_with_sales(sales_id=None):
    """Prospects joined to their owner's profile, flattened for the UI.

    Returns:
        List of dicts: prospect columns plus a nested `sales` object.
    """
    query = (
        db.session.query(Prospect, Profile)
        .join(Profile, Profile.id == Prospect.sales_id)
    )
    if sales_id:
        query = query.filter(Prospect.sales_id == sales_id)
    rows = query.order_by(Prospect.created_at.desc(), Prospect.name.asc()).all()
    return [serialize_with_sales(prospect, profile) for prospect, profile in rows]


def prospect_detail(prospect):
    """Prospect with owner and follow-up history."""
    sales_profile = db.session.get(Profile, prospect.sales_id)
    row = serialize_with_sales(prospect, sales_profile)
    row["follow_ups"] = [follow_up.to_dict() for follow_up in prospect.follow_ups]
    return row
