"""Notification service: in-app notification rows for the dashboard badge.

Notifications are written inside the same transaction as the event that
triggers them (see prospect_service / follow_up_service), so a failed
prospect or follow-up write never leaves an orphan notification behind
and vice versa.

Functions flush but do NOT commit; the caller commits.
"""

import logging

from salestrack.extensions import db
from salestrack.models.notification import Notification
from salestrack.models.user import User
from salestrack.utils import sanitize

logger = logging.getLogger(__name__)

DEFAULT_LIMIT = 20
MAX_LIMIT = 100


def create_notification(user_id, type, title, message, reference_id=None,
                        reference_type=None, is_read=False):
    """Insert a single notification row.

    Raises:
        ValueError: If a required field is missing or a type is unknown.
    """
    title = sanitize(title)
    message = sanitize(message)

    if not user_id:
        raise ValueError("Notification recipient (user_id) is required.")
    if type not in Notification.TYPES:
        raise ValueError(
            f"Invalid notification type '{type}'. "
            f"Must be one of: {', '.join(Notification.TYPES)}"
        )
    if reference_type and reference_type not in Notification.REFERENCE_TYPES:
        raise ValueError(
            f"Invalid reference type '{reference_type}'. "
            f"Must be one of: {', '.join(Notification.REFERENCE_TYPES)}"
        )
    if not title:
        raise ValueError("Notification title is required.")
    if not message:
        raise ValueError("Notification message is required.")

    notification = Notification(
        user_id=user_id,
        type=type,
        title=title,
        message=message,
        reference_id=reference_id,
        reference_type=reference_type,
        is_read=bool(is_read),
    )
    db.session.add(notification)
    return notification


def create_notifications(payload):
    """Bulk insert from an API payload (a single dict or a list of dicts).

    Every recipient must exist. Nothing is written if any item is invalid.

    Returns:
        List of created Notification objects.

    Raises:
        ValueError: On an empty payload or any invalid item.
    """
    items = payload if isinstance(payload, list) else [payload]
    items = [item for item in items if item]
    if not items:
        raise ValueError("Notification payload is empty.")

    for item in items:
        if not isinstance(item, dict):
            raise ValueError("Each notification must be an object.")

    recipient_ids = {item.get("user_id") for item in items if item.get("user_id")}
    known = {
        user_id for (user_id,) in
        db.session.query(User.id).filter(User.id.in_(recipient_ids)).all()
    }

    created = []
    for item in items:
        user_id = item.get("user_id")
        if user_id and user_id not in known:
            raise ValueError(f"User {user_id} not found.")
        created.append(create_notification(
            user_id=user_id,
            type=item.get("type"),
            title=item.get("title"),
            message=item.get("message"),
            reference_id=item.get("reference_id"),
            reference_type=item.get("reference_type"),
            is_read=item.get("is_read", False),
        ))

    db.session.flush()
    return created


def notify_users(user_ids, type, title, message, reference_id, reference_type):
    """Fan one event out to several recipients (one row each)."""
    created = [
        create_notification(
            user_id=user_id,
            type=type,
            title=title,
            message=message,
            reference_id=reference_id,
            reference_type=reference_type,
        )
        for user_id in user_ids
    ]
    db.session.flush()
    logger.info(f"Notification {type} fanned out to {len(created)} user(s)")
    return created


def list_for_user(user_id, limit=None):
    """Most recent notifications for a user, newest first."""
    if limit is None:
        limit = DEFAULT_LIMIT
    try:
        limit = int(limit)
    except (TypeError, ValueError):
        raise ValueError("limit must be a number.")
    if limit < 1:
        raise ValueError("limit must be at least 1.")
    limit = min(limit, MAX_LIMIT)

    return (
        Notification.query
        .filter_by(user_id=user_id)
        .order_by(Notification.created_at.desc(), Notification.id.desc())
        .limit(limit)
        .all()
    )


def unread_count(user_id):
    return Notification.query.filter_by(user_id=user_id, is_read=False).count()


def mark_read(notification):
    notification.is_read = True
    db.session.flush()
    return notification


def mark_all_read(user_id):
    """Mark every unread notification for the user as read.

    Returns:
        Number of rows updated.
    """
    updated = (
        Notification.query
        .filter_by(user_id=user_id, is_read=False)
        .update({Notification.is_read: True}, synchronize_session=False)
    )
    db.session.flush()
    return updated
