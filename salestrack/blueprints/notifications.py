"""Notifications blueprint: /notifications/*

Backs the polling notification badge. Users only ever read or change
their own notifications.

Route Map:
  GET  /notifications                - Latest for the caller (?userId, limit)
  GET  /notifications/unread-count   - { count } for the badge
  POST /notifications                - Create one or many
  POST /notifications/<id>/read      - Mark one read
  POST /notifications/read-all       - Mark all of the caller's read
"""

from flask import Blueprint, abort, jsonify, request
from flask_login import current_user, login_required

from salestrack.extensions import db
from salestrack.models.notification import Notification
from salestrack.services import notification_service

notifications_bp = Blueprint("notifications", __name__, url_prefix="/notifications")


def _own_user_id(requested):
    """The caller's id; asking for someone else's notifications is a 403."""
    if requested and requested != current_user.id:
        abort(403)
    return current_user.id


@notifications_bp.route("", methods=["GET"])
@login_required
def notification_list():
    user_id = _own_user_id(request.args.get("userId"))
    try:
        notifications = notification_service.list_for_user(
            user_id, limit=request.args.get("limit")
        )
    except ValueError as e:
        return jsonify(message=str(e)), 400
    return jsonify([n.to_dict() for n in notifications]), 200


@notifications_bp.route("/unread-count", methods=["GET"])
@login_required
def notification_unread_count():
    return jsonify(count=notification_service.unread_count(current_user.id)), 200


@notifications_bp.route("", methods=["POST"])
@login_required
def notification_create():
    """Accepts a single notification object or a list of them."""
    payload = request.get_json(silent=True)
    try:
        created = notification_service.create_notifications(payload)
    except ValueError as e:
        db.session.rollback()
        return jsonify(message=str(e)), 400

    db.session.commit()
    return jsonify([n.to_dict() for n in created]), 201


@notifications_bp.route("/<notification_id>/read", methods=["POST"])
@login_required
def notification_mark_read(notification_id):
    notification = db.session.get(Notification, notification_id)
    if notification is None:
        return jsonify(message="Notification not found."), 404
    if notification.user_id != current_user.id:
        abort(403)

    notification_service.mark_read(notification)
    db.session.commit()
    return "", 204


@notifications_bp.route("/read-all", methods=["POST"])
@login_required
def notification_mark_all_read():
    data = request.get_json(silent=True) or {}
    user_id = _own_user_id(data.get("user_id"))

    notification_service.mark_all_read(user_id)
    db.session.commit()
    return "", 204
