"""Follow-ups blueprint: /follow-ups/*

Route Map:
  GET    /follow-ups               - Joined list (?assignedTo, startDate, endDate, status)
  GET    /follow-ups/<id>          - Joined detail
  POST   /follow-ups               - Assign follow-up (admin)
  PUT    /follow-ups/<id>          - Update status / notes / schedule
  DELETE /follow-ups/<id>          - Delete (admin)

Sales users only see and update follow-ups assigned to them.
"""

from flask import Blueprint, abort, jsonify, request
from flask_login import current_user, login_required

from salestrack.decorators import admin_required
from salestrack.extensions import db
from salestrack.models.follow_up import FollowUp
from salestrack.models.user import Profile
from salestrack.services import follow_up_service
from salestrack.services.email_service import (
    send_follow_up_assigned_email,
    send_follow_up_completed_email,
)

follow_ups_bp = Blueprint("follow_ups", __name__, url_prefix="/follow-ups")


def _get_visible_or_abort(follow_up_id):
    follow_up = db.session.get(FollowUp, follow_up_id)
    if follow_up is None:
        return None
    if not current_user.is_admin and follow_up.assigned_to != current_user.id:
        abort(403)
    return follow_up


@follow_ups_bp.route("", methods=["GET"])
@login_required
def follow_up_list():
    assigned_to = request.args.get("assignedTo") or None
    if not current_user.is_admin:
        assigned_to = current_user.id

    try:
        rows = follow_up_service.list_follow_ups(
            assigned_to=assigned_to,
            start_date=request.args.get("startDate"),
            end_date=request.args.get("endDate"),
            status=request.args.get("status") or None,
        )
    except ValueError as e:
        return jsonify(message=str(e)), 400
    return jsonify(rows), 200


@follow_ups_bp.route("/<follow_up_id>", methods=["GET"])
@login_required
def follow_up_detail(follow_up_id):
    if _get_visible_or_abort(follow_up_id) is None:
        return jsonify(message="Follow-up not found."), 404
    return jsonify(follow_up_service.get_follow_up_row(follow_up_id)), 200


@follow_ups_bp.route("", methods=["POST"])
@admin_required
def follow_up_create():
    """Assign a follow-up.

    Expects: { prospect_id, assigned_to, scheduled_date, notes? }
    The prospect moves to in_follow_up and the assignee is notified, all in
    one transaction.
    """
    data = request.get_json(silent=True) or {}
    try:
        follow_up, prospect, assigner, assignee = follow_up_service.create_follow_up(
            actor_user_id=current_user.id,
            prospect_id=data.get("prospect_id"),
            assigned_to=data.get("assigned_to"),
            scheduled_date=data.get("scheduled_date"),
            notes=data.get("notes"),
        )
    except ValueError as e:
        db.session.rollback()
        return jsonify(message=str(e)), 400

    db.session.commit()

    send_follow_up_assigned_email(follow_up, prospect, assigner, assignee)

    return jsonify(follow_up.to_dict()), 201


@follow_ups_bp.route("/<follow_up_id>", methods=["PUT"])
@login_required
def follow_up_update(follow_up_id):
    """Partial update.

    status=completed also closes the prospect as done; status=rescheduled
    needs scheduled_date and is stored as pending.
    """
    follow_up = _get_visible_or_abort(follow_up_id)
    if follow_up is None:
        return jsonify(message="Follow-up not found."), 404

    data = request.get_json(silent=True) or {}
    try:
        became_completed = follow_up_service.update_follow_up(
            follow_up, data, actor=current_user
        )
    except ValueError as e:
        db.session.rollback()
        return jsonify(message=str(e)), 400

    db.session.commit()

    if became_completed:
        send_follow_up_completed_email(
            follow_up,
            follow_up.prospect,
            db.session.get(Profile, follow_up.assigned_by),
            db.session.get(Profile, follow_up.assigned_to),
        )

    return jsonify(follow_up.to_dict()), 200


@follow_ups_bp.route("/<follow_up_id>", methods=["DELETE"])
@admin_required
def follow_up_delete(follow_up_id):
    follow_up = db.session.get(FollowUp, follow_up_id)
    if follow_up is None:
        return jsonify(message="Follow-up not found."), 404

    follow_up_service.delete_follow_up(follow_up)
    db.session.commit()
    return "", 204
