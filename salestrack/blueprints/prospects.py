"""Prospects blueprint: /prospects/*

Route Map:
  GET    /prospects                - List (?salesId, startDate, endDate, status)
  GET    /prospects/with-sales     - List joined with owner profile (?salesId)
  GET    /prospects/<id>           - Detail with owner + follow-ups
  POST   /prospects                - Create (+ admin notifications, email)
  PUT    /prospects/<id>           - Partial update
  DELETE /prospects/<id>           - Delete with follow-ups (admin)

Sales users only ever see and edit their own prospects.
"""

from flask import Blueprint, abort, jsonify, request
from flask_login import current_user, login_required

from salestrack.decorators import admin_required
from salestrack.extensions import db
from salestrack.models.prospect import Prospect
from salestrack.models.user import Profile
from salestrack.services import prospect_service
from salestrack.services.email_service import send_new_prospect_email

prospects_bp = Blueprint("prospects", __name__, url_prefix="/prospects")


def _scoped_sales_id(requested):
    """Sales callers are pinned to their own id; admins may filter freely."""
    if current_user.is_admin:
        return requested or None
    return current_user.id


def _get_owned_or_abort(prospect_id):
    prospect = db.session.get(Prospect, prospect_id)
    if prospect is None:
        return None
    if not current_user.is_admin and prospect.sales_id != current_user.id:
        abort(403)
    return prospect


@prospects_bp.route("", methods=["GET"])
@login_required
def prospect_list():
    try:
        prospects = prospect_service.list_prospects(
            sales_id=_scoped_sales_id(request.args.get("salesId")),
            start_date=request.args.get("startDate"),
            end_date=request.args.get("endDate"),
            status=request.args.get("status") or None,
        )
    except ValueError as e:
        return jsonify(message=str(e)), 400
    return jsonify([p.to_dict() for p in prospects]), 200


@prospects_bp.route("/with-sales", methods=["GET"])
@login_required
def prospect_list_with_sales():
    rows = prospect_service.list_prospects_with_sales(
        sales_id=_scoped_sales_id(request.args.get("salesId")),
    )
    return jsonify(rows), 200


@prospects_bp.route("/<prospect_id>", methods=["GET"])
@login_required
def prospect_detail(prospect_id):
    prospect = _get_owned_or_abort(prospect_id)
    if prospect is None:
        return jsonify(message="Prospect not found."), 404
    return jsonify(prospect_service.prospect_detail(prospect)), 200


@prospects_bp.route("", methods=["POST"])
@login_required
def prospect_create():
    """Register a prospect; admins are notified in the same transaction.

    Expects: { name, phone, address, need, sales_id? (admin only), status? }
    """
    data = request.get_json(silent=True) or {}
    try:
        prospect, admins = prospect_service.create_prospect(
            actor=current_user,
            name=data.get("name"),
            phone=data.get("phone"),
            address=data.get("address"),
            need=data.get("need"),
            sales_id=data.get("sales_id"),
            status=data.get("status"),
        )
    except ValueError as e:
        db.session.rollback()
        return jsonify(message=str(e)), 400

    db.session.commit()

    send_new_prospect_email(
        prospect,
        db.session.get(Profile, prospect.sales_id),
        [admin.email for admin in admins],
    )

    return jsonify(prospect.to_dict()), 201


@prospects_bp.route("/<prospect_id>", methods=["PUT"])
@login_required
def prospect_update(prospect_id):
    """Update only the fields present in the body."""
    prospect = _get_owned_or_abort(prospect_id)
    if prospect is None:
        return jsonify(message="Prospect not found."), 404

    data = request.get_json(silent=True) or {}
    try:
        prospect_service.update_prospect(prospect, data, actor=current_user)
    except ValueError as e:
        db.session.rollback()
        return jsonify(message=str(e)), 400

    db.session.commit()
    return jsonify(prospect.to_dict()), 200


@prospects_bp.route("/<prospect_id>", methods=["DELETE"])
@admin_required
def prospect_delete(prospect_id):
    prospect = db.session.get(Prospect, prospect_id)
    if prospect is None:
        return jsonify(message="Prospect not found."), 404

    prospect_service.delete_prospect(prospect)
    db.session.commit()
    return "", 204
