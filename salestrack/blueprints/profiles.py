"""Profiles blueprint: /profiles/*

User management (admin) and self-service profile edits.

Route Map:
  GET    /profiles                 - List profiles (?role=admin|sales)
  GET    /profiles/<id>            - Profile detail
  POST   /profiles                 - Create user + profile (admin)
  PUT    /profiles/<id>            - Partial update (self or admin)
  POST   /profiles/<id>/photo      - Upload profile photo (self or admin)
  DELETE /profiles/<id>            - Delete user and dependents (admin)
"""

from flask import Blueprint, jsonify, request
from flask_login import current_user, login_required

from salestrack.decorators import admin_required, self_or_admin_required
from salestrack.extensions import db
from salestrack.models.user import Profile
from salestrack.services import profile_service, storage_service

profiles_bp = Blueprint("profiles", __name__, url_prefix="/profiles")


@profiles_bp.route("", methods=["GET"])
@login_required
def profile_list():
    role = request.args.get("role") or None
    try:
        profiles = profile_service.list_profiles(role=role)
    except ValueError as e:
        return jsonify(message=str(e)), 400
    return jsonify([p.to_dict() for p in profiles]), 200


@profiles_bp.route("/<profile_id>", methods=["GET"])
@login_required
def profile_detail(profile_id):
    profile = db.session.get(Profile, profile_id)
    if profile is None:
        return jsonify(message="User not found."), 404
    return jsonify(profile.to_dict()), 200


@profiles_bp.route("", methods=["POST"])
@admin_required
def profile_create():
    """Create a user + profile in one transaction.

    Expects: { full_name, email, password, role, username?, phone? }
    """
    data = request.get_json(silent=True) or {}
    try:
        profile = profile_service.create_user(
            full_name=data.get("full_name"),
            email=data.get("email"),
            password=data.get("password"),
            role=data.get("role"),
            username=data.get("username"),
            phone=data.get("phone"),
        )
    except ValueError as e:
        db.session.rollback()
        return jsonify(message=str(e)), 400

    db.session.commit()
    return jsonify(profile.to_dict()), 201


@profiles_bp.route("/<profile_id>", methods=["PUT"])
@self_or_admin_required
def profile_update(profile_id):
    """Partial update; email/password changes touch the users row too."""
    profile = db.session.get(Profile, profile_id)
    if profile is None:
        return jsonify(message="User not found."), 404

    data = request.get_json(silent=True) or {}
    try:
        profile_service.update_profile(
            profile, data, allow_role_change=current_user.is_admin
        )
    except ValueError as e:
        db.session.rollback()
        return jsonify(message=str(e)), 400

    db.session.commit()
    return jsonify(profile.to_dict()), 200


@profiles_bp.route("/<profile_id>/photo", methods=["POST"])
@self_or_admin_required
def profile_photo(profile_id):
    """Multipart upload: field name `photo`."""
    profile = db.session.get(Profile, profile_id)
    if profile is None:
        return jsonify(message="User not found."), 404

    photo = request.files.get("photo")
    ok, error = storage_service.validate_photo(photo)
    if not ok:
        return jsonify(message=error), 400

    url = storage_service.upload_photo(photo, profile.id)
    profile_service.set_photo_url(profile, url)
    db.session.commit()
    return jsonify(profile.to_dict()), 200


@profiles_bp.route("/<profile_id>", methods=["DELETE"])
@admin_required
def profile_delete(profile_id):
    if db.session.get(Profile, profile_id) is None:
        return jsonify(message="User not found."), 404

    try:
        profile_service.delete_user(profile_id, actor_user_id=current_user.id)
    except ValueError as e:
        db.session.rollback()
        return jsonify(message=str(e)), 400

    db.session.commit()
    return "", 204
