"""Auth blueprint: /auth/*

JSON login / logout / session lookup for the single-page frontend.
Sessions are Flask-Login cookie sessions with a fixed lifetime
(PERMANENT_SESSION_LIFETIME); "remember me" uses Flask-Login's signed
remember cookie, so credentials never leave the server.
"""

import logging

from flask import Blueprint, jsonify, request, session
from flask_login import current_user, login_user, logout_user
from flask_wtf.csrf import generate_csrf
from werkzeug.security import check_password_hash

from salestrack.extensions import limiter
from salestrack.services import profile_service

auth_bp = Blueprint("auth", __name__, url_prefix="/auth")

logger = logging.getLogger(__name__)

# Same message whether the account is unknown or the password is wrong
INVALID_CREDENTIALS = "Invalid credentials."


# ──────────────────────────────────────────────
# POST /auth/login
# ──────────────────────────────────────────────

@auth_bp.route("/login", methods=["POST"])
@limiter.limit("15 per minute")
def login():
    """Email-or-username + password login.

    Expects: { identifier (or email), password, remember (optional) }
    Returns: { user: {id, email}, profile: {...} }
    """
    data = request.get_json(silent=True) or {}
    identifier = data.get("identifier") or data.get("email") or ""
    password = data.get("password") or ""
    if not isinstance(identifier, str) or not isinstance(password, str):
        return jsonify(message="Email and password must be text."), 400
    identifier = identifier.strip()
    remember = bool(data.get("remember"))

    if not identifier or not password:
        return jsonify(message="Email and password are required."), 400

    user = profile_service.find_user_by_identifier(identifier)

    if user is None or not check_password_hash(user.password_hash, password):
        logger.info(f"Failed login for '{identifier}'")
        return jsonify(message=INVALID_CREDENTIALS), 401

    session.permanent = True
    login_user(user, remember=remember)
    logger.info(f"User logged in: {user.email}")

    return jsonify(user.to_session_dict()), 200


# ──────────────────────────────────────────────
# POST /auth/logout
# ──────────────────────────────────────────────

@auth_bp.route("/logout", methods=["POST"])
def logout():
    """Log out (no-op when not logged in)."""
    logout_user()
    return "", 204


# ──────────────────────────────────────────────
# GET /auth/session
# ──────────────────────────────────────────────

@auth_bp.route("/session", methods=["GET"])
def current_session():
    """Current user + profile, or null when not logged in."""
    if not current_user.is_authenticated:
        return jsonify(None), 200
    return jsonify(current_user.to_session_dict()), 200


# ──────────────────────────────────────────────
# GET /auth/csrf
# ──────────────────────────────────────────────

@auth_bp.route("/csrf", methods=["GET"])
def csrf_token():
    """CSRF token for the SPA to send back in the X-CSRFToken header."""
    return jsonify(csrf_token=generate_csrf()), 200
