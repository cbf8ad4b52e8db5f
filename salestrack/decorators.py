"""
Custom route decorators for access control.

- admin_required: ensures user is logged in AND has the admin role.
- self_or_admin_required: the route's `profile_id` must be the caller's own
  id unless the caller is an admin.
"""

from functools import wraps

from flask import abort
from flask_login import current_user, login_required


def admin_required(f):
    """Require login + admin role."""

    @wraps(f)
    @login_required
    def decorated(*args, **kwargs):
        if not current_user.is_admin:
            abort(403)
        return f(*args, **kwargs)

    return decorated


def self_or_admin_required(f):
    """Require login + (own profile or admin role)."""

    @wraps(f)
    @login_required
    def decorated(*args, **kwargs):
        profile_id = kwargs.get("profile_id")
        if profile_id != current_user.id and not current_user.is_admin:
            abort(403)
        return f(*args, **kwargs)

    return decorated
