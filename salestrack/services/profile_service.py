"""Profile service: user management (credential row + profile row).

A user is stored as two rows sharing one id: `users` (email, password
hash) and `profiles` (name, role, contact details). Creation and any
update touching both tables happen in a single transaction.

Functions flush but do NOT commit; the caller commits.
"""

import logging
import re

from werkzeug.security import generate_password_hash

from salestrack.extensions import db
from salestrack.models.user import Profile, User
from salestrack.utils import sanitize

logger = logging.getLogger(__name__)

# Sanity check only, not RFC 5322
EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")

MIN_PASSWORD_LENGTH = 4

UPDATABLE_FIELDS = ["full_name", "email", "username", "phone", "role", "password"]

# Optional columns an empty string is allowed to clear
CLEARABLE_FIELDS = ("username", "phone")


def _normalize_email(email):
    if email is not None and not isinstance(email, str):
        raise ValueError("A valid email is required.")
    return (email or "").strip().lower()


def _check_email(email, exclude_id=None):
    if not email or not EMAIL_RE.match(email):
        raise ValueError("A valid email is required.")
    query = User.query.filter(db.func.lower(User.email) == email)
    if exclude_id:
        query = query.filter(User.id != exclude_id)
    if query.first():
        raise ValueError("An account with this email already exists.")


def _check_username(username, exclude_id=None):
    query = Profile.query.filter(db.func.lower(Profile.username) == username.lower())
    if exclude_id:
        query = query.filter(Profile.id != exclude_id)
    if query.first():
        raise ValueError("This username is already taken.")


def _check_role(role):
    if role not in Profile.ROLES:
        raise ValueError(
            f"Invalid role '{role}'. Must be one of: {', '.join(Profile.ROLES)}"
        )


def _check_password(password):
    if not isinstance(password, str):
        raise ValueError("Password must be text.")
    if len(password) < MIN_PASSWORD_LENGTH:
        raise ValueError(
            f"Password must be at least {MIN_PASSWORD_LENGTH} characters."
        )


def create_user(full_name, email, password, role, username=None, phone=None):
    """Create a user + profile pair.

    Args:
        full_name: Display name (sanitized).
        email: Login email, unique (lowercased).
        password: Plain password, hashed with Werkzeug.
        role: One of Profile.ROLES.
        username: Optional alternate login identifier, unique.
        phone: Optional phone number.

    Returns:
        The created Profile.

    Raises:
        ValueError: On missing fields, invalid role, or duplicates.
    """
    full_name = sanitize(full_name)
    email = _normalize_email(email)
    username = sanitize(username) or None
    phone = sanitize(phone) or None

    if not full_name or not email or not password or not role:
        raise ValueError("Full name, email, password and role are required.")

    _check_role(role)
    _check_email(email)
    _check_password(password)
    if username:
        _check_username(username)

    user = User(
        email=email,
        password_hash=generate_password_hash(password),
    )
    user.profile = Profile(
        email=email,
        username=username,
        phone=phone,
        full_name=full_name,
        role=role,
    )
    db.session.add(user)
    db.session.flush()

    logger.info(f"User created: {email} ({role})")
    return user.profile


def update_profile(profile, data, allow_role_change=False):
    """Apply a partial update to a profile (and its user row).

    Only keys present in `data` are touched. Email changes are mirrored to
    the users table, and a password change re-hashes on the users table.

    Args:
        profile: The Profile to update.
        data: Dict from the request body.
        allow_role_change: False for self-service edits.

    Returns:
        The updated Profile.

    Raises:
        ValueError: If nothing updatable was supplied or a value is invalid.
    """
    present = [
        f for f in UPDATABLE_FIELDS
        if data.get(f) is not None and (data[f] != "" or f in CLEARABLE_FIELDS)
    ]
    if not present:
        raise ValueError("Nothing to update.")

    user = profile.user

    if "full_name" in present:
        full_name = sanitize(data["full_name"])
        if not full_name:
            raise ValueError("Full name cannot be empty.")
        profile.full_name = full_name

    if "email" in present:
        email = _normalize_email(data["email"])
        if email != user.email:
            _check_email(email, exclude_id=user.id)
            user.email = email
            profile.email = email

    if "username" in present:
        username = sanitize(data["username"]) or None
        if username:
            _check_username(username, exclude_id=profile.id)
        profile.username = username

    if "phone" in present:
        profile.phone = sanitize(data["phone"]) or None

    if "role" in present and data["role"] != profile.role:
        if not allow_role_change:
            raise ValueError("Only administrators can change roles.")
        _check_role(data["role"])
        if profile.role == "sales" and (user.prospects or user.assigned_follow_ups):
            raise ValueError(
                "Reassign this user's prospects and follow-ups before changing their role."
            )
        profile.role = data["role"]

    if "password" in present:
        _check_password(data["password"])
        user.password_hash = generate_password_hash(data["password"])

    db.session.flush()
    logger.info(f"Profile updated: {profile.email} ({', '.join(sorted(set(present)))})")
    return profile


def set_photo_url(profile, url):
    profile.photo_url = url
    db.session.flush()
    return profile


def delete_user(user_id, actor_user_id):
    """Delete a user and every row that depends on it.

    Raises:
        ValueError: If the user does not exist or deletes themselves.
    """
    if user_id == actor_user_id:
        raise ValueError("You cannot delete your own account.")

    user = db.session.get(User, user_id)
    if user is None:
        raise ValueError(f"User {user_id} not found.")

    email = user.email
    db.session.delete(user)
    db.session.flush()
    logger.info(f"User deleted: {email}")


def list_profiles(role=None):
    query = Profile.query
    if role:
        _check_role(role)
        query = query.filter_by(role=role)
    return query.order_by(Profile.full_name.asc()).all()


def admin_profiles():
    return Profile.query.filter_by(role="admin").all()


def find_user_by_identifier(identifier):
    """Resolve a login identifier (email or username) to a User, or None."""
    identifier = (identifier or "").strip()
    if not identifier:
        return None

    user = User.query.filter(db.func.lower(User.email) == identifier.lower()).first()
    if user is not None:
        return user

    profile = Profile.query.filter(
        db.func.lower(Profile.username) == identifier.lower()
    ).first()
    return profile.user if profile else None


def ensure_default_admin(email, password, full_name="Administrator"):
    """Create the bootstrap admin if no account uses `email` yet.

    Returns:
        Tuple (profile, created).
    """
    email = _normalize_email(email)
    existing = User.query.filter_by(email=email).first()
    if existing is not None:
        return existing.profile, False
    profile = create_user(
        full_name=full_name,
        email=email,
        password=password,
        role="admin",
    )
    return profile, True
