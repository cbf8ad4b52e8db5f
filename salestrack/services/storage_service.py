"""Storage service: profile photo uploads to Supabase Storage (prod) or local disk (dev).

Supabase bucket: SUPABASE_STORAGE_BUCKET (default "profile-photos").
Local fallback: instance/uploads/ directory, served by the app in debug.
"""

import logging
import os
import uuid

import requests
from flask import current_app

logger = logging.getLogger(__name__)

# Allowed MIME types
ALLOWED_TYPES = {
    "image/jpeg",
    "image/png",
    "image/gif",
    "image/webp",
}

ALLOWED_EXTENSIONS = {
    ".jpg", ".jpeg", ".png", ".gif", ".webp",
}


def _get_supabase_config():
    """Return Supabase storage config if available, else None."""
    url = current_app.config.get("SUPABASE_URL")
    key = current_app.config.get("SUPABASE_SERVICE_KEY")
    bucket = current_app.config.get("SUPABASE_STORAGE_BUCKET", "profile-photos")

    if url and key:
        return {"url": url.rstrip("/"), "key": key, "bucket": bucket}
    return None


def validate_photo(file):
    """Validate an uploaded photo (from request.files).

    Returns (ok: bool, error: str|None).
    """
    if not file or not file.filename:
        return False, "No file selected."

    ext = os.path.splitext(file.filename)[1].lower()
    if ext not in ALLOWED_EXTENSIONS:
        return False, f"File type '{ext}' is not allowed. Accepted: JPG, PNG, GIF, WebP."

    if file.content_type and file.content_type not in ALLOWED_TYPES:
        return False, "Only image uploads are allowed."

    # Check file size (read + seek back)
    file.seek(0, os.SEEK_END)
    size = file.tell()
    file.seek(0)

    max_size = current_app.config.get("MAX_PHOTO_SIZE", 5 * 1024 * 1024)
    if size > max_size:
        return False, (
            f"File is too large ({size / (1024*1024):.1f} MB). "
            f"Maximum is {max_size / (1024*1024):.0f} MB."
        )

    if size == 0:
        return False, "File is empty."

    return True, None


def upload_photo(file, profile_id):
    """Store a profile photo and return its public URL.

    Args:
        file: Werkzeug FileStorage from request.files
        profile_id: Owner of the photo (used as the storage folder)
    """
    ext = os.path.splitext(file.filename)[1].lower()
    storage_path = f"{profile_id}/{uuid.uuid4().hex}{ext}"

    file_data = file.read()
    content_type = file.content_type or "application/octet-stream"

    # Try Supabase first, fall back to local
    supabase = _get_supabase_config()
    if supabase:
        return _upload_supabase(supabase, storage_path, file_data, content_type)
    return _upload_local(storage_path, file_data)


def _upload_supabase(config, path, data, content_type):
    """Upload to Supabase Storage. Returns public URL."""
    url = f"{config['url']}/storage/v1/object/{config['bucket']}/{path}"

    headers = {
        "Authorization": f"Bearer {config['key']}",
        "Content-Type": content_type,
        "x-upsert": "true",
    }

    try:
        resp = requests.post(url, headers=headers, data=data, timeout=30)
        resp.raise_for_status()
    except requests.RequestException as e:
        logger.error(f"Supabase upload failed: {e}")
        # Fall back to local
        return _upload_local(path, data)

    public_url = f"{config['url']}/storage/v1/object/public/{config['bucket']}/{path}"
    logger.info(f"Uploaded to Supabase: {path}")
    return public_url


def _upload_local(path, data):
    """Upload to local filesystem (dev fallback). Returns URL path."""
    upload_dir = os.path.join(
        current_app.instance_path, "uploads", os.path.dirname(path)
    )
    os.makedirs(upload_dir, exist_ok=True)

    filepath = os.path.join(current_app.instance_path, "uploads", path)
    with open(filepath, "wb") as f:
        f.write(data)

    logger.info(f"Uploaded locally: {filepath}")
    # Return a URL path that our Flask app can serve
    return f"/uploads/{path}"
