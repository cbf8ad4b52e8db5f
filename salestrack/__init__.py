import os
import logging

import click
from flask import Flask, jsonify, request
from werkzeug.exceptions import HTTPException

from salestrack.config import config_by_name
from salestrack.extensions import db, migrate, login_manager, csrf, limiter

logger = logging.getLogger(__name__)

ERROR_MESSAGES = {
    401: "Authentication required.",
    403: "You do not have permission to perform this action.",
    404: "Resource not found.",
    405: "Method not allowed.",
    429: "Too many requests. Please try again later.",
}


def create_app(config_name=None):
    """Application factory."""

    if config_name is None:
        config_name = os.environ.get("FLASK_ENV", "development")

    app = Flask(__name__)
    app.config.from_object(config_by_name[config_name])

    # --- Validate required env vars (skip in testing) ---
    if config_name != "testing":
        try:
            config_by_name[config_name].validate()
        except RuntimeError as e:
            app.logger.warning(f"Config validation: {e}")

    # --- Init extensions ---
    db.init_app(app)
    migrate.init_app(app, db)
    login_manager.init_app(app)
    csrf.init_app(app)
    limiter.init_app(app)

    # --- Import models so Alembic can discover them ---
    with app.app_context():
        from salestrack import models  # noqa: F401

    # --- Register blueprints ---
    from salestrack.blueprints.auth import auth_bp
    from salestrack.blueprints.profiles import profiles_bp
    from salestrack.blueprints.prospects import prospects_bp
    from salestrack.blueprints.follow_ups import follow_ups_bp
    from salestrack.blueprints.notifications import notifications_bp
    from salestrack.blueprints.reports import reports_bp

    app.register_blueprint(auth_bp)
    app.register_blueprint(profiles_bp)
    app.register_blueprint(prospects_bp)
    app.register_blueprint(follow_ups_bp)
    app.register_blueprint(notifications_bp)
    app.register_blueprint(reports_bp)

    @app.route("/health")
    def health():
        return jsonify(status="ok")

    # --- Local file serving (dev only) ---
    if app.debug:
        @app.route("/uploads/<path:filepath>")
        def serve_upload(filepath):
            """Serve uploaded files from instance/uploads in dev mode."""
            from flask import send_from_directory
            upload_dir = os.path.join(app.instance_path, "uploads")
            return send_from_directory(upload_dir, filepath)

    # --- Error handlers (JSON for the SPA) ---
    @app.errorhandler(HTTPException)
    def http_error(e):
        message = ERROR_MESSAGES.get(e.code) or e.description or e.name
        return jsonify(message=message), e.code

    @app.errorhandler(Exception)
    def server_error(e):
        db.session.rollback()
        logger.exception(f"Unhandled error on {request.method} {request.path}")
        return jsonify(message="An internal server error occurred."), 500

    # --- CLI commands ---
    register_cli(app)

    # --- CORS + security headers ---
    @app.after_request
    def add_response_headers(response):
        """Allow the configured SPA origin and add security headers."""
        origin = request.headers.get("Origin")
        if origin and origin == app.config.get("FRONTEND_ORIGIN"):
            response.headers["Access-Control-Allow-Origin"] = origin
            response.headers["Access-Control-Allow-Credentials"] = "true"
            response.headers["Access-Control-Allow-Methods"] = (
                "GET, POST, PUT, DELETE, OPTIONS"
            )
            response.headers["Access-Control-Allow-Headers"] = (
                "Content-Type, X-CSRFToken"
            )
            response.headers["Vary"] = "Origin"

        # Prevent MIME type sniffing
        response.headers["X-Content-Type-Options"] = "nosniff"
        # Prevent clickjacking
        response.headers["X-Frame-Options"] = "DENY"
        # Control referrer information
        response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"
        # Permissions Policy (restrict browser features)
        response.headers["Permissions-Policy"] = (
            "camera=(), microphone=(), geolocation=()"
        )
        # API responses never need to load anything
        response.headers["Content-Security-Policy"] = (
            "default-src 'none'; frame-ancestors 'none';"
        )
        # Strict Transport Security (only in production)
        if not app.debug:
            response.headers["Strict-Transport-Security"] = (
                "max-age=31536000; includeSubDomains"
            )
        return response

    # --- Logging ---
    if not app.debug:
        logging.basicConfig(level=logging.INFO)

    return app


def register_cli(app):
    """Register custom CLI commands with the Flask app."""

    @app.cli.command("seed-admin")
    @click.option("--email", default="admin@salestrack.local", help="Admin email")
    @click.option("--password", default="admin", help="Admin password")
    def seed_admin(email, password):
        """Create the default administrator (user + profile) if missing.

        Usage:
            flask seed-admin
            flask seed-admin --email admin@example.com --password s3cret
        """
        from salestrack.services import profile_service

        try:
            profile, created = profile_service.ensure_default_admin(email, password)
        except ValueError as e:
            db.session.rollback()
            raise click.ClickException(str(e))

        db.session.commit()

        if created:
            click.echo(f"Created admin user: {profile.email}")
        else:
            click.echo(f"Admin user already exists: {email}")
