"""
Email service for SalesTrack.

Sends HTML notification emails through an SMTP relay configured from the
environment (MAIL_SMTP_HOST, MAIL_SMTP_PORT, MAIL_USERNAME, MAIL_PASSWORD,
MAIL_FROM_ADDRESS, MAIL_FROM_NAME, MAIL_USE_SSL). When credentials are not
configured, sending is skipped with a warning and callers carry on.

Three business emails are built on top of send_email():
  - new prospect        -> every admin
  - follow-up assigned  -> the assigned sales user
  - follow-up completed -> the admin who assigned it

Usage:
    from salestrack.services.email_service import send_email

    send_email(
        to="user@example.com",
        subject="Hello",
        template="emails/new_prospect.html",
        context={"prospect": prospect},
    )
"""

import logging
import smtplib
import threading
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText

from flask import current_app, render_template

logger = logging.getLogger(__name__)

DATETIME_FORMAT = "%d %b %Y %H:%M"


def is_configured(app=None):
    app = app or current_app
    return bool(app.config.get("MAIL_USERNAME") and app.config.get("MAIL_PASSWORD"))


def _send_smtp(app, msg):
    """Send an email via SMTP (runs in a background thread)."""
    with app.app_context():
        host = app.config.get("MAIL_SMTP_HOST", "smtp.gmail.com")
        port = app.config.get("MAIL_SMTP_PORT", 587)
        username = app.config.get("MAIL_USERNAME")
        password = app.config.get("MAIL_PASSWORD")
        use_ssl = app.config.get("MAIL_USE_SSL") or port == 465

        if not username or not password:
            logger.warning("Email not sent: MAIL_USERNAME or MAIL_PASSWORD not configured.")
            return

        try:
            if use_ssl:
                with smtplib.SMTP_SSL(host, port, timeout=30) as server:
                    server.login(username, password)
                    server.send_message(msg)
            else:
                with smtplib.SMTP(host, port, timeout=30) as server:
                    server.ehlo()
                    server.starttls()
                    server.ehlo()
                    server.login(username, password)
                    server.send_message(msg)
            logger.info(f"Email sent to {msg['To']} ({msg['Subject']})")
        except (smtplib.SMTPException, OSError) as e:
            logger.error(f"Failed to send email to {msg['To']}: {e}")


def _build_message(app, to, subject, template, context):
    from_name = app.config.get("MAIL_FROM_NAME", "SalesTrack")
    from_email = app.config.get("MAIL_FROM_ADDRESS") or app.config.get("MAIL_USERNAME", "")

    html_body = render_template(template, **context)

    msg = MIMEMultipart("alternative")
    msg["Subject"] = subject
    msg["From"] = f"{from_name} <{from_email}>"
    msg["To"] = to if isinstance(to, str) else ", ".join(to)
    msg.attach(MIMEText(html_body, "html"))
    return msg


def send_email(to, subject, template, context=None):
    """
    Send a templated HTML email without blocking the request.

    Args:
        to:        Recipient email address (str or list).
        subject:   Email subject line.
        template:  Path to Jinja2 HTML template (relative to templates/).
        context:   Dict of variables to pass to the template.

    Returns:
        True if a send was scheduled, False if mail is disabled or there
        are no recipients.
    """
    app = current_app._get_current_object()

    if not to:
        return False
    if not is_configured(app):
        logger.warning(f"Email '{subject}' skipped: mail is not configured.")
        return False

    msg = _build_message(app, to, subject, template, context or {})

    thread = threading.Thread(target=_send_smtp, args=(app, msg))
    thread.daemon = True
    thread.start()
    return True


def _fmt(value):
    return value.strftime(DATETIME_FORMAT) if value else None


def send_new_prospect_email(prospect, sales_profile, admin_emails):
    """Tell every admin a sales user registered a new prospect."""
    return send_email(
        to=list(admin_emails),
        subject=f"New prospect: {prospect.name}",
        template="emails/new_prospect.html",
        context={
            "heading": "New Prospect",
            "intro": "A new prospect has been added. Details below:",
            "rows": [
                ("Prospect", prospect.name),
                ("Phone", prospect.phone),
                ("Address", prospect.address),
                ("Need", prospect.need),
                ("Sales", sales_profile.full_name if sales_profile else None),
                ("Sales email", sales_profile.email if sales_profile else None),
                ("Created", _fmt(prospect.created_at)),
            ],
            "footer_note": (
                "Log in to the admin dashboard to review this prospect "
                "and schedule a follow-up."
            ),
        },
    )


def send_follow_up_assigned_email(follow_up, prospect, assigned_by, assigned_to):
    """Tell the sales user they have a new follow-up task."""
    return send_email(
        to=assigned_to.email,
        subject=f"Follow-up assigned: {prospect.name}",
        template="emails/follow_up_assigned.html",
        context={
            "heading": "New Follow-Up Assignment",
            "intro": "You have been assigned a new follow-up. Details below:",
            "rows": [
                ("Prospect", prospect.name),
                ("Phone", prospect.phone),
                ("Need", prospect.need),
                ("Scheduled", _fmt(follow_up.scheduled_at)),
                ("Admin notes", follow_up.notes),
                ("Assigned by", assigned_by.full_name),
                ("Admin email", assigned_by.email),
                ("Assigned to", assigned_to.full_name),
                ("Sales email", assigned_to.email),
            ],
            "footer_note": (
                "Please complete the follow-up on schedule and update its "
                "status in the app."
            ),
        },
    )


def send_follow_up_completed_email(follow_up, prospect, assigned_by, assigned_to):
    """Tell the assigning admin the follow-up is done."""
    return send_email(
        to=assigned_by.email,
        subject=f"Follow-up completed: {prospect.name}",
        template="emails/follow_up_completed.html",
        context={
            "heading": "Follow-Up Completed",
            "intro": "A prospect follow-up has been completed. Summary below:",
            "rows": [
                ("Prospect", prospect.name),
                ("Phone", prospect.phone),
                ("Need", prospect.need),
                ("Scheduled", _fmt(follow_up.scheduled_at)),
                ("Sales notes", follow_up.notes),
                ("Completed", _fmt(follow_up.completed_at)),
                ("Sales", assigned_to.full_name),
                ("Sales email", assigned_to.email),
                ("Responsible admin", assigned_by.full_name),
                ("Admin email", assigned_by.email),
            ],
            "footer_note": (
                "Check the admin dashboard for full details and next steps."
            ),
        },
    )
