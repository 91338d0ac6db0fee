"""
Contact form notifications sent through Resend.

Sending is never allowed to fail a submission: every error is logged and
dropped here.
"""

from html import escape
from typing import Any, Dict, Optional

import resend
from resend.http_client_requests import RequestsClient

import settings
from log import get_logger

logger = get_logger("mailer")


def is_configured() -> bool:
    return bool(settings.RESEND_API_KEY)


def send(to: str, subject: str, html: str) -> Optional[str]:
    resend.api_key = settings.RESEND_API_KEY
    resend.default_http_client = RequestsClient(timeout=settings.RESEND_TIMEOUT)
    params: Dict[str, Any] = {
        "from": settings.MAIL_FROM,
        "to": [to],
        "subject": subject,
        "html": html,
    }
    email = resend.Emails.send(params)
    return email.get("id") if email else None


def _field(label: str, value: Optional[str]) -> str:
    if not value:
        return ""
    return (
        '<div style="margin-bottom:12px">'
        f'<div style="font-weight:bold;font-size:12px;text-transform:uppercase">{escape(label)}</div>'
        f"<div>{escape(value)}</div></div>"
    )


def admin_notification(inquiry: Dict[str, Any]) -> str:
    message = escape(inquiry.get("message") or "").replace("\n", "<br>")
    return (
        "<html><body style=\"font-family:Arial,sans-serif\">"
        f"<h2>New {escape(inquiry['inquiry_type'].upper())} inquiry</h2>"
        + _field("Name", inquiry.get("name"))
        + _field("Email", inquiry.get("email"))
        + _field("Phone", inquiry.get("phone"))
        + _field("Company", inquiry.get("company"))
        + _field("Subject", inquiry.get("subject"))
        + f"<div><strong>Message</strong><p>{message}</p></div>"
        f"<p style=\"color:#6b7280;font-size:12px\">Inquiry ID: {escape(inquiry['id'])}</p>"
        "</body></html>"
    )


def confirmation(inquiry: Dict[str, Any]) -> str:
    return (
        "<html><body style=\"font-family:Arial,sans-serif\">"
        f"<p>Dear <strong>{escape(inquiry['name'])}</strong>,</p>"
        "<p>Thank you for reaching out. We received your inquiry and our team will review it shortly.</p>"
        + _field("Subject", inquiry.get("subject"))
        + _field("Inquiry type", inquiry.get("inquiry_type"))
        + "</body></html>"
    )


def notify_inquiry(inquiry: Dict[str, Any]) -> None:
    """Email the site owner and confirm receipt to the submitter."""
    if not is_configured():
        logger.warning("RESEND_API_KEY not configured, skipping inquiry emails for %s", inquiry["id"])
        return

    subject = f"New {inquiry['inquiry_type'].upper()} Inquiry: {inquiry['subject']}"
    try:
        email_id = send(settings.NOTIFY_EMAIL, subject, admin_notification(inquiry))
        logger.info("Admin notification sent for inquiry %s (%s)", inquiry["id"], email_id)
    except Exception as exc:
        logger.error("Failed to send admin notification for inquiry %s: %s", inquiry["id"], exc)

    try:
        email_id = send(inquiry["email"], "We received your inquiry", confirmation(inquiry))
        logger.info("Confirmation sent for inquiry %s (%s)", inquiry["id"], email_id)
    except Exception as exc:
        logger.error("Failed to send confirmation for inquiry %s: %s", inquiry["id"], exc)
