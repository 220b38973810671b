"""Email service for sending transactional emails.

This module provides a unified interface for sending emails through various providers.
Supports:
- console: Logs emails to console (development)
- smtp: Standard SMTP delivery

Notifications sent from a request are dispatched with ``send_fire_and_forget``:
the request never waits on delivery and a failed send is only logged.
"""

import asyncio
import html
import re
import smtplib
import threading
from abc import ABC, abstractmethod
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from typing import Any, Optional, Sequence

from loguru import logger

from models.config import settings

STATUS_LABELS = {
    "under_review": "Under Review",
    "in_progress": "In Progress",
    "resolved": "Resolved",
    "closed": "Closed",
    "submitted": "Submitted",
    "approved": "Approved",
    "implemented": "Implemented",
    "rejected": "Rejected",
    "accepted": "Accepted",
}

_STYLE = """
body { font-family: Arial, sans-serif; line-height: 1.6; color: #333; }
.container { max-width: 600px; margin: 0 auto; padding: 20px; }
.header { background-color: #4F46E5; color: white; padding: 20px; text-align: center; }
.content { background-color: #f9fafb; padding: 20px; border: 1px solid #e5e7eb; }
.info-box { background-color: white; padding: 15px; margin: 15px 0; border-left: 4px solid #4F46E5; }
.footer { text-align: center; padding: 20px; color: #6b7280; font-size: 12px; }
"""


class EmailProvider(ABC):
    """Abstract base class for email providers."""

    @abstractmethod
    def send(
        self,
        to_email: str,
        subject: str,
        html_body: str,
        text_body: str,
    ) -> bool:
        """Send an email."""
        pass


class SMTPProvider(EmailProvider):
    """SMTP email provider."""

    def __init__(self) -> None:
        """Initialize SMTP provider with settings."""
        self.host = settings.SMTP_HOST
        self.port = settings.SMTP_PORT
        self.user = settings.SMTP_USER
        self.password = settings.SMTP_PASSWORD
        self.from_email = settings.SMTP_FROM_EMAIL
        self.from_name = settings.SMTP_FROM_NAME
        self.use_tls = settings.SMTP_USE_TLS
        self.use_ssl = settings.SMTP_USE_SSL

    def send(
        self,
        to_email: str,
        subject: str,
        html_body: str,
        text_body: str,
    ) -> bool:
        """Send email via SMTP.

        Supports both:
        - Implicit SSL (port 465): use SMTP_USE_SSL=true
        - STARTTLS (port 587): use SMTP_USE_TLS=true
        """
        try:
            msg = MIMEMultipart("alternative")
            msg["Subject"] = subject
            msg["From"] = f"{self.from_name} <{self.from_email}>"
            msg["To"] = to_email

            msg.attach(MIMEText(text_body, "plain", "utf-8"))
            msg.attach(MIMEText(html_body, "html", "utf-8"))

            if self.use_ssl:
                server = smtplib.SMTP_SSL(self.host, self.port)
            elif self.use_tls:
                server = smtplib.SMTP(self.host, self.port)
                server.starttls()
            else:
                server = smtplib.SMTP(self.host, self.port)

            if self.user and self.password:
                server.login(self.user, self.password)

            server.sendmail(self.from_email, to_email, msg.as_string())
            server.quit()

            logger.info(f"Email sent successfully to {to_email}")
            return True

        except smtplib.SMTPRecipientsRefused as e:
            logger.error(f"SMTP: Recipients refused - {e.recipients}")
            return False
        except smtplib.SMTPAuthenticationError as e:
            logger.error(f"SMTP: Authentication failed - {e.smtp_code}: {e.smtp_error}")
            return False
        except Exception as e:
            logger.error(f"Failed to send email to {to_email}: {e}")
            return False


class ConsoleProvider(EmailProvider):
    """Console email provider for development/testing."""

    def send(
        self,
        to_email: str,
        subject: str,
        html_body: str,
        text_body: str,
    ) -> bool:
        """Log email to console."""
        clean_html = re.sub(r"<[^>]+>", "", html_body)[:500]
        logger.info(
            f"\n{'=' * 60}\n"
            f"EMAIL (Console Provider - Development Mode)\n"
            f"{'=' * 60}\n"
            f"To: {to_email}\n"
            f"Subject: {subject}\n"
            f"{'-' * 60}\n"
            f"PLAIN TEXT:\n{text_body}\n"
            f"{'-' * 60}\n"
            f"HTML (preview):\n{clean_html}\n"
            f"{'=' * 60}\n"
        )
        return True


def get_email_provider() -> EmailProvider:
    """Get the configured email provider."""
    provider_name = settings.EMAIL_PROVIDER.lower()

    if provider_name == "smtp":
        return SMTPProvider()
    elif provider_name == "console":
        return ConsoleProvider()
    else:
        logger.warning(f"Unknown email provider '{provider_name}', using console")
        return ConsoleProvider()


def status_label(status: str) -> str:
    return STATUS_LABELS.get(status, status)


def recipient_name(user: Any) -> str:
    """Profile first name and surname, or the local part of the email."""
    profile = getattr(user, "profile", None)
    if profile is not None and profile.first_name:
        return f"{profile.first_name} {profile.surname or ''}".strip()
    return user.email.split("@")[0]


class EmailService:
    """High-level email service with inline templates."""

    @staticmethod
    def _wrap(title: str, body: str, footer: str) -> str:
        return (
            "<!DOCTYPE html><html><head><meta charset=\"UTF-8\">"
            f"<style>{_STYLE}</style></head><body><div class=\"container\">"
            f"<div class=\"header\"><h1>{title}</h1></div>"
            f"<div class=\"content\">{body}</div>"
            f"<div class=\"footer\"><p>{footer}</p>"
            "<p>Please do not reply to this email.</p></div>"
            "</div></body></html>"
        )

    @classmethod
    def build_status_change(
        cls,
        user_name: str,
        case_id: str,
        title: str,
        old_status: str,
        new_status: str,
        item_type: str,
        admin_note: Optional[str] = None,
    ) -> tuple[str, str, str]:
        """
        Build a status-change notification.

        Returns:
            (subject, html_body, text_body)
        """
        type_label = "Issue" if item_type == "issue" else "Suggestion"
        old_label = status_label(old_status)
        new_label = status_label(new_status)
        subject = f"{settings.APP_NAME}: {type_label} {case_id} Status Updated"

        note_html = ""
        note_text = ""
        if admin_note:
            note_html = (
                f"<div class=\"info-box\"><strong>Admin Note:</strong><br>"
                f"{html.escape(admin_note)}</div>"
            )
            note_text = f"Admin Note: {admin_note}\n"

        body = (
            f"<p>Hello {html.escape(user_name)},</p>"
            f"<p>Your {type_label.lower()} has been updated.</p>"
            f"<div class=\"info-box\"><strong>Case ID:</strong> {case_id}<br>"
            f"<strong>Title:</strong> {html.escape(title)}</div>"
            f"<p><strong>{old_label}</strong> &rarr; <strong>{new_label}</strong></p>"
            f"{note_html}"
            f"<p>You can view the full details of your {type_label.lower()} by "
            f"<a href=\"{settings.FRONTEND_URL}\">logging into your "
            f"{settings.APP_NAME} account</a>.</p>"
        )
        text = (
            f"{subject}\n\n"
            f"Hello {user_name},\n\n"
            f"Your {type_label.lower()} has been updated.\n\n"
            f"Case ID: {case_id}\n"
            f"Title: {title}\n"
            f"Status: {old_label} -> {new_label}\n"
            f"{note_text}\n"
            f"You can view the full details by logging into your "
            f"{settings.APP_NAME} account: {settings.FRONTEND_URL}\n"
        )
        footer = f"This is an automated notification from {settings.APP_NAME}."
        return subject, cls._wrap(settings.APP_NAME, body, footer), text

    @classmethod
    def build_admin_response(
        cls,
        user_name: str,
        case_id: str,
        title: str,
        item_type: str,
        admin_message: str,
        admin_name: Optional[str] = None,
    ) -> tuple[str, str, str]:
        """Build an admin-response notification as (subject, html, text)."""
        type_label = "Issue" if item_type == "issue" else "Suggestion"
        responder = admin_name or "Administrator"
        subject = (
            f"{settings.APP_NAME}: Admin Response to Your {type_label} {case_id}"
        )
        body = (
            f"<p>Hello {html.escape(user_name)},</p>"
            f"<p>An administrator has responded to your {type_label.lower()}.</p>"
            f"<div class=\"info-box\"><strong>Case ID:</strong> {case_id}<br>"
            f"<strong>Title:</strong> {html.escape(title)}</div>"
            f"<div class=\"info-box\"><strong>{html.escape(responder)} "
            f"Response:</strong><br>{html.escape(admin_message)}</div>"
        )
        text = (
            f"{subject}\n\n"
            f"Hello {user_name},\n\n"
            f"An administrator has responded to your {type_label.lower()}.\n\n"
            f"Case ID: {case_id}\n"
            f"Title: {title}\n\n"
            f"{responder} Response:\n{admin_message}\n"
        )
        footer = f"This is an automated notification from {settings.APP_NAME}."
        return subject, cls._wrap(settings.APP_NAME, body, footer), text

    @classmethod
    def build_weekly_summary(
        cls,
        user_name: str,
        issues: Sequence[tuple[str, str, str]],
        suggestions: Sequence[tuple[str, str, str]],
    ) -> tuple[str, str, str]:
        """
        Build the weekly summary email.

        Args:
            user_name: Display name of the recipient
            issues: (case_id, title, status) of issues created this week
            suggestions: (case_id, title, status) of suggestions created this week

        Returns:
            (subject, html_body, text_body)
        """
        subject = f"{settings.APP_NAME}: Your Weekly Summary"
        total = len(issues) + len(suggestions)

        sections_html = []
        sections_text = []
        for heading, rows in (("Issues", issues), ("Suggestions", suggestions)):
            if not rows:
                continue
            items = "".join(
                f"<div class=\"info-box\"><strong>{case_id}</strong> - "
                f"{html.escape(title)}<br><small>Status: "
                f"{status_label(status)}</small></div>"
                for case_id, title, status in rows
            )
            sections_html.append(f"<h3>Your {heading} ({len(rows)})</h3>{items}")
            lines = "\n".join(
                f"- {case_id}: {title} ({status})" for case_id, title, status in rows
            )
            sections_text.append(f"Your {heading} ({len(rows)}):\n{lines}\n")

        if total == 0:
            sections_html.append(
                "<p>You haven't submitted any issues or suggestions this week.</p>"
            )
            sections_text.append(
                "You haven't submitted any issues or suggestions this week.\n"
            )

        body = (
            f"<p>Hello {html.escape(user_name)},</p>"
            "<p>Here's a summary of your submissions this week:</p>"
            f"<p><strong>{total}</strong> Total Submissions</p>"
            f"{''.join(sections_html)}"
            f"<p>Thank you for using {settings.APP_NAME} to improve your "
            "community!</p>"
        )
        text = (
            f"{settings.APP_NAME} Weekly Summary\n\n"
            f"Hello {user_name},\n\n"
            "Here's a summary of your submissions this week:\n"
            f"Total Submissions: {total}\n\n"
            f"{''.join(sections_text)}\n"
            f"Thank you for using {settings.APP_NAME} to improve your community!\n"
        )
        footer = f"This is an automated weekly summary from {settings.APP_NAME}."
        return (
            subject,
            cls._wrap(f"{settings.APP_NAME} Weekly Summary", body, footer),
            text,
        )

    @staticmethod
    def deliver(to_email: str, subject: str, html_body: str, text_body: str) -> bool:
        """Send through the configured provider. Never raises."""
        try:
            return get_email_provider().send(to_email, subject, html_body, text_body)
        except Exception as e:
            logger.error(f"Email to {to_email} failed: {e}")
            return False

    @classmethod
    def send_fire_and_forget(
        cls, to_email: str, subject: str, html_body: str, text_body: str
    ) -> None:
        """
        Schedule a send without waiting for it.

        Runs on the current event loop's default executor when called from a
        coroutine, otherwise on a daemon thread.
        """
        args = (to_email, subject, html_body, text_body)
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            loop = None

        if loop is not None:
            loop.run_in_executor(None, cls.deliver, *args)
            return

        threading.Thread(target=cls.deliver, args=args, daemon=True).start()

    @classmethod
    def notify_status_change(
        cls,
        owner: Any,
        case_id: str,
        title: str,
        old_status: str,
        new_status: str,
        item_type: str,
        admin_note: Optional[str] = None,
    ) -> None:
        """Queue a status-change email to the owner of an item."""
        subject, html_body, text_body = cls.build_status_change(
            recipient_name(owner),
            case_id,
            title,
            old_status,
            new_status,
            item_type,
            admin_note,
        )
        cls.send_fire_and_forget(owner.email, subject, html_body, text_body)

    @classmethod
    def notify_admin_response(
        cls,
        owner: Any,
        case_id: str,
        title: str,
        item_type: str,
        admin_message: str,
        admin_name: Optional[str] = None,
    ) -> None:
        """Queue an admin-response email to the owner of an item."""
        subject, html_body, text_body = cls.build_admin_response(
            recipient_name(owner), case_id, title, item_type, admin_message, admin_name
        )
        cls.send_fire_and_forget(owner.email, subject, html_body, text_body)


