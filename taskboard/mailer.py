"""SMTP delivery for the email settings page.

``send_test_email`` walks through validation, connection and delivery and
reports which step it reached, so the settings page can tell a bad
password apart from an unreachable host.
"""

from __future__ import annotations

import logging
import smtplib
import ssl
from dataclasses import dataclass
from email.message import EmailMessage
from email.utils import formataddr
from typing import Any, Dict, List, Optional

from taskboard.validators import validate_email
from taskboard.errors import EmailDeliveryError, ValidationError
from taskboard.settings_repo import get_email_settings

logger = logging.getLogger(__name__)

SMTP_TIMEOUT_SECONDS = 20
SSL_PORT = 465


@dataclass
class TestEmailResult:
    __test__ = False

    validated: bool = False
    connected: bool = False
    sent: bool = False
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.sent and self.error is None


def validate_email_settings(settings: Optional[Dict[str, Any]]) -> List[str]:
    if not settings:
        return ["Email settings have not been configured"]
    problems = []
    if not (settings.get("smtp_host") or "").strip():
        problems.append("SMTP host is required")
    try:
        port = int(settings.get("smtp_port") or 0)
    except (TypeError, ValueError):
        port = 0
    if not 0 < port < 65536:
        problems.append("SMTP port must be between 1 and 65535")
    if not validate_email(settings.get("sender_email")):
        problems.append("Sender email is not a valid address")
    if settings.get("smtp_username") and not settings.get("smtp_password"):
        problems.append("SMTP password is required when a username is set")
    return problems


def sender_address(settings: Dict[str, Any]) -> str:
    return formataddr((settings.get("sender_name") or "", settings["sender_email"]))


def build_message(settings: Dict[str, Any], to: str, subject: str, body: str) -> EmailMessage:
    msg = EmailMessage()
    msg["From"] = sender_address(settings)
    msg["To"] = to
    msg["Subject"] = subject
    msg.set_content(body)
    return msg


def _connect(settings: Dict[str, Any]) -> smtplib.SMTP:
    host = settings["smtp_host"].strip()
    port = int(settings["smtp_port"])
    if settings.get("smtp_ssl") and port == SSL_PORT:
        server = smtplib.SMTP_SSL(host, port, timeout=SMTP_TIMEOUT_SECONDS, context=ssl.create_default_context())
    else:
        server = smtplib.SMTP(host, port, timeout=SMTP_TIMEOUT_SECONDS)
        if settings.get("smtp_ssl"):
            server.starttls(context=ssl.create_default_context())
    if settings.get("smtp_username"):
        server.login(settings["smtp_username"], settings.get("smtp_password") or "")
    return server


def send_email(settings: Dict[str, Any], to: str, subject: str, body: str) -> None:
    problems = validate_email_settings(settings)
    if problems:
        raise ValidationError("; ".join(problems))
    try:
        server = _connect(settings)
        try:
            server.send_message(build_message(settings, to, subject, body))
        finally:
            server.quit()
    except (smtplib.SMTPException, OSError) as exc:
        logger.exception("Sending email to %s failed", to)
        raise EmailDeliveryError(str(exc)) from exc


def send_test_email(to: str, subject: str, body: str, settings: Optional[Dict[str, Any]] = None) -> TestEmailResult:
    result = TestEmailResult()
    if settings is None:
        settings = get_email_settings()

    problems = validate_email_settings(settings)
    if not validate_email(to):
        problems.append("Recipient email is not a valid address")
    if not (subject or "").strip():
        problems.append("Subject is required")
    if problems:
        result.error = "; ".join(problems)
        return result
    result.validated = True

    try:
        server = _connect(settings)
    except (smtplib.SMTPException, OSError) as exc:
        logger.warning("SMTP connection to %s:%s failed: %s", settings.get("smtp_host"), settings.get("smtp_port"), exc)
        result.error = f"Could not connect to the SMTP server: {exc}"
        return result
    result.connected = True

    try:
        server.send_message(build_message(settings, to, subject, body))
        result.sent = True
        logger.info("Test email sent to %s", to)
    except (smtplib.SMTPException, OSError) as exc:
        logger.warning("Test email to %s failed: %s", to, exc)
        result.error = f"The server rejected the message: {exc}"
    finally:
        try:
            server.quit()
        except (smtplib.SMTPException, OSError):
            logger.debug("SMTP quit failed", exc_info=True)
    return result
