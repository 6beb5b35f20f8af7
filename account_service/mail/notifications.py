"""
Email delivery. Runs as a background task, so failures are logged rather than raised.
"""
import logging
import smtplib
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText

from account_service.core import config

logger = logging.getLogger(__name__)


def build_message(to: str, subject: str, html: str) -> MIMEMultipart:
    msg = MIMEMultipart("alternative")
    msg["From"] = config.MAIL_FROM
    msg["To"] = to
    msg["Subject"] = subject
    msg.attach(MIMEText(html, "html", "utf-8"))
    return msg


def send_email(to: str, subject: str, html: str) -> bool:
    if not config.SMTP_HOST:
        logger.warning("SMTP is not configured; skipped email '%s' to %s", subject, to)
        return False

    msg = build_message(to, subject, html)
    try:
        with smtplib.SMTP(config.SMTP_HOST, config.SMTP_PORT) as server:
            if config.SMTP_USE_TLS:
                server.starttls()
            if config.SMTP_USERNAME:
                server.login(config.SMTP_USERNAME, config.SMTP_PASSWORD)
            server.send_message(msg)
    except (smtplib.SMTPException, OSError):
        logger.exception("Failed to send email '%s' to %s", subject, to)
        return False

    logger.info("Sent email '%s' to %s", subject, to)
    return True
