"""
Jinja2 templates for transactional email, rendered outside of any request.
"""
from datetime import datetime, timezone
from pathlib import Path

from jinja2 import Environment, FileSystemLoader, select_autoescape

from account_service.core import config

TEMPLATE_DIR = Path(__file__).resolve().parent.parent / "templates"

TEMPLATES = Environment(
    loader=FileSystemLoader(str(TEMPLATE_DIR)),
    autoescape=select_autoescape(["html"]),
)

_UNITS = (("day", 60 * 24), ("hour", 60), ("minute", 1))


def humanize_minutes(minutes: int) -> str:
    """Long form of a duration, e.g. 10 -> "10 minutes", 120 -> "2 hours"."""
    for unit, size in _UNITS:
        if minutes >= size and minutes % size == 0:
            count = minutes // size
            return f"{count} {unit}" if count == 1 else f"{count} {unit}s"
    return f"{minutes} minutes"


def render_reset_password_otp(user_name: str, otp: str, now: datetime | None = None) -> str:
    now = now or datetime.now(timezone.utc)
    template = TEMPLATES.get_template("reset_password_otp.html")
    return template.render(
        server_name=config.SERVER_NAME,
        user_name=user_name,
        otp_digits=list(otp),
        otp_expiry=humanize_minutes(config.OTP_EXPIRES_MINUTES),
        current_year=now.year,
    )
