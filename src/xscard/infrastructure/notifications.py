"""SMTP notification: tell a card owner that someone saved their card."""

import html
import logging
import smtplib
from dataclasses import dataclass
from email.message import EmailMessage
from email.utils import formataddr

from xscard.application.ports import NotificationError
from xscard.domain import ContactEntry

logger = logging.getLogger(__name__)

SUBJECT = "Someone Saved Your Contact Information"


@dataclass(frozen=True)
class SmtpSettings:
    host: str | None
    port: int = 465
    user: str | None = None
    password: str | None = None
    from_name: str = "XS Card"
    from_address: str | None = None


def render_contact_saved(entry: ContactEntry) -> tuple[str, str]:
    """Return (plain text, html) bodies for the contact-saved email."""
    full_name = f"{entry.name} {entry.surname}".strip()
    lines = [
        f"{full_name} saved your contact information.",
        "",
        f"Name: {full_name}",
        f"Phone: {entry.number or '-'}",
    ]
    if entry.how_we_met:
        lines.append(f"How you met: {entry.how_we_met}")
    lines.append(f"Saved at: {entry.created_at.strftime('%Y-%m-%d %H:%M UTC')}")
    text = "\n".join(lines)
    rows = "".join(f"<p>{html.escape(line)}</p>" for line in lines if line)
    body = f"<html><body><h2>{html.escape(SUBJECT)}</h2>{rows}</body></html>"
    return text, body


class SmtpNotificationDispatcher:
    """Sends over implicit-TLS SMTP. Any failure surfaces as NotificationError."""

    def __init__(self, settings: SmtpSettings, *, timeout: float = 10.0) -> None:
        self._settings = settings
        self._timeout = timeout

    def _message(self, owner_email: str, entry: ContactEntry) -> EmailMessage:
        s = self._settings
        text, body = render_contact_saved(entry)
        msg = EmailMessage()
        msg["Subject"] = SUBJECT
        msg["From"] = formataddr((s.from_name, s.from_address or s.user or ""))
        msg["To"] = owner_email
        msg.set_content(text)
        msg.add_alternative(body, subtype="html")
        return msg

    def send_contact_saved(self, owner_email: str, entry: ContactEntry) -> None:
        s = self._settings
        if not s.host:
            raise NotificationError("SMTP host is not configured")
        msg = self._message(owner_email, entry)
        try:
            with smtplib.SMTP_SSL(s.host, s.port, timeout=self._timeout) as smtp:
                if s.user:
                    smtp.login(s.user, s.password or "")
                smtp.send_message(msg)
        except (smtplib.SMTPException, OSError) as e:
            raise NotificationError(f"Email send failed: {e}") from e
        logger.info("Email sent to: %s", owner_email)
