"""Email delivery for activation and password-reset links."""

import logging
import smtplib
from email.message import EmailMessage
from pathlib import Path
from typing import Protocol

from jinja2 import Environment, FileSystemLoader, select_autoescape

from agrirent.config import Settings

logger = logging.getLogger("agrirent")

TEMPLATES_DIR = Path(__file__).resolve().parents[1] / "templates" / "email"

_env = Environment(
    loader=FileSystemLoader(str(TEMPLATES_DIR)),
    autoescape=select_autoescape(["html"]),
)


def render_email(template_name: str, **context: object) -> str:
    """Render an HTML email body from ``templates/email``."""
    return _env.get_template(template_name).render(**context)


class Mailer(Protocol):
    def send(self, to: str, subject: str, html_body: str) -> bool:
        """Deliver a message. Returns False on failure instead of raising."""
        ...


class SMTPMailer:
    """Sends mail through an SMTP relay with an explicit socket timeout."""

    def __init__(
        self,
        host: str,
        port: int,
        username: str,
        password: str,
        sender: str,
        timeout: float = 10.0,
    ) -> None:
        self.host = host
        self.port = port
        self.username = username
        self.password = password
        self.sender = sender
        self.timeout = timeout

    def _build_message(self, to: str, subject: str, html_body: str) -> EmailMessage:
        message = EmailMessage()
        message["From"] = self.sender
        message["To"] = to
        message["Subject"] = subject
        message.set_content("This message requires an HTML-capable mail client.")
        message.add_alternative(html_body, subtype="html")
        return message

    def send(self, to: str, subject: str, html_body: str) -> bool:
        message = self._build_message(to, subject, html_body)
        try:
            if self.port == 465:
                with smtplib.SMTP_SSL(self.host, self.port, timeout=self.timeout) as smtp:
                    smtp.login(self.username, self.password)
                    smtp.send_message(message)
            else:
                with smtplib.SMTP(self.host, self.port, timeout=self.timeout) as smtp:
                    smtp.starttls()
                    smtp.login(self.username, self.password)
                    smtp.send_message(message)
        except (smtplib.SMTPException, OSError) as exc:
            logger.error("Email to %s failed: %s", to, exc)
            return False
        logger.info("Email sent to %s: %s", to, subject)
        return True


class ConsoleMailer:
    """Writes messages to the log instead of sending them. For development."""

    def send(self, to: str, subject: str, html_body: str) -> bool:
        logger.info("EMAIL to=%s subject=%r\n%s", to, subject, html_body)
        return True


def build_mailer(settings: Settings) -> Mailer:
    """Pick the SMTP mailer when credentials are configured, else the console mailer."""
    if not settings.email_configured:
        return ConsoleMailer()
    return SMTPMailer(
        host=settings.EMAIL_HOST,
        port=settings.EMAIL_PORT,
        username=settings.EMAIL_USER,
        password=settings.EMAIL_PASS,
        sender=settings.EMAIL_FROM,
        timeout=settings.EMAIL_TIMEOUT_SECONDS,
    )
