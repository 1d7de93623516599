"""Email notification sinks, dispatch and message builders."""

from __future__ import annotations

import logging
import smtplib
from email.message import EmailMessage
from pathlib import Path
from typing import Any, Protocol

from fastapi import BackgroundTasks
from jinja2 import Environment, FileSystemLoader, select_autoescape

from sheltersync.core.config import get_settings

logger = logging.getLogger(__name__)

__all__ = [
    "LogNotificationSink",
    "NotificationDispatcher",
    "NotificationSink",
    "SmtpNotificationSink",
    "build_adoption_approved_email",
    "build_adoption_rejected_email",
    "build_new_request_email",
    "build_password_reset_email",
    "build_verification_email",
    "get_default_sink",
]

_TEMPLATE_DIR = Path(__file__).resolve().parents[1] / "templates"
_ENV = Environment(
    loader=FileSystemLoader(_TEMPLATE_DIR),
    autoescape=select_autoescape(["html", "xml"]),
)


class NotificationSink(Protocol):
    """Anything that can deliver a message to an address."""

    def send(self, to: str, subject: str, body: str) -> None: ...


class SmtpNotificationSink:
    """Deliver HTML email through the configured SMTP relay."""

    def __init__(
        self,
        *,
        host: str,
        port: int,
        username: str | None = None,
        password: str | None = None,
        sender: str | None = None,
        timeout: float = 5,
    ) -> None:
        self.host = host
        self.port = port
        self.username = username
        self.password = password
        self.sender = sender or username or "no-reply@sheltersync.local"
        self.timeout = timeout

    def send(self, to: str, subject: str, body: str) -> None:
        message = EmailMessage()
        message["Subject"] = subject
        message["To"] = to
        message["From"] = self.sender
        message.set_content("This message contains HTML content.")
        message.add_alternative(body, subtype="html")

        with smtplib.SMTP(self.host, self.port, timeout=self.timeout) as server:
            if self.username and self.password:
                try:
                    server.starttls()
                except smtplib.SMTPException:
                    logger.debug("SMTP server does not support STARTTLS")
                server.login(self.username, self.password)
            server.send_message(message)


class LogNotificationSink:
    """Fallback sink used when no SMTP relay is configured."""

    def send(self, to: str, subject: str, body: str) -> None:
        logger.info("SMTP disabled; would send '%s' to %s", subject, to)


def get_default_sink() -> NotificationSink:
    settings = get_settings()
    if settings.smtp_enabled:
        return SmtpNotificationSink(
            host=settings.smtp_host or "",
            port=settings.smtp_port or 0,
            username=settings.smtp_username,
            password=settings.smtp_password,
            sender=settings.smtp_from,
        )
    return LogNotificationSink()


class NotificationDispatcher:
    """Fire-and-forget delivery with a bounded number of attempts.

    When ``background_tasks`` is given, delivery is queued to run after the
    response has been sent; otherwise it happens inline. Either way a failed
    delivery is logged and swallowed, never raised to the caller.
    """

    def __init__(
        self,
        sink: NotificationSink,
        background_tasks: BackgroundTasks | None = None,
        *,
        max_attempts: int | None = None,
    ) -> None:
        self.sink = sink
        self.background_tasks = background_tasks
        if max_attempts is None:
            max_attempts = get_settings().notification_max_attempts
        self.max_attempts = max(1, max_attempts)

    def dispatch(self, *, to: str | None, subject: str, body: str) -> None:
        if not to:
            logger.debug("No recipient for '%s'; skipping", subject)
            return
        if self.background_tasks is not None:
            self.background_tasks.add_task(self.deliver, to, subject, body)
        else:
            self.deliver(to, subject, body)

    def deliver(self, to: str, subject: str, body: str) -> bool:
        for attempt in range(1, self.max_attempts + 1):
            try:
                self.sink.send(to, subject, body)
            except Exception:
                logger.exception(
                    "Notification attempt %s/%s to %s failed",
                    attempt,
                    self.max_attempts,
                    to,
                )
                continue
            logger.info("Notification '%s' sent to %s", subject, to)
            return True
        return False


def _render(template_name: str, **context: Any) -> str:
    return _ENV.get_template(template_name).render(**context)


def _client_link(path: str) -> str:
    return f"{get_settings().client_url.rstrip('/')}{path}"


def build_new_request_email(
    *, shelter_name: str, pet_name: str, adopter_name: str, message: str
) -> tuple[str, str]:
    subject = f"New Adoption Request - {pet_name}"
    body = _render(
        "adoption_request_received.html",
        shelter_name=shelter_name,
        pet_name=pet_name,
        adopter_name=adopter_name,
        message=message,
        dashboard_url=_client_link("/shelter/dashboard"),
    )
    return subject, body


def build_adoption_approved_email(
    *, adopter_name: str, pet_name: str, shelter_name: str, response: str | None
) -> tuple[str, str]:
    subject = f"Adoption Request Approved - {pet_name}"
    body = _render(
        "adoption_approved.html",
        adopter_name=adopter_name,
        pet_name=pet_name,
        shelter_name=shelter_name,
        response=response,
    )
    return subject, body


def build_adoption_rejected_email(
    *, adopter_name: str, pet_name: str, response: str | None
) -> tuple[str, str]:
    subject = f"Adoption Request Update - {pet_name}"
    body = _render(
        "adoption_rejected.html",
        adopter_name=adopter_name,
        pet_name=pet_name,
        response=response,
        browse_url=_client_link("/pets"),
    )
    return subject, body


def build_verification_email(*, name: str, token: str) -> tuple[str, str]:
    subject = "Verify your ShelterSync email"
    body = _render(
        "verify_email.html",
        name=name,
        token=token,
        verify_url=_client_link(f"/verify-email/{token}"),
    )
    return subject, body


def build_password_reset_email(
    *, name: str, token: str, ttl_minutes: int
) -> tuple[str, str]:
    subject = "Reset your ShelterSync password"
    body = _render(
        "password_reset.html",
        name=name,
        token=token,
        ttl_minutes=ttl_minutes,
        reset_url=_client_link(f"/reset-password/{token}"),
    )
    return subject, body
