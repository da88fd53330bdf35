"""Outgoing mail transports.

`SmtpMailer` talks to a real SMTP server (Gmail by default, over implicit TLS).
`InMemoryMailer` keeps messages in a list; used for local development and tests.
"""

from __future__ import annotations

import smtplib
import ssl
from email.message import EmailMessage
from typing import List, Protocol

from storefront.config import Config


def _debug(msg: str) -> None:
    print(f"[mail] {msg}")


class MailError(RuntimeError):
    """The transport could not hand the message over."""


class Mailer(Protocol):
    """Interface for sending one message."""

    sender: str | None

    def send(self, message: EmailMessage) -> None:
        ...


class SmtpMailer:
    def __init__(
        self,
        *,
        host: str,
        port: int,
        user: str | None,
        password: str | None,
        timeout: float = 30.0,
    ):
        self.host = host
        self.port = int(port)
        self.user = user
        self.password = password
        self.timeout = float(timeout)

    @property
    def sender(self) -> str | None:
        return self.user

    def send(self, message: EmailMessage) -> None:
        if not self.user or not self.password:
            raise MailError("mail_credentials_missing")
        try:
            if self.port == 465:
                with smtplib.SMTP_SSL(
                    self.host, self.port, timeout=self.timeout, context=ssl.create_default_context()
                ) as smtp:
                    smtp.login(self.user, self.password)
                    smtp.send_message(message)
            else:
                with smtplib.SMTP(self.host, self.port, timeout=self.timeout) as smtp:
                    smtp.starttls(context=ssl.create_default_context())
                    smtp.login(self.user, self.password)
                    smtp.send_message(message)
        except (smtplib.SMTPException, OSError) as e:
            raise MailError(f"smtp_error: {e}") from e
        _debug(f"Sent '{message['Subject']}' to {message['To']}")


class InMemoryMailer:
    def __init__(self, sender: str | None = "noreply@localhost"):
        self.sender = sender
        self.outbox: List[EmailMessage] = []

    def send(self, message: EmailMessage) -> None:
        self.outbox.append(message)
        _debug(f"Queued '{message['Subject']}' in memory ({len(self.outbox)} total)")

    def reset(self) -> None:
        self.outbox.clear()


def build_mailer(cfg: Config) -> Mailer:
    backend = (cfg.MAIL_BACKEND or "smtp").strip().lower()
    if backend == "memory":
        return InMemoryMailer(sender=cfg.MAIL_USER or "noreply@localhost")
    return SmtpMailer(
        host=cfg.MAIL_SMTP_HOST,
        port=cfg.MAIL_SMTP_PORT,
        user=cfg.MAIL_USER,
        password=cfg.MAIL_PASSWORD,
        timeout=cfg.MAIL_TIMEOUT_SECONDS,
    )
