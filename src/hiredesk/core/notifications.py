from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Protocol

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class OutgoingMail:
    to: str
    subject: str
    body: str


class Mailer(Protocol):
    def send(self, message: OutgoingMail) -> None: ...


class LogMailer:
    """Stand-in transport: records that a message went out, never its body."""

    def send(self, message: OutgoingMail) -> None:
        logger.info("Mail queued to=%s subject=%s", message.to, message.subject)


@dataclass
class MemoryMailer:
    outbox: list[OutgoingMail] = field(default_factory=list)

    def send(self, message: OutgoingMail) -> None:
        self.outbox.append(message)


def approval_request_mail(to: str, *, username: str, company_name: str, link: str) -> OutgoingMail:
    return OutgoingMail(
        to=to,
        subject=f"New account awaiting approval: {company_name}",
        body=(
            f"{username} ({company_name}) signed up and is waiting for approval.\n\n"
            f"Approve the account: {link}\n"
        ),
    )


def approved_mail(to: str, *, username: str) -> OutgoingMail:
    return OutgoingMail(
        to=to,
        subject="Your account has been approved",
        body=f"Hi {username}, your account is approved. You can now sign in.\n",
    )


def password_reset_mail(to: str, *, link: str) -> OutgoingMail:
    return OutgoingMail(
        to=to,
        subject="Reset your password",
        body=f"Use this link to choose a new password:\n\n{link}\n",
    )


def deliver(mailer: Mailer, message: OutgoingMail) -> None:
    # Delivery problems never undo the account change that triggered the mail.
    try:
        mailer.send(message)
    except Exception as exc:  # noqa: BLE001
        logger.error("Mail delivery failed to=%s subject=%s: %s", message.to, message.subject, exc)
