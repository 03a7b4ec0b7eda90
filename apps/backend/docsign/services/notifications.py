"""Notification dispatch for signer invitations and completion notices."""

import enum
from dataclasses import dataclass, field
from typing import Callable

from docsign.core.config import get_settings
from docsign.core.logging import get_logger
from docsign.models import Document, Signer, User

settings = get_settings()
LOGGER = get_logger(__name__)


class NotificationKind(str, enum.Enum):
    """Kinds of messages the core asks to have delivered."""

    INVITATION = "invitation"
    REMINDER = "reminder"
    COMPLETED = "completed"


@dataclass
class Notification:
    """A message to be delivered by the outside world."""

    kind: NotificationKind
    to: list[str]
    subject: str
    body: str
    document_id: str
    metadata: dict[str, str] = field(default_factory=dict)


Transport = Callable[[Notification], None]


def log_transport(notification: Notification) -> None:
    """Default transport: write the message to the log instead of mailing it."""
    LOGGER.info(
        "Notification %s for document %s to %s",
        notification.kind.value,
        notification.document_id,
        ", ".join(notification.to),
        extra={"subject": notification.subject},
    )


class NotificationService:
    """
    Builds notifications and hands them to a transport.

    Delivery is fire and forget: a failing transport is logged and never
    turns into an error for the lifecycle operation that triggered it.
    """

    def __init__(self, transport: Transport | None = None):
        self.transport: Transport = transport or log_transport

    def invite(self, document: Document, signer: Signer) -> None:
        """Invite a signer to their signing session."""
        self._dispatch(
            Notification(
                kind=NotificationKind.INVITATION,
                to=[signer.email],
                subject=f"Please sign: {document.name}",
                body=(
                    f"Hello {signer.name},\n\n"
                    f"You have been asked to sign \"{document.name}\".\n"
                    f"Open your signing session: {signer.sign_url}\n"
                ),
                document_id=document.id,
                metadata={"signer_id": signer.id},
            )
        )

    def remind(self, document: Document, signer: Signer) -> None:
        """Resend the invitation to a signer who has not finished."""
        self._dispatch(
            Notification(
                kind=NotificationKind.REMINDER,
                to=[signer.email],
                subject=f"Reminder: please sign {document.name}",
                body=(
                    f"Hello {signer.name},\n\n"
                    f"\"{document.name}\" is still waiting for your signature.\n"
                    f"Open your signing session: {signer.sign_url}\n"
                ),
                document_id=document.id,
                metadata={"signer_id": signer.id},
            )
        )

    def completed(
        self,
        document: Document,
        signers: list[Signer],
        owner: User | None = None,
    ) -> None:
        """Tell the owner and every signer that the document is executed."""
        recipients = [s.email for s in signers]
        if owner is not None and owner.email not in recipients:
            recipients.insert(0, owner.email)

        self._dispatch(
            Notification(
                kind=NotificationKind.COMPLETED,
                to=recipients,
                subject=f"Completed: {document.name}",
                body=f"All parties have signed \"{document.name}\".\n",
                document_id=document.id,
            )
        )

    def _dispatch(self, notification: Notification) -> None:
        if settings.email_from:
            notification.metadata.setdefault("from", settings.email_from)
        try:
            self.transport(notification)
        except Exception:
            LOGGER.error(
                "Failed to dispatch %s notification",
                notification.kind.value,
                exc_info=True,
                extra={"document_id": notification.document_id},
            )


# Singleton instance
notification_service = NotificationService()
