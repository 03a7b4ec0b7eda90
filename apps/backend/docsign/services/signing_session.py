"""Signing session orchestrator: the signer-facing entry point."""

from dataclasses import dataclass

from sqlalchemy.ext.asyncio import AsyncSession

from docsign.core.logging import get_logger
from docsign.core.security import verify_signing_token
from docsign.models import (
    Document,
    DocumentStatus,
    Field,
    Signer,
    SignerStatus,
    utc_now,
)
from docsign.services import signing_order
from docsign.services.errors import (
    Forbidden,
    InvalidState,
    NotFound,
    OutOfSequence,
)
from docsign.services.field_store import field_store
from docsign.services.lifecycle import lifecycle_manager
from docsign.services.notifications import notification_service
from docsign.services.signer_store import signer_store
from docsign.services.units import document_unit

LOGGER = get_logger(__name__)


@dataclass
class SigningSession:
    """What a signer sees when they open their link."""

    document: Document
    signer: Signer
    fields: list[Field]
    can_sign: bool


@dataclass
class FinishResult:
    """Outcome of a signer confirming their session."""

    signer: Signer
    document: Document

    @property
    def document_completed(self) -> bool:
        return self.document.status == DocumentStatus.COMPLETED


class SigningSessionOrchestrator:
    """Resolves signing links and drives signer and document completion."""

    async def resolve_token(self, db: AsyncSession, token: str) -> tuple[str, str]:
        """Turn a signing link token into ``(document_id, signer_id)``."""
        payload = verify_signing_token(token)
        if not payload or not payload.get("sub") or not payload.get("document_id"):
            raise Forbidden("Invalid signing link")

        signer = await signer_store.get_signer_by_token(db, token)
        if signer is None:
            raise Forbidden("Signing link is no longer valid")
        return payload["document_id"], payload["sub"]

    async def _load(
        self,
        db: AsyncSession,
        document_id: str,
        signer_id: str,
    ) -> tuple[Document, Signer]:
        document = await lifecycle_manager.require_document(db, document_id)
        signer = await db.get(Signer, signer_id)
        if signer is None or signer.document_id != document.id:
            raise NotFound(f"Signer {signer_id} not found")
        return document, signer

    async def _check_turn(
        self,
        db: AsyncSession,
        document: Document,
        signer: Signer,
    ) -> None:
        if not document.sequential_signing:
            return
        signers = await lifecycle_manager.signers_for(db, document.id)
        order = document.signing_order or []
        if not signing_order.is_eligible(signer.id, signers, order, True):
            ahead = [s.name for s in signing_order.waiting_for(signer.id, signers, order)]
            raise OutOfSequence(
                "Signing order required. Waiting for: " + ", ".join(ahead),
                waiting_for=ahead,
            )

    def _ensure_signable(self, document: Document, signer: Signer) -> None:
        if document.status != DocumentStatus.PENDING:
            raise InvalidState(f"This document is {document.status.value}")
        if signer.status == SignerStatus.COMPLETED:
            raise InvalidState("You have already completed signing")

    async def open_session(
        self,
        db: AsyncSession,
        document_id: str,
        signer_id: str,
        token: str,
    ) -> SigningSession:
        """
        Open a signer's session.

        Completed signers and completed documents get a read-only session.
        A signer whose turn has not come yet is turned away with
        ``OutOfSequence``.
        """
        async with document_unit(db, document_id):
            document, signer = await self._load(db, document_id, signer_id)
            if signer.signing_token != token:
                raise Forbidden("Signing link does not match this signer")

            document = await lifecycle_manager.get_document(db, document.id)
            if document.status == DocumentStatus.DRAFT:
                raise InvalidState("This document has not been sent yet")

            can_sign = (
                document.status == DocumentStatus.PENDING
                and signer.status == SignerStatus.PENDING
            )
            if can_sign:
                await self._check_turn(db, document, signer)
                if signer.viewed_at is None:
                    signer.viewed_at = utc_now()

            fields = await field_store.fields_for_signer(db, document.id, signer.id)

        return SigningSession(
            document=document,
            signer=signer,
            fields=fields,
            can_sign=can_sign,
        )

    async def submit_field(
        self,
        db: AsyncSession,
        document_id: str,
        signer_id: str,
        field_id: str,
        value: str | None,
    ) -> Field:
        """Capture a value for one of the signer's fields."""
        async with document_unit(db, document_id):
            document, signer = await self._load(db, document_id, signer_id)
            field = await field_store.get_field(db, field_id)
            if field.document_id != document.id:
                raise NotFound(f"Field {field_id} not found")

            self._ensure_signable(document, signer)
            await self._check_turn(db, document, signer)
            field = await field_store.complete_field(db, field.id, signer.id, value)

        LOGGER.info(
            "Field submitted",
            extra={"document_id": document_id, "signer_id": signer_id, "field_id": field_id},
        )
        return field

    async def finish_session(
        self,
        db: AsyncSession,
        document_id: str,
        signer_id: str,
    ) -> FinishResult:
        """
        Confirm a signer's session.

        Signer completion and the document completion check are committed
        together; if they ever drift apart the next read of the document
        repairs it.
        """
        async with document_unit(db, document_id):
            document, signer = await self._load(db, document_id, signer_id)
            self._ensure_signable(document, signer)
            await self._check_turn(db, document, signer)

            signer = await signer_store.complete_signer(db, document.id, signer.id)
            document = await lifecycle_manager.evaluate_completion(db, document.id)

            next_up: list[Signer] = []
            if document.status == DocumentStatus.PENDING and document.sequential_signing:
                signers = await lifecycle_manager.signers_for(db, document.id)
                eligible = signing_order.eligible_signers(
                    signers, document.signing_order or [], True
                )
                next_up = [s for s in signers if s.id in eligible]

        for upcoming in next_up:
            notification_service.invite(document, upcoming)

        return FinishResult(signer=signer, document=document)


# Singleton instance
signing_orchestrator = SigningSessionOrchestrator()
