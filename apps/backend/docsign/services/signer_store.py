"""Signer store: signer records, capability links and signer completion."""

from email_validator import EmailNotValidError, validate_email
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from docsign.core.logging import get_logger
from docsign.core.security import build_sign_url, create_signing_token
from docsign.models import DocumentStatus, Signer, SignerStatus, User, utc_now
from docsign.models.base import generate_uuid
from docsign.services import signing_order
from docsign.services.errors import (
    InvalidState,
    NotFound,
    NotReady,
    OutOfSequence,
    ValidationError,
)
from docsign.services.field_store import field_store
from docsign.services.lifecycle import lifecycle_manager
from docsign.services.units import document_unit

LOGGER = get_logger(__name__)


def _clean_name(name: str | None) -> str:
    name = (name or "").strip()
    if not name:
        raise ValidationError("Signer name must not be empty")
    return name


def _clean_email(email: str | None) -> str:
    email = (email or "").strip()
    if not email:
        raise ValidationError("Signer email must not be empty")
    try:
        return validate_email(email, check_deliverability=False).normalized
    except EmailNotValidError as e:
        raise ValidationError(f"Invalid email address {email!r}: {e}")


class SignerStore:
    """Owns the signers of every document."""

    async def get_signer(self, db: AsyncSession, signer_id: str) -> Signer:
        signer = await db.get(Signer, signer_id)
        if signer is None:
            raise NotFound(f"Signer {signer_id} not found")
        return signer

    async def get_signer_by_token(self, db: AsyncSession, token: str) -> Signer | None:
        result = await db.execute(select(Signer).where(Signer.signing_token == token))
        return result.scalar_one_or_none()

    async def signers_for_document(self, db: AsyncSession, document_id: str) -> list[Signer]:
        return await lifecycle_manager.signers_for(db, document_id)

    async def _ensure_unique_email(
        self,
        db: AsyncSession,
        document_id: str,
        email: str,
        exclude_id: str | None = None,
    ) -> None:
        for other in await self.signers_for_document(db, document_id):
            if other.id != exclude_id and other.email.lower() == email.lower():
                raise ValidationError(f"{email} is already a signer of this document")

    async def add_signer(
        self,
        db: AsyncSession,
        document_id: str,
        name: str,
        email: str,
    ) -> Signer:
        """Add a signer to a draft document and issue their signing link."""
        async with document_unit(db, document_id):
            document = await lifecycle_manager.require_document(db, document_id)
            lifecycle_manager.ensure_draft(document, "add signers")
            name = _clean_name(name)
            email = _clean_email(email)
            await self._ensure_unique_email(db, document.id, email)

            signer_id = generate_uuid()
            token = create_signing_token(document.id, signer_id)
            signer = Signer(
                id=signer_id,
                document_id=document.id,
                position=await lifecycle_manager.next_position(db, Signer, document.id),
                name=name,
                email=email,
                status=SignerStatus.PENDING,
                signing_token=token,
                sign_url=build_sign_url(token),
            )
            db.add(signer)
            lifecycle_manager.touch(document)
            await db.flush()

        LOGGER.info(
            "Signer added",
            extra={"document_id": document_id, "signer_id": signer.id},
        )
        return signer

    async def add_owner_as_signer(
        self,
        db: AsyncSession,
        document_id: str,
        user: User,
    ) -> Signer:
        """Link the document owner as a signer, matched by email. Idempotent."""
        async with document_unit(db, document_id):
            for signer in await self.signers_for_document(db, document_id):
                if signer.email.lower() == user.email.lower():
                    return signer

            name = user.name or user.email.split("@", 1)[0]
            return await self.add_signer(db, document_id, name, user.email)

    async def update_signer(
        self,
        db: AsyncSession,
        signer_id: str,
        name: str,
        email: str,
    ) -> Signer:
        """Rename a signer or change their email while the document is a draft."""
        signer = await self.get_signer(db, signer_id)
        async with document_unit(db, signer.document_id):
            document = await lifecycle_manager.require_document(db, signer.document_id)
            lifecycle_manager.ensure_draft(document, "edit signers")
            name = _clean_name(name)
            email = _clean_email(email)
            await self._ensure_unique_email(db, document.id, email, exclude_id=signer.id)

            signer.name = name
            signer.email = email
            lifecycle_manager.touch(document)
            await db.flush()
        return signer

    async def delete_signer(self, db: AsyncSession, signer_id: str) -> None:
        """Remove a signer; their fields stay on the document, unassigned."""
        signer = await self.get_signer(db, signer_id)
        document_id = signer.document_id
        async with document_unit(db, document_id):
            document = await lifecycle_manager.require_document(db, document_id)
            lifecycle_manager.ensure_draft(document, "delete signers")

            unassigned = await field_store.unassign_signer(db, document_id, signer_id)
            if signer_id in (document.signing_order or []):
                document.signing_order = [
                    sid for sid in document.signing_order if sid != signer_id
                ]
            # Clear the foreign keys before the row goes
            await db.flush()
            await db.delete(signer)
            lifecycle_manager.touch(document)
            await db.flush()

        LOGGER.info(
            "Signer deleted",
            extra={
                "document_id": document_id,
                "signer_id": signer_id,
                "unassigned_fields": unassigned,
            },
        )

    async def complete_signer(
        self,
        db: AsyncSession,
        document_id: str,
        signer_id: str,
    ) -> Signer:
        """
        Mark a signer as finished.

        Document completion is not evaluated here; the caller follows up with
        ``lifecycle_manager.evaluate_completion`` in the same unit.

        Raises:
            NotFound: unknown signer, or a signer of another document.
            InvalidState: document not pending, or signer already completed.
            OutOfSequence: sequential signing and signers ahead are pending.
            NotReady: required fields assigned to the signer are incomplete.
        """
        async with document_unit(db, document_id):
            signer = await self.get_signer(db, signer_id)
            if signer.document_id != document_id:
                raise NotFound(f"Signer {signer_id} not found")

            document = await lifecycle_manager.require_document(db, document_id)
            if document.status != DocumentStatus.PENDING:
                raise InvalidState(
                    f"Cannot complete signing: document is {document.status.value}"
                )
            if signer.status == SignerStatus.COMPLETED:
                raise InvalidState(f"{signer.name} has already completed signing")

            if document.sequential_signing:
                signers = await self.signers_for_document(db, document_id)
                order = document.signing_order or []
                if not signing_order.is_eligible(signer.id, signers, order, True):
                    ahead = signing_order.waiting_for(signer.id, signers, order)
                    raise OutOfSequence(
                        "Signing order required. Waiting for: "
                        + ", ".join(s.name for s in ahead),
                        waiting_for=[s.name for s in ahead],
                    )

            fields = await field_store.fields_for_signer(db, document_id, signer.id)
            missing = [f.id for f in fields if f.required and not f.completed]
            if missing:
                raise NotReady(
                    f"Required fields not completed: {missing}",
                    [NotReady.REQUIRED_FIELDS_INCOMPLETE],
                )

            signer.status = SignerStatus.COMPLETED
            signer.completed_at = utc_now()
            lifecycle_manager.touch(document)
            await db.flush()

        LOGGER.info(
            "Signer completed",
            extra={"document_id": document_id, "signer_id": signer.id},
        )
        return signer


# Singleton instance
signer_store = SignerStore()
