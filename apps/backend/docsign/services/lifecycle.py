"""Document lifecycle manager: the only writer of document status."""

from dataclasses import dataclass, field
from typing import BinaryIO

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from docsign.core.config import get_settings
from docsign.core.logging import get_logger
from docsign.models import (
    Document,
    DocumentStatus,
    Field,
    Signer,
    SignerStatus,
    User,
    utc_now,
)
from docsign.models.base import generate_uuid
from docsign.services import signing_order
from docsign.services.errors import (
    InvalidState,
    NotFound,
    NotReady,
    OutOfSequence,
    ValidationError,
)
from docsign.services.notifications import notification_service
from docsign.services.storage import storage_service
from docsign.services.units import document_unit

settings = get_settings()
LOGGER = get_logger(__name__)

COPY_SUFFIX = " (Copy)"


@dataclass
class DocumentProgress:
    """Aggregated completion counts for one document."""

    document_id: str
    status: DocumentStatus
    total_signers: int
    completed_signers: int
    total_fields: int
    completed_fields: int
    required_fields: int
    completed_required_fields: int
    eligible_signer_ids: list[str] = field(default_factory=list)

    @property
    def percent_complete(self) -> int:
        if self.total_signers == 0:
            return 0
        return round(100 * self.completed_signers / self.total_signers)


class DocumentLifecycleManager:
    """Owns document records and the draft -> pending -> completed machine."""

    # --- Reads ---

    async def require_document(
        self,
        db: AsyncSession,
        document_id: str,
        owner_id: str | None = None,
    ) -> Document:
        """Load a document or raise ``NotFound``; documents of other owners are hidden."""
        document = await db.get(Document, document_id)
        if document is None or (owner_id is not None and document.owner_id != owner_id):
            raise NotFound(f"Document {document_id} not found")
        return document

    async def get_document(
        self,
        db: AsyncSession,
        document_id: str,
        owner_id: str | None = None,
    ) -> Document:
        """
        Read a document.

        Pending documents are re-evaluated on every read so that a signer
        completion that was committed without its document transition is
        picked up here.
        """
        document = await self.require_document(db, document_id, owner_id)
        if document.status == DocumentStatus.PENDING:
            document = await self.evaluate_completion(db, document_id)
        return document

    async def list_documents(
        self,
        db: AsyncSession,
        owner_id: str,
        status: DocumentStatus | None = None,
    ) -> list[Document]:
        """
        List an owner's documents, newest first.

        Pending documents are re-evaluated like in ``get_document``; the status
        filter is applied again afterwards so a healed document moves tabs.
        """
        query = select(Document).where(Document.owner_id == owner_id)
        if status:
            query = query.where(Document.status == status)

        query = query.order_by(Document.created_at.desc())
        result = await db.execute(query)
        documents = list(result.scalars().all())

        for document in documents:
            if document.status == DocumentStatus.PENDING:
                await self.evaluate_completion(db, document.id)

        if status:
            documents = [d for d in documents if d.status == status]
        return documents

    async def signers_for(self, db: AsyncSession, document_id: str) -> list[Signer]:
        result = await db.execute(
            select(Signer)
            .where(Signer.document_id == document_id)
            .order_by(Signer.position, Signer.created_at)
        )
        return list(result.scalars().all())

    async def fields_for(self, db: AsyncSession, document_id: str) -> list[Field]:
        result = await db.execute(
            select(Field)
            .where(Field.document_id == document_id)
            .order_by(Field.position, Field.created_at)
        )
        return list(result.scalars().all())

    async def next_position(
        self,
        db: AsyncSession,
        model: type[Field] | type[Signer],
        document_id: str,
    ) -> int:
        """Next insertion rank for a field or signer; call inside the document's unit."""
        highest = await db.scalar(
            select(func.max(model.position)).where(model.document_id == document_id)
        )
        return (highest or 0) + 1

    async def document_progress(
        self,
        db: AsyncSession,
        document_id: str,
        owner_id: str | None = None,
    ) -> DocumentProgress:
        """Summarise how far a document has come."""
        document = await self.get_document(db, document_id, owner_id)
        signers = await self.signers_for(db, document_id)
        fields = await self.fields_for(db, document_id)
        required = [f for f in fields if f.required]

        eligible: list[str] = []
        if document.status == DocumentStatus.PENDING:
            eligible_ids = signing_order.eligible_signers(
                signers, document.signing_order or [], document.sequential_signing
            )
            eligible = [s.id for s in signers if s.id in eligible_ids]

        return DocumentProgress(
            document_id=document.id,
            status=document.status,
            total_signers=len(signers),
            completed_signers=sum(
                1 for s in signers if s.status == SignerStatus.COMPLETED
            ),
            total_fields=len(fields),
            completed_fields=sum(1 for f in fields if f.completed),
            required_fields=len(required),
            completed_required_fields=sum(1 for f in required if f.completed),
            eligible_signer_ids=eligible,
        )

    # --- Guards used by the stores ---

    def ensure_draft(self, document: Document, action: str) -> None:
        """Raise ``InvalidState`` unless the document is still a draft."""
        if document.status != DocumentStatus.DRAFT:
            raise InvalidState(
                f"Cannot {action}: document is {document.status.value}, not draft"
            )

    def touch(self, document: Document) -> None:
        """Record a content-affecting change."""
        document.updated_at = utc_now()

    # --- Writes ---

    async def create_document(
        self,
        db: AsyncSession,
        owner: User,
        name: str | None,
        filename: str,
        content: bytes | BinaryIO,
        mime_type: str,
    ) -> Document:
        """Store an upload and create its draft document."""
        if mime_type not in settings.allowed_mime_types:
            raise ValidationError(
                f"Invalid file type. Allowed types: {settings.allowed_mime_types}"
            )
        if hasattr(content, "read"):
            content = content.read()
        if not content:
            raise ValidationError("Uploaded file is empty")
        if len(content) > settings.max_upload_size:
            raise ValidationError(
                f"File too large. Maximum size is {settings.max_upload_size} bytes"
            )

        doc_name = (name or "").strip() or filename or "Untitled Document"
        document_id = generate_uuid()

        file_ref = None
        try:
            async with document_unit(db, document_id):
                file_ref = await storage_service.store(
                    document_id, filename or "document", content, mime_type
                )
                document = Document(
                    id=document_id,
                    owner_id=owner.id,
                    name=doc_name,
                    original_filename=file_ref.filename,
                    file_path=file_ref.path,
                    file_hash=file_ref.sha256,
                    file_size=file_ref.size,
                    mime_type=file_ref.mime_type,
                    status=DocumentStatus.DRAFT,
                    sequential_signing=False,
                    signing_order=[],
                )
                db.add(document)
                await db.flush()
        except Exception:
            # The row was rolled back, so nothing references the bytes
            if file_ref is not None:
                await storage_service.delete_file(file_ref.path)
            raise

        LOGGER.info(
            "Document created",
            extra={"document_id": document.id, "owner_id": owner.id},
        )
        return document

    async def rename_document(
        self,
        db: AsyncSession,
        document_id: str,
        name: str,
        owner_id: str | None = None,
    ) -> Document:
        name = (name or "").strip()
        if not name:
            raise ValidationError("Document name must not be empty")

        async with document_unit(db, document_id):
            document = await self.require_document(db, document_id, owner_id)
            document.name = name
            self.touch(document)
        return document

    async def send(
        self,
        db: AsyncSession,
        document_id: str,
        owner_id: str | None = None,
    ) -> Document:
        """
        Move a draft to pending.

        Raises:
            InvalidState: the document is not a draft.
            NotReady: with every failing reason code, so the caller can show
                all of them at once.
        """
        async with document_unit(db, document_id):
            document = await self.require_document(db, document_id, owner_id)
            self.ensure_draft(document, "send document")

            signers = await self.signers_for(db, document_id)
            fields = await self.fields_for(db, document_id)

            reasons = []
            messages = []
            if not signers:
                reasons.append(NotReady.NO_SIGNERS)
                messages.append("add at least one signer")
            if not fields:
                reasons.append(NotReady.NO_FIELDS)
                messages.append("add at least one field")
            if any(f.assigned_to is None for f in fields):
                reasons.append(NotReady.UNASSIGNED_FIELDS)
                messages.append("assign every field to a signer")
            if document.sequential_signing and signing_order.uncovered_signers(
                signers, document.signing_order or []
            ):
                reasons.append(NotReady.SIGNING_ORDER_INCOMPLETE)
                messages.append("put every signer in the signing order")

            if reasons:
                raise NotReady(
                    "Document is not ready to send: " + "; ".join(messages),
                    reasons,
                )

            document.status = DocumentStatus.PENDING
            document.sent_at = utc_now()
            document.signing_order = list(document.signing_order or [])
            self.touch(document)

        LOGGER.info(
            "Document sent",
            extra={
                "document_id": document.id,
                "signers": len(signers),
                "sequential": document.sequential_signing,
            },
        )
        await self._invite_eligible(document, signers, already_invited=set())
        return document

    async def set_signing_order(
        self,
        db: AsyncSession,
        document_id: str,
        order: list[str] | None = None,
        sequential_enabled: bool | None = None,
        owner_id: str | None = None,
    ) -> Document:
        """
        Replace the signing order and/or toggle sequential mode.

        Allowed while draft, and while pending as long as nobody has signed.
        """
        async with document_unit(db, document_id):
            document = await self.require_document(db, document_id, owner_id)
            if document.status == DocumentStatus.COMPLETED:
                raise InvalidState("Cannot change the signing order of a completed document")

            signers = await self.signers_for(db, document_id)
            if document.status == DocumentStatus.PENDING and any(
                s.status == SignerStatus.COMPLETED for s in signers
            ):
                raise InvalidState(
                    "Cannot change the signing order after a signer has completed"
                )

            new_order = (
                signing_order.normalize_order(order, signers)
                if order is not None
                else list(document.signing_order or [])
            )
            sequential = (
                document.sequential_signing
                if sequential_enabled is None
                else sequential_enabled
            )

            if (
                document.status == DocumentStatus.PENDING
                and sequential
                and signing_order.uncovered_signers(signers, new_order)
            ):
                raise NotReady(
                    "A sent document's signing order must include every signer",
                    [NotReady.SIGNING_ORDER_INCOMPLETE],
                )

            before = signing_order.eligible_signers(
                signers, document.signing_order or [], document.sequential_signing
            )
            document.signing_order = new_order
            document.sequential_signing = sequential
            self.touch(document)

        if document.status == DocumentStatus.PENDING:
            await self._invite_eligible(document, signers, already_invited=before)
        return document

    async def evaluate_completion(self, db: AsyncSession, document_id: str) -> Document:
        """
        Complete a pending document once every signer has completed.

        Idempotent: draft and completed documents are returned unchanged.
        """
        completed_now = False
        async with document_unit(db, document_id):
            document = await self.require_document(db, document_id)
            if document.status != DocumentStatus.PENDING:
                return document

            signers = await self.signers_for(db, document_id)
            if signers and all(s.status == SignerStatus.COMPLETED for s in signers):
                document.status = DocumentStatus.COMPLETED
                document.completed_at = utc_now()
                self.touch(document)
                completed_now = True

        if completed_now:
            LOGGER.info("Document completed", extra={"document_id": document.id})
            owner = await db.get(User, document.owner_id)
            notification_service.completed(document, signers, owner)
        return document

    async def delete_document(
        self,
        db: AsyncSession,
        document_id: str,
        owner_id: str | None = None,
    ) -> None:
        """Delete a document in any state together with its fields and signers."""
        async with document_unit(db, document_id):
            await self.require_document(db, document_id, owner_id)
            result = await db.execute(
                select(Document)
                .options(selectinload(Document.fields), selectinload(Document.signers))
                .where(Document.id == document_id)
            )
            document = result.scalar_one()
            file_path = document.file_path

            shared = await db.scalar(
                select(func.count())
                .select_from(Document)
                .where(Document.file_path == file_path, Document.id != document_id)
            )
            await db.delete(document)

        # Duplicates share the stored file
        if not shared:
            await storage_service.delete_file(file_path)

        LOGGER.info("Document deleted", extra={"document_id": document_id})

    async def duplicate_document(
        self,
        db: AsyncSession,
        document_id: str,
        owner_id: str | None = None,
    ) -> Document:
        """Copy a document's name and file into a fresh draft without fields or signers."""
        original = await self.require_document(db, document_id, owner_id)
        copy_id = generate_uuid()

        async with document_unit(db, copy_id):
            copy = Document(
                id=copy_id,
                owner_id=original.owner_id,
                name=f"{original.name}{COPY_SUFFIX}",
                original_filename=original.original_filename,
                file_path=original.file_path,
                file_hash=original.file_hash,
                file_size=original.file_size,
                mime_type=original.mime_type,
                status=DocumentStatus.DRAFT,
                sequential_signing=False,
                signing_order=[],
            )
            db.add(copy)
            await db.flush()

        LOGGER.info(
            "Document duplicated",
            extra={"document_id": copy.id, "source_document_id": original.id},
        )
        return copy

    async def resend_invitation(
        self,
        db: AsyncSession,
        document_id: str,
        signer_id: str,
        owner_id: str | None = None,
    ) -> Signer:
        """Send a pending signer their link again."""
        document = await self.get_document(db, document_id, owner_id)
        if document.status != DocumentStatus.PENDING:
            raise InvalidState(
                f"Cannot resend invitations: document is {document.status.value}"
            )

        signers = await self.signers_for(db, document_id)
        signer = next((s for s in signers if s.id == signer_id), None)
        if signer is None:
            raise NotFound(f"Signer {signer_id} not found")
        if signer.status == SignerStatus.COMPLETED:
            raise InvalidState(f"Signer {signer.name} has already completed")

        if document.sequential_signing and not signing_order.is_eligible(
            signer.id, signers, document.signing_order or [], True
        ):
            ahead = signing_order.waiting_for(signer.id, signers, document.signing_order or [])
            raise OutOfSequence(
                f"{signer.name} cannot sign yet",
                waiting_for=[s.name for s in ahead],
            )

        notification_service.remind(document, signer)
        return signer

    async def _invite_eligible(
        self,
        document: Document,
        signers: list[Signer],
        already_invited: set[str],
    ) -> None:
        eligible = signing_order.eligible_signers(
            signers, document.signing_order or [], document.sequential_signing
        )
        for signer in signers:
            if signer.id in eligible and signer.id not in already_invited:
                notification_service.invite(document, signer)


# Singleton instance
lifecycle_manager = DocumentLifecycleManager()
