"""Field store: placement, assignment and completion of document fields."""

from datetime import date

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from docsign.core.logging import get_logger
from docsign.models import Field, FieldType, Signer, utc_now
from docsign.schemas import BoundingBox, FieldUpdate
from docsign.services.errors import Forbidden, InvalidState, NotFound, ValidationError
from docsign.services.lifecycle import lifecycle_manager
from docsign.services.units import document_unit

LOGGER = get_logger(__name__)

CHECKBOX_VALUES = ("true", "false")


def _validate_placement(page: int, bbox: BoundingBox) -> None:
    if page < 1:
        raise ValidationError(f"Invalid page number {page}. Pages start at 1")
    if bbox.width <= 0 or bbox.height <= 0:
        raise ValidationError("Field width and height must be positive")


def normalize_value(field_type: FieldType, value: str | None) -> str:
    """
    Validate a captured value for a field type and return what gets stored.

    Checkbox fields store "true" or "false" (an empty value means unchecked).
    Date fields must be ISO dates. Every other type needs non-blank content.
    """
    value = "" if value is None else value

    if field_type == FieldType.CHECKBOX:
        normalized = value.strip().lower() or "false"
        if normalized not in CHECKBOX_VALUES:
            raise ValidationError('Checkbox value must be "true" or "false"')
        return normalized

    if not value.strip():
        raise ValidationError("This field is required")

    if field_type == FieldType.DATE:
        try:
            date.fromisoformat(value.strip())
        except ValueError:
            raise ValidationError(f"Invalid date {value!r}, expected YYYY-MM-DD")
        return value.strip()

    return value


class FieldStore:
    """Owns the fields of every document."""

    async def get_field(self, db: AsyncSession, field_id: str) -> Field:
        field = await db.get(Field, field_id)
        if field is None:
            raise NotFound(f"Field {field_id} not found")
        return field

    async def fields_for_document(self, db: AsyncSession, document_id: str) -> list[Field]:
        """All fields of a document in insertion order."""
        result = await db.execute(
            select(Field)
            .where(Field.document_id == document_id)
            .order_by(Field.position, Field.created_at)
        )
        return list(result.scalars().all())

    async def fields_for_signer(
        self,
        db: AsyncSession,
        document_id: str,
        signer_id: str,
    ) -> list[Field]:
        """Fields of a document assigned to one signer, in insertion order."""
        result = await db.execute(
            select(Field)
            .where(Field.document_id == document_id, Field.assigned_to == signer_id)
            .order_by(Field.position, Field.created_at)
        )
        return list(result.scalars().all())

    async def _check_assignee(
        self,
        db: AsyncSession,
        document_id: str,
        signer_id: str | None,
    ) -> str | None:
        if not signer_id:
            return None
        signer = await db.get(Signer, signer_id)
        if signer is None or signer.document_id != document_id:
            raise ValidationError(f"Signer {signer_id} is not a signer of this document")
        return signer.id

    async def add_field(
        self,
        db: AsyncSession,
        document_id: str,
        page: int,
        bbox: BoundingBox,
        field_type: FieldType,
        required: bool = True,
        assigned_to: str | None = None,
    ) -> Field:
        """Place a new incomplete field on a draft document."""
        async with document_unit(db, document_id):
            document = await lifecycle_manager.require_document(db, document_id)
            lifecycle_manager.ensure_draft(document, "add fields")
            _validate_placement(page, bbox)

            field = Field(
                document_id=document.id,
                position=await lifecycle_manager.next_position(db, Field, document.id),
                page=page,
                x=bbox.x,
                y=bbox.y,
                width=bbox.width,
                height=bbox.height,
                field_type=field_type,
                required=required,
                assigned_to=await self._check_assignee(db, document.id, assigned_to),
                completed=False,
                value=None,
            )
            db.add(field)
            lifecycle_manager.touch(document)
            await db.flush()
        return field

    async def update_field(
        self,
        db: AsyncSession,
        field_id: str,
        data: FieldUpdate,
    ) -> Field:
        """
        Replace a field's placement, type, assignment and required flag.

        Every kind of edit is locked once the document has been sent.
        """
        field = await self.get_field(db, field_id)
        async with document_unit(db, field.document_id):
            document = await lifecycle_manager.require_document(db, field.document_id)
            lifecycle_manager.ensure_draft(document, "edit fields")
            _validate_placement(data.page, data.bbox)

            field.page = data.page
            field.x = data.bbox.x
            field.y = data.bbox.y
            field.width = data.bbox.width
            field.height = data.bbox.height
            field.field_type = data.field_type
            field.required = data.required
            field.assigned_to = await self._check_assignee(db, document.id, data.assigned_to)

            lifecycle_manager.touch(document)
            await db.flush()
        return field

    async def assign_field(
        self,
        db: AsyncSession,
        field_id: str,
        signer_id: str | None,
    ) -> Field:
        """Assign a field to a signer, or unassign it with ``None``."""
        field = await self.get_field(db, field_id)
        async with document_unit(db, field.document_id):
            document = await lifecycle_manager.require_document(db, field.document_id)
            lifecycle_manager.ensure_draft(document, "reassign fields")

            field.assigned_to = await self._check_assignee(db, document.id, signer_id)
            lifecycle_manager.touch(document)
            await db.flush()
        return field

    async def delete_field(self, db: AsyncSession, field_id: str) -> None:
        field = await self.get_field(db, field_id)
        async with document_unit(db, field.document_id):
            document = await lifecycle_manager.require_document(db, field.document_id)
            lifecycle_manager.ensure_draft(document, "delete fields")

            await db.delete(field)
            lifecycle_manager.touch(document)
            await db.flush()

    async def unassign_signer(self, db: AsyncSession, document_id: str, signer_id: str) -> int:
        """Unassign (never delete) every field of a signer. Returns how many changed."""
        fields = await self.fields_for_signer(db, document_id, signer_id)
        for field in fields:
            field.assigned_to = None
        return len(fields)

    async def complete_field(
        self,
        db: AsyncSession,
        field_id: str,
        signer_id: str,
        value: str | None,
    ) -> Field:
        """Record the assigned signer's value for a field, exactly once."""
        field = await self.get_field(db, field_id)
        async with document_unit(db, field.document_id):
            if field.assigned_to != signer_id:
                raise Forbidden("You cannot fill this field")
            if field.completed:
                raise InvalidState("This field has already been completed")

            field.value = normalize_value(field.field_type, value)
            field.completed = True
            field.completed_at = utc_now()
            await db.flush()

        LOGGER.debug(
            "Field completed",
            extra={"field_id": field.id, "signer_id": signer_id},
        )
        return field


# Singleton instance
field_store = FieldStore()
