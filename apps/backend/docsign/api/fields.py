"""Fields API routes for placing and assigning document fields."""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from docsign.api.auth import get_current_user
from docsign.models import Field, User, get_db
from docsign.schemas import (
    FieldAssign,
    FieldCreate,
    FieldResponse,
    FieldUpdate,
    MessageResponse,
)
from docsign.services.errors import NotFound
from docsign.services.field_store import field_store
from docsign.services.lifecycle import lifecycle_manager
from docsign.services.units import document_unit

router = APIRouter(prefix="/documents/{document_id}/fields", tags=["fields"])


async def get_field_or_404(
    document_id: str,
    field_id: str,
    user: User,
    db: AsyncSession,
) -> Field:
    """Get a field of one of the user's documents or raise ``NotFound``."""
    await lifecycle_manager.require_document(db, document_id, owner_id=user.id)
    field = await field_store.get_field(db, field_id)
    if field.document_id != document_id:
        raise NotFound(f"Field {field_id} not found")
    return field


@router.post("", response_model=FieldResponse)
async def create_field(
    document_id: str,
    field_data: FieldCreate,
    token: str,
    db: AsyncSession = Depends(get_db),
):
    """Place a new field on a document."""
    user = await get_current_user(token, db)

    async with document_unit(db, document_id):
        await lifecycle_manager.require_document(db, document_id, owner_id=user.id)
        field = await field_store.add_field(
            db,
            document_id,
            page=field_data.page,
            bbox=field_data.bbox,
            field_type=field_data.field_type,
            required=field_data.required,
            assigned_to=field_data.assigned_to,
        )

    return FieldResponse.from_orm_with_bbox(field)


@router.post("/bulk", response_model=list[FieldResponse])
async def create_fields_bulk(
    document_id: str,
    fields_data: list[FieldCreate],
    token: str,
    db: AsyncSession = Depends(get_db),
):
    """Place several fields at once; either all are created or none."""
    user = await get_current_user(token, db)

    created = []
    async with document_unit(db, document_id):
        await lifecycle_manager.require_document(db, document_id, owner_id=user.id)
        for field_data in fields_data:
            created.append(
                await field_store.add_field(
                    db,
                    document_id,
                    page=field_data.page,
                    bbox=field_data.bbox,
                    field_type=field_data.field_type,
                    required=field_data.required,
                    assigned_to=field_data.assigned_to,
                )
            )

    return [FieldResponse.from_orm_with_bbox(f) for f in created]


@router.get("", response_model=list[FieldResponse])
async def list_fields(
    document_id: str,
    token: str,
    signer_id: str | None = None,
    db: AsyncSession = Depends(get_db),
):
    """List a document's fields, optionally only those of one signer."""
    user = await get_current_user(token, db)
    await lifecycle_manager.require_document(db, document_id, owner_id=user.id)

    if signer_id:
        fields = await field_store.fields_for_signer(db, document_id, signer_id)
    else:
        fields = await field_store.fields_for_document(db, document_id)

    return [FieldResponse.from_orm_with_bbox(f) for f in fields]


@router.get("/{field_id}", response_model=FieldResponse)
async def get_field(
    document_id: str,
    field_id: str,
    token: str,
    db: AsyncSession = Depends(get_db),
):
    """Get a specific field."""
    user = await get_current_user(token, db)
    field = await get_field_or_404(document_id, field_id, user, db)
    return FieldResponse.from_orm_with_bbox(field)


@router.put("/{field_id}", response_model=FieldResponse)
async def update_field(
    document_id: str,
    field_id: str,
    field_data: FieldUpdate,
    token: str,
    db: AsyncSession = Depends(get_db),
):
    """Replace a field's placement, type, assignment and required flag."""
    user = await get_current_user(token, db)

    async with document_unit(db, document_id):
        await get_field_or_404(document_id, field_id, user, db)
        field = await field_store.update_field(db, field_id, field_data)

    return FieldResponse.from_orm_with_bbox(field)


@router.patch("/{field_id}/assignment", response_model=FieldResponse)
async def assign_field(
    document_id: str,
    field_id: str,
    data: FieldAssign,
    token: str,
    db: AsyncSession = Depends(get_db),
):
    """Assign a field to a signer, or unassign it."""
    user = await get_current_user(token, db)

    async with document_unit(db, document_id):
        await get_field_or_404(document_id, field_id, user, db)
        field = await field_store.assign_field(db, field_id, data.assigned_to)

    return FieldResponse.from_orm_with_bbox(field)


@router.delete("/{field_id}", response_model=MessageResponse)
async def delete_field(
    document_id: str,
    field_id: str,
    token: str,
    db: AsyncSession = Depends(get_db),
):
    """Delete a field."""
    user = await get_current_user(token, db)

    async with document_unit(db, document_id):
        await get_field_or_404(document_id, field_id, user, db)
        await field_store.delete_field(db, field_id)

    return MessageResponse(message="Field deleted successfully")
