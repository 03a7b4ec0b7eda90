"""Documents API routes."""

from pathlib import Path

from fastapi import APIRouter, Depends, File, HTTPException, Query, UploadFile, status
from fastapi.responses import FileResponse
from sqlalchemy.ext.asyncio import AsyncSession

from docsign.api.auth import get_current_user
from docsign.models import Document, DocumentStatus, get_db
from docsign.schemas import (
    DocumentDetailResponse,
    DocumentProgressResponse,
    DocumentRename,
    DocumentResponse,
    FieldResponse,
    MessageResponse,
    SignerResponse,
    SigningOrderUpdate,
)
from docsign.services import signing_order
from docsign.services.field_store import field_store
from docsign.services.lifecycle import lifecycle_manager
from docsign.services.signer_store import signer_store
from docsign.services.storage import storage_service

router = APIRouter(prefix="/documents", tags=["documents"])


def to_document_response(document: Document) -> DocumentResponse:
    """Build the public view of a document."""
    return DocumentResponse(
        id=document.id,
        owner_id=document.owner_id,
        name=document.name,
        original_filename=document.original_filename,
        file_size=document.file_size,
        mime_type=document.mime_type,
        file_url=storage_service.get_file_url(document.id),
        status=document.status,
        sequential_signing=document.sequential_signing,
        signing_order=list(document.signing_order or []),
        sent_at=document.sent_at,
        completed_at=document.completed_at,
        created_at=document.created_at,
        updated_at=document.updated_at,
    )


@router.post("", response_model=DocumentResponse)
async def upload_document(
    token: str,
    file: UploadFile = File(...),
    name: str | None = Query(None),
    db: AsyncSession = Depends(get_db),
):
    """Upload a new document."""
    user = await get_current_user(token, db)
    content = await file.read()

    document = await lifecycle_manager.create_document(
        db,
        owner=user,
        name=name,
        filename=file.filename or "document",
        content=content,
        mime_type=file.content_type or "application/octet-stream",
    )
    return to_document_response(document)


@router.get("", response_model=list[DocumentResponse])
async def list_documents(
    token: str,
    status_filter: DocumentStatus | None = Query(None, alias="status"),
    db: AsyncSession = Depends(get_db),
):
    """List all documents for the current user."""
    user = await get_current_user(token, db)
    documents = await lifecycle_manager.list_documents(db, user.id, status_filter)
    return [to_document_response(d) for d in documents]


@router.get("/{document_id}", response_model=DocumentDetailResponse)
async def get_document(
    document_id: str,
    token: str,
    db: AsyncSession = Depends(get_db),
):
    """Get a document with its fields and signers."""
    user = await get_current_user(token, db)
    document = await lifecycle_manager.get_document(db, document_id, owner_id=user.id)

    fields = await field_store.fields_for_document(db, document.id)
    signers = await signer_store.signers_for_document(db, document.id)

    return DocumentDetailResponse(
        **to_document_response(document).model_dump(),
        fields=[FieldResponse.from_orm_with_bbox(f) for f in fields],
        signers=[SignerResponse.model_validate(s) for s in signers],
    )


@router.patch("/{document_id}", response_model=DocumentResponse)
async def rename_document(
    document_id: str,
    data: DocumentRename,
    token: str,
    db: AsyncSession = Depends(get_db),
):
    """Rename a document."""
    user = await get_current_user(token, db)
    document = await lifecycle_manager.rename_document(
        db, document_id, data.name, owner_id=user.id
    )
    return to_document_response(document)


@router.delete("/{document_id}", response_model=MessageResponse)
async def delete_document(
    document_id: str,
    token: str,
    db: AsyncSession = Depends(get_db),
):
    """Delete a document together with its fields and signers."""
    user = await get_current_user(token, db)
    await lifecycle_manager.delete_document(db, document_id, owner_id=user.id)
    return MessageResponse(message="Document deleted successfully")


@router.post("/{document_id}/duplicate", response_model=DocumentResponse)
async def duplicate_document(
    document_id: str,
    token: str,
    db: AsyncSession = Depends(get_db),
):
    """Copy a document into a new draft without fields or signers."""
    user = await get_current_user(token, db)
    document = await lifecycle_manager.duplicate_document(
        db, document_id, owner_id=user.id
    )
    return to_document_response(document)


@router.post("/{document_id}/send", response_model=DocumentResponse)
async def send_document(
    document_id: str,
    token: str,
    db: AsyncSession = Depends(get_db),
):
    """Send a draft document to its signers."""
    user = await get_current_user(token, db)
    document = await lifecycle_manager.send(db, document_id, owner_id=user.id)
    return to_document_response(document)


@router.put("/{document_id}/signing-order", response_model=DocumentResponse)
async def update_signing_order(
    document_id: str,
    data: SigningOrderUpdate,
    token: str,
    db: AsyncSession = Depends(get_db),
):
    """Replace the signing order and/or toggle sequential signing."""
    user = await get_current_user(token, db)
    document = await lifecycle_manager.set_signing_order(
        db,
        document_id,
        order=data.order,
        sequential_enabled=data.sequential_signing,
        owner_id=user.id,
    )
    return to_document_response(document)


@router.get("/{document_id}/progress", response_model=DocumentProgressResponse)
async def get_progress(
    document_id: str,
    token: str,
    db: AsyncSession = Depends(get_db),
):
    """Get signer and field completion counts."""
    user = await get_current_user(token, db)
    progress = await lifecycle_manager.document_progress(
        db, document_id, owner_id=user.id
    )
    return DocumentProgressResponse.model_validate(progress)


@router.get("/{document_id}/signing-links")
async def get_signing_links(
    document_id: str,
    token: str,
    db: AsyncSession = Depends(get_db),
):
    """Get signing links for all signers, in signing order."""
    user = await get_current_user(token, db)
    document = await lifecycle_manager.get_document(db, document_id, owner_id=user.id)
    signers = signing_order.sorted_by_order(
        await signer_store.signers_for_document(db, document.id),
        document.signing_order or [],
    )

    return {
        "document_id": document.id,
        "signing_links": [
            {
                "signer_id": s.id,
                "email": s.email,
                "name": s.name,
                "status": s.status.value,
                "signing_url": s.sign_url,
            }
            for s in signers
        ],
    }


@router.get("/{document_id}/file")
async def download_document(
    document_id: str,
    token: str,
    db: AsyncSession = Depends(get_db),
):
    """Download the uploaded file."""
    user = await get_current_user(token, db)
    document = await lifecycle_manager.get_document(db, document_id, owner_id=user.id)

    if not storage_service.file_exists(document.file_path):
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="File not found",
        )

    return FileResponse(
        Path(document.file_path),
        media_type=document.mime_type,
        filename=document.original_filename,
    )
