"""Signers API routes."""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from docsign.api.auth import get_current_user
from docsign.models import Signer, User, get_db
from docsign.schemas import MessageResponse, SignerCreate, SignerResponse, SignerUpdate
from docsign.services.errors import NotFound
from docsign.services.lifecycle import lifecycle_manager
from docsign.services.signer_store import signer_store
from docsign.services.units import document_unit

router = APIRouter(prefix="/documents/{document_id}/signers", tags=["signers"])


async def get_signer_or_404(
    document_id: str,
    signer_id: str,
    user: User,
    db: AsyncSession,
) -> Signer:
    await lifecycle_manager.require_document(db, document_id, owner_id=user.id)
    signer = await signer_store.get_signer(db, signer_id)
    if signer.document_id != document_id:
        raise NotFound(f"Signer {signer_id} not found")
    return signer


@router.post("", response_model=SignerResponse)
async def add_signer(
    document_id: str,
    data: SignerCreate,
    token: str,
    db: AsyncSession = Depends(get_db),
):
    """Add a signer to a draft document."""
    user = await get_current_user(token, db)

    async with document_unit(db, document_id):
        await lifecycle_manager.require_document(db, document_id, owner_id=user.id)
        signer = await signer_store.add_signer(db, document_id, data.name, data.email)

    return signer


@router.post("/me", response_model=SignerResponse)
async def add_self_as_signer(
    document_id: str,
    token: str,
    db: AsyncSession = Depends(get_db),
):
    """Add the document owner as a signer."""
    user = await get_current_user(token, db)

    async with document_unit(db, document_id):
        await lifecycle_manager.require_document(db, document_id, owner_id=user.id)
        signer = await signer_store.add_owner_as_signer(db, document_id, user)

    return signer


@router.get("", response_model=list[SignerResponse])
async def list_signers(
    document_id: str,
    token: str,
    db: AsyncSession = Depends(get_db),
):
    """List a document's signers in the order they were added."""
    user = await get_current_user(token, db)
    await lifecycle_manager.require_document(db, document_id, owner_id=user.id)
    return await signer_store.signers_for_document(db, document_id)


@router.put("/{signer_id}", response_model=SignerResponse)
async def update_signer(
    document_id: str,
    signer_id: str,
    data: SignerUpdate,
    token: str,
    db: AsyncSession = Depends(get_db),
):
    """Change a signer's name or email."""
    user = await get_current_user(token, db)

    async with document_unit(db, document_id):
        await get_signer_or_404(document_id, signer_id, user, db)
        signer = await signer_store.update_signer(db, signer_id, data.name, data.email)

    return signer


@router.delete("/{signer_id}", response_model=MessageResponse)
async def delete_signer(
    document_id: str,
    signer_id: str,
    token: str,
    db: AsyncSession = Depends(get_db),
):
    """Remove a signer; their fields become unassigned."""
    user = await get_current_user(token, db)

    async with document_unit(db, document_id):
        await get_signer_or_404(document_id, signer_id, user, db)
        await signer_store.delete_signer(db, signer_id)

    return MessageResponse(message="Signer deleted successfully")


@router.post("/{signer_id}/resend", response_model=MessageResponse)
async def resend_invitation(
    document_id: str,
    signer_id: str,
    token: str,
    db: AsyncSession = Depends(get_db),
):
    """Send a pending signer their signing link again."""
    user = await get_current_user(token, db)
    signer = await lifecycle_manager.resend_invitation(
        db, document_id, signer_id, owner_id=user.id
    )
    return MessageResponse(message=f"Invitation resent to {signer.email}")
