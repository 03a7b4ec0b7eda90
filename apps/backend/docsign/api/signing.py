"""Signing API routes for the signer-facing flow.

Signers never log in; the token in their link identifies both the document
and the signer.
"""

from pathlib import Path

from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.responses import FileResponse
from sqlalchemy.ext.asyncio import AsyncSession

from docsign.core.config import get_settings
from docsign.models import DocumentStatus, get_db
from docsign.schemas import (
    FieldResponse,
    FieldSubmit,
    SignerPublic,
    SigningFinishResponse,
    SigningSessionResponse,
)
from docsign.services.errors import InvalidState
from docsign.services.lifecycle import lifecycle_manager
from docsign.services.signing_session import signing_orchestrator
from docsign.services.storage import storage_service

settings = get_settings()

router = APIRouter(prefix="/signing", tags=["signing"])


def session_file_url(signing_token: str) -> str:
    return f"{settings.api_v1_prefix}/signing/session/{signing_token}/file"


@router.get("/session/{signing_token}", response_model=SigningSessionResponse)
async def get_signing_session(
    signing_token: str,
    db: AsyncSession = Depends(get_db),
):
    """Open the signer's session and list the fields assigned to them."""
    document_id, signer_id = await signing_orchestrator.resolve_token(db, signing_token)
    session = await signing_orchestrator.open_session(
        db, document_id, signer_id, signing_token
    )

    return SigningSessionResponse(
        document_id=session.document.id,
        document_name=session.document.name,
        document_status=session.document.status,
        file_url=session_file_url(signing_token),
        signer_id=session.signer.id,
        signer_name=session.signer.name,
        signer_status=session.signer.status,
        can_sign=session.can_sign,
        fields=[FieldResponse.from_orm_with_bbox(f) for f in session.fields],
    )


@router.post("/session/{signing_token}/field", response_model=FieldResponse)
async def submit_field_value(
    signing_token: str,
    data: FieldSubmit,
    db: AsyncSession = Depends(get_db),
):
    """Capture the value of one of the signer's fields."""
    document_id, signer_id = await signing_orchestrator.resolve_token(db, signing_token)
    field = await signing_orchestrator.submit_field(
        db, document_id, signer_id, data.field_id, data.value
    )
    return FieldResponse.from_orm_with_bbox(field)


@router.post("/session/{signing_token}/complete", response_model=SigningFinishResponse)
async def complete_signing(
    signing_token: str,
    db: AsyncSession = Depends(get_db),
):
    """Confirm the signer is done; completes the document after the last signer."""
    document_id, signer_id = await signing_orchestrator.resolve_token(db, signing_token)
    result = await signing_orchestrator.finish_session(db, document_id, signer_id)

    return SigningFinishResponse(
        message="Signing completed successfully",
        signer=SignerPublic.model_validate(result.signer),
        document_status=result.document.status,
        all_completed=result.document_completed,
    )


@router.get("/session/{signing_token}/file")
async def download_signing_file(
    signing_token: str,
    db: AsyncSession = Depends(get_db),
):
    """Download the document a signer has been asked to sign."""
    document_id, _ = await signing_orchestrator.resolve_token(db, signing_token)
    document = await lifecycle_manager.require_document(db, document_id)
    if document.status == DocumentStatus.DRAFT:
        raise InvalidState("This document has not been sent yet")

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
