"""API routes package."""

from fastapi import APIRouter

from docsign.api.auth import router as auth_router
from docsign.api.documents import router as documents_router
from docsign.api.fields import router as fields_router
from docsign.api.signers import router as signers_router
from docsign.api.signing import router as signing_router

api_router = APIRouter()

api_router.include_router(auth_router)
api_router.include_router(documents_router)
api_router.include_router(fields_router)
api_router.include_router(signers_router)
api_router.include_router(signing_router)
