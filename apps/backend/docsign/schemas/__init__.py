"""Request and response schemas."""

from docsign.schemas.schemas import (
    AuthRequest,
    AuthResponse,
    BoundingBox,
    DocumentDetailResponse,
    DocumentProgressResponse,
    DocumentRename,
    DocumentResponse,
    ErrorResponse,
    FieldAssign,
    FieldCreate,
    FieldResponse,
    FieldSubmit,
    FieldUpdate,
    MessageResponse,
    SignerCreate,
    SignerPublic,
    SignerResponse,
    SignerUpdate,
    SigningFinishResponse,
    SigningOrderUpdate,
    SigningSessionResponse,
    UserResponse,
)

__all__ = [
    "AuthRequest",
    "AuthResponse",
    "BoundingBox",
    "DocumentDetailResponse",
    "DocumentProgressResponse",
    "DocumentRename",
    "DocumentResponse",
    "ErrorResponse",
    "FieldAssign",
    "FieldCreate",
    "FieldResponse",
    "FieldSubmit",
    "FieldUpdate",
    "MessageResponse",
    "SignerCreate",
    "SignerPublic",
    "SignerResponse",
    "SignerUpdate",
    "SigningFinishResponse",
    "SigningOrderUpdate",
    "SigningSessionResponse",
    "UserResponse",
]
