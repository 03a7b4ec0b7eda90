"""Pydantic schemas for API request/response validation."""

from datetime import datetime

from pydantic import BaseModel, EmailStr, Field as PydanticField, field_validator

from docsign.models.models import DocumentStatus, FieldType, SignerStatus


# --- Base schemas ---


class BaseSchema(BaseModel):
    """Base schema with common configuration."""

    class Config:
        from_attributes = True


# --- User schemas ---


class UserResponse(BaseSchema):
    """Schema for user response."""

    id: str
    email: str
    name: str | None
    is_active: bool
    created_at: datetime


class AuthRequest(BaseModel):
    """Schema for magic link auth request."""

    email: EmailStr
    name: str | None = None


class AuthResponse(BaseModel):
    """Schema for auth response."""

    access_token: str
    token_type: str = "bearer"


# --- Document schemas ---


class DocumentRename(BaseModel):
    """Schema for renaming a document."""

    name: str


class DocumentResponse(BaseSchema):
    """Schema for document response."""

    id: str
    owner_id: str
    name: str
    original_filename: str
    file_size: int
    mime_type: str
    file_url: str | None = None
    status: DocumentStatus
    sequential_signing: bool
    signing_order: list[str]
    sent_at: datetime | None
    completed_at: datetime | None
    created_at: datetime
    updated_at: datetime


class DocumentDetailResponse(DocumentResponse):
    """Schema for detailed document response with fields and signers."""

    fields: list["FieldResponse"] = []
    signers: list["SignerResponse"] = []


class DocumentProgressResponse(BaseSchema):
    """Schema for document progress."""

    document_id: str
    status: DocumentStatus
    total_signers: int
    completed_signers: int
    total_fields: int
    completed_fields: int
    required_fields: int
    completed_required_fields: int
    eligible_signer_ids: list[str]
    percent_complete: int


class SigningOrderUpdate(BaseModel):
    """Schema for replacing the signing order."""

    order: list[str] | None = None
    sequential_signing: bool | None = None


# --- Field schemas ---


class BoundingBox(BaseModel):
    """Schema for field bounding box."""

    x: float
    y: float
    width: float
    height: float


class FieldCreate(BaseModel):
    """Schema for creating a field."""

    page: int = PydanticField(1, description="1-indexed page number")
    bbox: BoundingBox
    field_type: FieldType
    required: bool = True
    assigned_to: str | None = None

    @field_validator("assigned_to")
    @classmethod
    def empty_means_unassigned(cls, value: str | None) -> str | None:
        return value or None


class FieldUpdate(FieldCreate):
    """Schema for replacing a field (every mutable attribute is sent)."""

    page: int
    required: bool


class FieldAssign(BaseModel):
    """Schema for assigning a field to a signer."""

    assigned_to: str | None = None

    @field_validator("assigned_to")
    @classmethod
    def empty_means_unassigned(cls, value: str | None) -> str | None:
        return value or None


class FieldResponse(BaseSchema):
    """Schema for field response."""

    id: str
    document_id: str
    page: int
    bbox: BoundingBox
    field_type: FieldType
    assigned_to: str | None
    required: bool
    completed: bool
    value: str | None
    completed_at: datetime | None
    created_at: datetime

    @classmethod
    def from_orm_with_bbox(cls, field) -> "FieldResponse":
        """Create response from ORM model with bbox conversion."""
        return cls(
            id=field.id,
            document_id=field.document_id,
            page=field.page,
            bbox=BoundingBox(
                x=field.x,
                y=field.y,
                width=field.width,
                height=field.height,
            ),
            field_type=field.field_type,
            assigned_to=field.assigned_to,
            required=field.required,
            completed=field.completed,
            value=field.value,
            completed_at=field.completed_at,
            created_at=field.created_at,
        )


class FieldSubmit(BaseModel):
    """Schema for a signer capturing a field value."""

    field_id: str
    value: str | None = None


# --- Signer schemas ---


class SignerCreate(BaseModel):
    """Schema for adding a signer.

    Email syntax is checked by the signer store so every caller gets the
    same error.
    """

    name: str
    email: str


class SignerUpdate(SignerCreate):
    """Schema for renaming a signer."""


class SignerResponse(BaseSchema):
    """Schema for signer response."""

    id: str
    document_id: str
    name: str
    email: str
    status: SignerStatus
    sign_url: str
    viewed_at: datetime | None
    completed_at: datetime | None
    created_at: datetime


class SignerPublic(BaseSchema):
    """Signer as seen by another signer (no capability link)."""

    id: str
    name: str
    status: SignerStatus
    completed_at: datetime | None


# --- Signing schemas ---


class SigningSessionResponse(BaseModel):
    """Schema for signing session data."""

    document_id: str
    document_name: str
    document_status: DocumentStatus
    file_url: str
    signer_id: str
    signer_name: str
    signer_status: SignerStatus
    can_sign: bool
    fields: list[FieldResponse]


class SigningFinishResponse(BaseModel):
    """Schema for the result of finishing a session."""

    message: str
    signer: SignerPublic
    document_status: DocumentStatus
    all_completed: bool


# --- Response helpers ---


class MessageResponse(BaseModel):
    """Generic message response."""

    message: str
    success: bool = True


class ErrorResponse(BaseModel):
    """Error response."""

    detail: str
    code: str
    reasons: list[str] = []
    waiting_for: list[str] = []


DocumentDetailResponse.model_rebuild()
