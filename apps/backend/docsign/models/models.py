"""Core database models for the document signing lifecycle."""

import enum

from sqlalchemy import (
    JSON,
    Boolean,
    Enum,
    Float,
    ForeignKey,
    Integer,
    String,
    Text,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from docsign.models.base import Base, TimestampMixin, event_timestamp, uuid_pk


class DocumentStatus(str, enum.Enum):
    """Document status enumeration."""

    DRAFT = "draft"
    PENDING = "pending"
    COMPLETED = "completed"


class FieldType(str, enum.Enum):
    """Field type enumeration."""

    SIGNATURE = "signature"
    INITIAL = "initial"
    DATE = "date"
    TEXT = "text"
    CHECKBOX = "checkbox"


class SignerStatus(str, enum.Enum):
    """Signer status enumeration."""

    PENDING = "pending"
    COMPLETED = "completed"


class User(Base, TimestampMixin):
    """User model for document owners."""

    __tablename__ = "users"

    id: Mapped[uuid_pk]
    email: Mapped[str] = mapped_column(String(255), unique=True, index=True)
    name: Mapped[str | None] = mapped_column(String(255))
    is_active: Mapped[bool] = mapped_column(Boolean, default=True)

    documents: Mapped[list["Document"]] = relationship(
        back_populates="owner", cascade="all, delete-orphan"
    )


class Document(Base, TimestampMixin):
    """Uploaded document and its lifecycle state."""

    __tablename__ = "documents"

    id: Mapped[uuid_pk]
    owner_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("users.id"), index=True
    )
    name: Mapped[str] = mapped_column(String(255))
    status: Mapped[DocumentStatus] = mapped_column(
        Enum(DocumentStatus), default=DocumentStatus.DRAFT
    )

    # File reference, never interpreted
    original_filename: Mapped[str] = mapped_column(String(255))
    file_path: Mapped[str] = mapped_column(String(500))
    file_hash: Mapped[str | None] = mapped_column(String(64))  # SHA-256
    file_size: Mapped[int] = mapped_column(Integer)
    mime_type: Mapped[str] = mapped_column(String(100))

    # Signing order configuration
    sequential_signing: Mapped[bool] = mapped_column(Boolean, default=False)
    signing_order: Mapped[list[str]] = mapped_column(JSON, default=list)

    sent_at: Mapped[event_timestamp]
    completed_at: Mapped[event_timestamp]

    owner: Mapped["User"] = relationship(back_populates="documents")
    fields: Mapped[list["Field"]] = relationship(
        back_populates="document",
        cascade="all, delete-orphan",
        order_by="Field.position",
    )
    signers: Mapped[list["Signer"]] = relationship(
        back_populates="document",
        cascade="all, delete-orphan",
        order_by="Signer.position",
    )


class Signer(Base, TimestampMixin):
    """A party who must complete their assigned fields."""

    __tablename__ = "signers"

    id: Mapped[uuid_pk]
    document_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("documents.id"), index=True
    )
    # 1-based insertion rank within the document
    position: Mapped[int] = mapped_column(Integer, default=0)
    name: Mapped[str] = mapped_column(String(255))
    email: Mapped[str] = mapped_column(String(255))
    status: Mapped[SignerStatus] = mapped_column(
        Enum(SignerStatus), default=SignerStatus.PENDING
    )

    # Capability token (unique, unguessable) and the link embedding it
    signing_token: Mapped[str] = mapped_column(String(500), unique=True, index=True)
    sign_url: Mapped[str] = mapped_column(String(1000))

    viewed_at: Mapped[event_timestamp]
    completed_at: Mapped[event_timestamp]

    document: Mapped["Document"] = relationship(back_populates="signers")


class Field(Base, TimestampMixin):
    """A typed capture target placed on a document page."""

    __tablename__ = "fields"

    id: Mapped[uuid_pk]
    document_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("documents.id"), index=True
    )
    position: Mapped[int] = mapped_column(Integer, default=0)

    # Placement, page-local and unit-agnostic
    page: Mapped[int] = mapped_column(Integer)
    x: Mapped[float] = mapped_column(Float)
    y: Mapped[float] = mapped_column(Float)
    width: Mapped[float] = mapped_column(Float)
    height: Mapped[float] = mapped_column(Float)

    field_type: Mapped[FieldType] = mapped_column(Enum(FieldType))
    required: Mapped[bool] = mapped_column(Boolean, default=True)

    # None means unassigned
    assigned_to: Mapped[str | None] = mapped_column(
        String(36), ForeignKey("signers.id"), index=True, default=None
    )

    completed: Mapped[bool] = mapped_column(Boolean, default=False)
    # Text, ISO date, "true"/"false" or an image data URL
    value: Mapped[str | None] = mapped_column(Text, default=None)
    completed_at: Mapped[event_timestamp]

    document: Mapped["Document"] = relationship(back_populates="fields")
