"""Database models package."""

from docsign.models.base import (
    AsyncSessionLocal,
    Base,
    engine,
    get_db,
    init_db,
    utc_now,
)
from docsign.models.models import (
    Document,
    DocumentStatus,
    Field,
    FieldType,
    Signer,
    SignerStatus,
    User,
)

__all__ = [
    "AsyncSessionLocal",
    "Base",
    "engine",
    "get_db",
    "init_db",
    "utc_now",
    "Document",
    "DocumentStatus",
    "Field",
    "FieldType",
    "Signer",
    "SignerStatus",
    "User",
]
