"""Services package."""

from docsign.services.field_store import field_store
from docsign.services.lifecycle import lifecycle_manager
from docsign.services.notifications import notification_service
from docsign.services.signer_store import signer_store
from docsign.services.signing_session import signing_orchestrator
from docsign.services.storage import storage_service

__all__ = [
    "field_store",
    "lifecycle_manager",
    "notification_service",
    "signer_store",
    "signing_orchestrator",
    "storage_service",
]
