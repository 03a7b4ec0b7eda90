"""Storage service for uploaded document files."""

import hashlib
from dataclasses import dataclass
from pathlib import Path
from typing import BinaryIO

import aiofiles
import aiofiles.os

from docsign.core.config import get_settings
from docsign.core.logging import get_logger

settings = get_settings()
LOGGER = get_logger(__name__)


@dataclass(frozen=True)
class FileRef:
    """Opaque handle to stored file content."""

    path: str
    filename: str
    size: int
    sha256: str
    mime_type: str


class StorageService:
    """Service for managing file storage."""

    def __init__(self, storage_path: Path | None = None):
        """Initialize storage service."""
        self.storage_path = Path(storage_path or settings.storage_path)

    def get_document_path(self, document_id: str, filename: str) -> Path:
        """Get path for storing a document."""
        safe_name = Path(filename).name or "document"
        return self.storage_path / "documents" / document_id / safe_name

    async def store(
        self,
        document_id: str,
        filename: str,
        file_data: bytes | BinaryIO,
        mime_type: str,
    ) -> FileRef:
        """
        Save uploaded content for a document.

        Args:
            document_id: Document ID the file belongs to
            filename: Original filename as uploaded
            file_data: File content as bytes or file-like object
            mime_type: Content type supplied by the uploader

        Returns:
            FileRef describing where the bytes live
        """
        if hasattr(file_data, "read"):
            content = file_data.read()
        else:
            content = file_data

        dest_path = self.get_document_path(document_id, filename)
        dest_path.parent.mkdir(parents=True, exist_ok=True)

        async with aiofiles.open(dest_path, "wb") as f:
            await f.write(content)

        LOGGER.debug(
            "Stored document file",
            extra={"document_id": document_id, "size": len(content)},
        )
        return FileRef(
            path=str(dest_path),
            filename=filename,
            size=len(content),
            sha256=hashlib.sha256(content).hexdigest(),
            mime_type=mime_type,
        )

    async def retrieve(self, file_path: str | Path) -> bytes:
        """Read file content."""
        async with aiofiles.open(file_path, "rb") as f:
            return await f.read()

    async def delete_file(self, file_path: str | Path) -> None:
        """Delete a file and its now-empty parent directory."""
        path = Path(file_path)
        if path.exists():
            await aiofiles.os.remove(path)
        if path.parent.exists() and not any(path.parent.iterdir()):
            await aiofiles.os.rmdir(path.parent)

    def file_exists(self, file_path: str | Path) -> bool:
        """Check if a file exists."""
        return Path(file_path).exists()

    def get_file_url(self, document_id: str) -> str:
        """Get the API URL that serves a document's file."""
        return f"{settings.api_v1_prefix}/documents/{document_id}/file"


# Singleton instance
storage_service = StorageService()
