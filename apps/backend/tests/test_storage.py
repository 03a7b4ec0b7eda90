"""Storage service tests."""

import hashlib
import io
from pathlib import Path

import pytest

from docsign.services.storage import storage_service

pytestmark = pytest.mark.asyncio


async def test_store_and_retrieve(temp_storage: Path):
    content = b"%PDF-1.4 contract"

    ref = await storage_service.store("doc-1", "contract.pdf", content, "application/pdf")

    assert Path(ref.path).parent.parent == temp_storage / "documents"
    assert ref.size == len(content)
    assert ref.sha256 == hashlib.sha256(content).hexdigest()
    assert await storage_service.retrieve(ref.path) == content


async def test_store_accepts_file_objects():
    ref = await storage_service.store("doc-2", "scan.png", io.BytesIO(b"\x89PNG"), "image/png")

    assert ref.size == 4
    assert ref.mime_type == "image/png"


async def test_filename_cannot_escape_the_document_directory(temp_storage: Path):
    ref = await storage_service.store("doc-3", "../../etc/passwd", b"x", "application/pdf")

    assert Path(ref.path) == temp_storage / "documents" / "doc-3" / "passwd"


async def test_delete_removes_empty_directory():
    ref = await storage_service.store("doc-4", "lease.pdf", b"lease", "application/pdf")

    await storage_service.delete_file(ref.path)

    assert not storage_service.file_exists(ref.path)
    assert not Path(ref.path).parent.exists()
