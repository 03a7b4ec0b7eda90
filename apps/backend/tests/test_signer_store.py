"""Signer store tests."""

from datetime import timedelta

import pytest
from sqlalchemy.ext.asyncio import AsyncSession

from conftest import add_field, add_signer
from docsign.core.security import verify_signing_token
from docsign.models import Document, SignerStatus, User, utc_now
from docsign.services.errors import (
    InvalidState,
    NotFound,
    NotReady,
    OutOfSequence,
    ValidationError,
)
from docsign.services.field_store import field_store
from docsign.services.lifecycle import lifecycle_manager
from docsign.services.signer_store import signer_store
from docsign.services.units import document_unit

pytestmark = pytest.mark.asyncio


class TestAddSigner:
    async def test_issues_unique_signing_link(self, test_db: AsyncSession, document: Document):
        alice = await add_signer(test_db, document.id, "Alice")
        bob = await add_signer(test_db, document.id, "Bob")

        assert alice.status == SignerStatus.PENDING
        assert alice.signing_token != bob.signing_token
        assert alice.sign_url.endswith(f"/sign/{alice.signing_token}")

        payload = verify_signing_token(alice.signing_token)
        assert payload["sub"] == alice.id
        assert payload["document_id"] == document.id

    async def test_signers_keep_insertion_order(self, test_db: AsyncSession, document: Document):
        created = [
            await signer_store.add_signer(test_db, document.id, name, f"{name}@example.com")
            for name in ("carol", "alice", "bob")
        ]
        stamp = utc_now()
        for offset, signer in enumerate(created):
            signer.created_at = stamp - timedelta(seconds=offset)
        await test_db.commit()

        listed = await signer_store.signers_for_document(test_db, document.id)

        assert [s.name for s in listed] == ["carol", "alice", "bob"]
        assert [s.position for s in listed] == [1, 2, 3]

    async def test_strips_name_and_normalizes_email(
        self, test_db: AsyncSession, document: Document
    ):
        async with document_unit(test_db, document.id):
            signer = await signer_store.add_signer(
                test_db, document.id, "  Alice Adams ", " alice@EXAMPLE.com "
            )

        assert signer.name == "Alice Adams"
        assert signer.email == "alice@example.com"

    @pytest.mark.parametrize(
        "name,email",
        [
            ("", "alice@example.com"),
            ("   ", "alice@example.com"),
            ("Alice", ""),
            ("Alice", "not-an-email"),
            ("Alice", "alice@"),
        ],
    )
    async def test_rejects_bad_input(
        self, test_db: AsyncSession, document: Document, name, email
    ):
        document_id = document.id

        with pytest.raises(ValidationError):
            async with document_unit(test_db, document_id):
                await signer_store.add_signer(test_db, document_id, name, email)

        assert await signer_store.signers_for_document(test_db, document_id) == []

    async def test_rejects_duplicate_email(self, test_db: AsyncSession, document: Document):
        await add_signer(test_db, document.id, "Alice")
        document_id = document.id

        with pytest.raises(ValidationError):
            async with document_unit(test_db, document_id):
                await signer_store.add_signer(test_db, document_id, "Other", "ALICE@example.com")

        assert len(await signer_store.signers_for_document(test_db, document_id)) == 1

    async def test_locked_after_send(self, test_db: AsyncSession, document: Document, prepare):
        await prepare("Alice")
        await lifecycle_manager.send(test_db, document.id)
        document_id = document.id

        with pytest.raises(InvalidState):
            await add_signer(test_db, document_id, "Bob")


class TestOwnerAsSigner:
    async def test_adds_owner_once(self, test_db: AsyncSession, document: Document, owner: User):
        async with document_unit(test_db, document.id):
            first = await signer_store.add_owner_as_signer(test_db, document.id, owner)
        async with document_unit(test_db, document.id):
            second = await signer_store.add_owner_as_signer(test_db, document.id, owner)

        assert first.id == second.id
        assert first.email == owner.email
        assert first.name == owner.name
        assert len(await signer_store.signers_for_document(test_db, document.id)) == 1


class TestUpdateSigner:
    async def test_renames_signer(self, test_db: AsyncSession, document: Document):
        alice = await add_signer(test_db, document.id, "Alice")

        async with document_unit(test_db, document.id):
            updated = await signer_store.update_signer(
                test_db, alice.id, "Alice Adams", "alice.adams@example.com"
            )

        assert updated.name == "Alice Adams"
        assert updated.email == "alice.adams@example.com"
        assert updated.signing_token == alice.signing_token

    async def test_rejects_taking_another_signers_email(
        self, test_db: AsyncSession, document: Document
    ):
        alice = await add_signer(test_db, document.id, "Alice")
        await add_signer(test_db, document.id, "Bob")
        document_id, alice_id = document.id, alice.id

        with pytest.raises(ValidationError):
            async with document_unit(test_db, document_id):
                await signer_store.update_signer(test_db, alice_id, "Alice", "bob@example.com")


class TestDeleteSigner:
    async def test_unassigns_fields_and_leaves_the_order(
        self, test_db: AsyncSession, document: Document
    ):
        alice = await add_signer(test_db, document.id, "Alice")
        bob = await add_signer(test_db, document.id, "Bob")
        alice_field = await add_field(test_db, document.id, alice.id)
        await lifecycle_manager.set_signing_order(
            test_db, document.id, order=[alice.id, bob.id], sequential_enabled=True
        )

        async with document_unit(test_db, document.id):
            await signer_store.delete_signer(test_db, alice.id)

        signers = await signer_store.signers_for_document(test_db, document.id)
        assert [s.id for s in signers] == [bob.id]

        fields = await field_store.fields_for_document(test_db, document.id)
        assert [f.id for f in fields] == [alice_field.id]
        assert fields[0].assigned_to is None

        document = await lifecycle_manager.require_document(test_db, document.id)
        assert document.signing_order == [bob.id]

    async def test_unknown_signer(self, test_db: AsyncSession):
        with pytest.raises(NotFound):
            await signer_store.delete_signer(test_db, "missing")


class TestCompleteSigner:
    async def test_requires_pending_document(self, test_db: AsyncSession, document: Document, prepare):
        (alice,), _ = await prepare("Alice")
        document_id, alice_id = document.id, alice.id

        with pytest.raises(InvalidState):
            async with document_unit(test_db, document_id):
                await signer_store.complete_signer(test_db, document_id, alice_id)

    async def test_requires_required_fields(
        self, test_db: AsyncSession, document: Document, prepare
    ):
        (alice,), _ = await prepare("Alice")
        await lifecycle_manager.send(test_db, document.id)
        document_id, alice_id = document.id, alice.id

        with pytest.raises(NotReady) as excinfo:
            async with document_unit(test_db, document_id):
                await signer_store.complete_signer(test_db, document_id, alice_id)

        assert excinfo.value.reasons == [NotReady.REQUIRED_FIELDS_INCOMPLETE]
        alice = await signer_store.get_signer(test_db, alice_id)
        assert alice.status == SignerStatus.PENDING

    async def test_optional_fields_do_not_block(
        self, test_db: AsyncSession, document: Document
    ):
        alice = await add_signer(test_db, document.id, "Alice")
        await add_field(test_db, document.id, alice.id, required=False)
        await lifecycle_manager.send(test_db, document.id)

        async with document_unit(test_db, document.id):
            signer = await signer_store.complete_signer(test_db, document.id, alice.id)

        assert signer.status == SignerStatus.COMPLETED
        assert signer.completed_at is not None

    async def test_enforces_sequence(self, test_db: AsyncSession, document: Document, prepare):
        (alice, bob), _ = await prepare("Alice", "Bob", sequential=True)
        await lifecycle_manager.send(test_db, document.id)
        document_id, bob_id = document.id, bob.id

        with pytest.raises(OutOfSequence) as excinfo:
            async with document_unit(test_db, document_id):
                await signer_store.complete_signer(test_db, document_id, bob_id)

        assert excinfo.value.waiting_for == ["Alice"]

    async def test_cannot_complete_twice(self, test_db: AsyncSession, document: Document):
        alice = await add_signer(test_db, document.id, "Alice")
        await add_field(test_db, document.id, alice.id, required=False)
        await lifecycle_manager.send(test_db, document.id)
        document_id, alice_id = document.id, alice.id

        async with document_unit(test_db, document_id):
            await signer_store.complete_signer(test_db, document_id, alice_id)

        with pytest.raises(InvalidState):
            async with document_unit(test_db, document_id):
                await signer_store.complete_signer(test_db, document_id, alice_id)

    async def test_signer_of_another_document(
        self, test_db: AsyncSession, document: Document, prepare
    ):
        (alice,), _ = await prepare("Alice")
        other = await lifecycle_manager.duplicate_document(test_db, document.id)
        other_id, alice_id = other.id, alice.id

        with pytest.raises(NotFound):
            async with document_unit(test_db, other_id):
                await signer_store.complete_signer(test_db, other_id, alice_id)
