"""Token handling tests."""

from datetime import timedelta

from docsign.core.security import (
    build_sign_url,
    create_access_token,
    create_magic_link_token,
    create_signing_token,
    verify_access_token,
    verify_magic_link_token,
    verify_signing_token,
)


def test_access_token_round_trip():
    assert verify_access_token(create_access_token("user-1")) == "user-1"


def test_expired_access_token_is_rejected():
    token = create_access_token("user-1", expires_delta=timedelta(seconds=-1))

    assert verify_access_token(token) is None


def test_tokens_are_not_interchangeable():
    access = create_access_token("user-1")
    magic = create_magic_link_token("owner@example.com")
    signing = create_signing_token("doc-1", "signer-1")

    assert verify_access_token(magic) is None
    assert verify_access_token(signing) is None
    assert verify_magic_link_token(access) is None
    assert verify_signing_token(access) is None
    assert verify_signing_token(magic) is None


def test_signing_tokens_are_unique_per_issue():
    first = create_signing_token("doc-1", "signer-1")
    second = create_signing_token("doc-1", "signer-1")

    assert first != second
    payload = verify_signing_token(first)
    assert (payload["document_id"], payload["sub"]) == ("doc-1", "signer-1")


def test_sign_url_embeds_token():
    assert build_sign_url("abc").endswith("/sign/abc")
