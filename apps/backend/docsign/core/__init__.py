"""Configuration, logging and token handling."""

from docsign.core.config import Settings, get_settings
from docsign.core.logging import configure_logging, get_logger
from docsign.core.security import (
    build_sign_url,
    create_access_token,
    create_magic_link_token,
    create_signing_token,
    decode_token,
    verify_access_token,
    verify_magic_link_token,
    verify_signing_token,
)

__all__ = [
    "Settings",
    "get_settings",
    "configure_logging",
    "get_logger",
    "build_sign_url",
    "create_access_token",
    "create_magic_link_token",
    "create_signing_token",
    "decode_token",
    "verify_access_token",
    "verify_magic_link_token",
    "verify_signing_token",
]
