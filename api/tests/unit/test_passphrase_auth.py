"""
Tests unitarios para el servicio de passphrase.
"""
from __future__ import annotations

from sekou_sync.infrastructure.security.passphrase_auth_service import PassphraseAuthService


def test_verify_passphrase() -> None:
    auth = PassphraseAuthService("s3cret")

    assert auth.verify("s3cret")
    assert not auth.verify("wrong")
    assert not auth.verify("")


def test_unconfigured_service_rejects_everything() -> None:
    auth = PassphraseAuthService("")

    assert not auth.is_configured()
    assert not auth.verify("")
    assert not auth.is_valid_token("a.b")


def test_issued_token_is_valid() -> None:
    auth = PassphraseAuthService("s3cret")

    assert auth.is_valid_token(auth.issue_token())


def test_forged_or_foreign_tokens_are_rejected() -> None:
    auth = PassphraseAuthService("s3cret")
    foreign = PassphraseAuthService("other").issue_token()

    assert not auth.is_valid_token("true")
    assert not auth.is_valid_token(None)
    assert not auth.is_valid_token(foreign)
