"""
Autenticación por passphrase compartida para /patch y /recover.

IMPORTANTE:
- La cookie no contiene la passphrase ni un valor fijo ("true"): lleva un
  token HMAC derivado del secreto, que solo el servidor puede producir.
- El token es de un solo uso desde el punto de vista del cliente: los
  endpoints borran la cookie tras cada uso.
"""

from __future__ import annotations

import hashlib
import hmac
import secrets

AUTH_COOKIE_NAME = "authenticated"


class PassphraseAuthService:
    """
    Verifica la passphrase contra APP_SECRET_PASS y emite/valida el token de cookie.

    Usa comparación en tiempo constante (hmac.compare_digest).
    """

    def __init__(self, secret: str) -> None:
        self._secret = secret or ""

    def is_configured(self) -> bool:
        return bool(self._secret)

    def verify(self, passphrase: str) -> bool:
        if not self.is_configured():
            return False
        return hmac.compare_digest((passphrase or "").encode("utf-8"), self._secret.encode("utf-8"))

    def issue_token(self) -> str:
        """Token `nonce.firma` para la cookie de sesión."""
        nonce = secrets.token_urlsafe(16)
        return f"{nonce}.{self._sign(nonce)}"

    def is_valid_token(self, token: str | None) -> bool:
        if not self.is_configured() or not token or "." not in token:
            return False
        nonce, _, signature = token.partition(".")
        return hmac.compare_digest(signature, self._sign(nonce))

    def _sign(self, nonce: str) -> str:
        return hmac.new(self._secret.encode("utf-8"), nonce.encode("utf-8"), hashlib.sha256).hexdigest()
