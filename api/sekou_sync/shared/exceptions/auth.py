"""
Excepciones de la superficie protegida por passphrase (/patch, /recover).
"""
from sekou_sync.shared.exceptions.base import AppException


class AuthException(AppException):
    """Excepción base para errores de autenticación."""

    def __init__(self, message: str, error_code: str = "AUTH_ERROR", details=None):
        super().__init__(
            message=message,
            status_code=401,
            error_code=error_code,
            details=details
        )


class LoginRequiredException(AuthException):
    """La cookie de autenticación no está presente o no es válida (redirige a /login)."""

    def __init__(self):
        super().__init__(
            message="Se requiere autenticación",
            error_code="LOGIN_REQUIRED"
        )


class InvalidPassphraseException(AuthException):
    """La passphrase enviada no coincide con APP_SECRET_PASS."""

    def __init__(self):
        super().__init__(
            message="La passphrase es incorrecta.",
            error_code="INVALID_PASSPHRASE"
        )
