"""Error taxonomy for storefront operations."""

from enum import Enum
from typing import Optional


class ErrorKind(str, Enum):
    """Kind of failure reported by a storefront operation."""

    VALIDATION = "validation"
    UNAUTHENTICATED = "unauthenticated"
    AUTHORIZATION = "authorization"
    BACKEND = "backend"
    TRANSPORT = "transport"


class StorefrontError(Exception):
    """Base class for every error raised by the storefront core."""

    kind: ErrorKind = ErrorKind.BACKEND

    def __init__(
        self,
        message: Optional[str] = None,
        *,
        code: Optional[str] = None,
        status_code: Optional[int] = None,
    ) -> None:
        super().__init__(message or code or self.kind.value)
        self.message = message
        self.code = code
        self.status_code = status_code


class ValidationError(StorefrontError):
    """Local precondition failure. Never reaches the network."""

    kind = ErrorKind.VALIDATION


class UnauthenticatedError(StorefrontError):
    """Operation requires a current user and there is none."""

    kind = ErrorKind.UNAUTHENTICATED


class AuthorizationError(StorefrontError):
    """Backend answered 401."""

    kind = ErrorKind.AUTHORIZATION


class BackendError(StorefrontError):
    """Any other non-success response from the backend."""

    kind = ErrorKind.BACKEND


class TransportError(StorefrontError):
    """Network failure, timeout or unreachable backend."""

    kind = ErrorKind.TRANSPORT


FALLBACK_MESSAGES: dict[str, dict[str, str]] = {
    "en": {
        "login": "Login failed",
        "register": "Registration failed",
        "update_profile": "Profile update failed",
        "checkout": "Payment processing failed",
        "unauthenticated": "User not authenticated",
        "empty_cart": "Add items to the cart before checking out",
        "incomplete_address": "Fill in every shipping address field",
        "password_mismatch": "Passwords do not match",
        "password_too_short": "Password must be at least 6 characters",
        "submission_in_progress": "A checkout is already being processed",
    },
    "pt": {
        "login": "Erro ao fazer login",
        "register": "Erro ao cadastrar",
        "update_profile": "Erro ao atualizar perfil",
        "checkout": "Erro ao processar pagamento",
        "unauthenticated": "Usuário não autenticado",
        "empty_cart": "Adicione itens ao carrinho antes de finalizar a compra",
        "incomplete_address": "Preencha todos os campos do endereço de entrega",
        "password_mismatch": "As senhas não coincidem",
        "password_too_short": "A senha deve ter pelo menos 6 caracteres",
        "submission_in_progress": "Uma compra já está sendo processada",
    },
}


def fallback_message(key: str, language: str = "en") -> str:
    """Return the generic user-facing message for ``key`` in ``language``."""
    messages = FALLBACK_MESSAGES.get(language, FALLBACK_MESSAGES["en"])
    return messages.get(key) or FALLBACK_MESSAGES["en"].get(key, key)
