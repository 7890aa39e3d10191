"""Infrastructure exceptions for the Firebase backing services.

Clients raise these. Adapters translate the ones with a domain meaning
(duplicate email, unknown principal); sagas turn the rest into
InternalFailureException after compensating. They do not extend
PlatformException so an untranslated backend failure surfaces as a 500
rather than a misleading domain code.
"""

from __future__ import annotations


class BackendError(Exception):
    """Base exception for identity-directory and document-store failures."""


class DocumentExistsError(BackendError):
    """Raised when createDocument returns 409 (document ID already exists)."""


class DocumentNotFoundError(BackendError):
    """Raised when an update targets a document that does not exist."""

    def __init__(self, path: str) -> None:
        self.path = path
        super().__init__(f"Document not found: {path}")


class TenantScopeError(BackendError):
    """Raised when a write's tenantId disagrees with the resolved tenant.

    Also raised when a scoped operation targets a non-scoped collection (or
    the reverse). Indicates a programming error, never user input.
    """


class IdentityProviderError(BackendError):
    """Raised when the Identity Toolkit API rejects a request.

    Attributes:
        code: Provider error code (e.g. EMAIL_EXISTS, USER_NOT_FOUND).
        status_code: HTTP status returned by the provider.
    """

    def __init__(self, code: str, message: str | None = None, status_code: int = 400) -> None:
        self.code = code
        self.status_code = status_code
        super().__init__(message or code)


class EmailAlreadyExistsError(IdentityProviderError):
    """Raised when creating a principal whose email is already registered."""

    def __init__(self, email: str | None = None) -> None:
        self.email = email
        super().__init__("EMAIL_EXISTS", "Email already registered", 400)


class PrincipalNotFoundError(IdentityProviderError):
    """Raised when a principal uid or email does not exist."""

    def __init__(self, identifier: str) -> None:
        self.identifier = identifier
        super().__init__("USER_NOT_FOUND", f"Principal not found: {identifier}", 400)
