"""
═══════════════════════════════════════════════════════════════════════════════
Marketplace — Domain Exception Hierarchy
═══════════════════════════════════════════════════════════════════════════════

Every domain failure derives from ``MarketplaceError``.
HTTP mapping of the codes is done in ``marketplace.main:marketplace_error_handler``;
the client only ever sees the status and ``{"error": message}``.
"""


class MarketplaceError(Exception):
    """
    Base exception for all marketplace domain errors.

    Attributes
    ──────────
        message (str):  Human readable description, returned to the client.
        code (str):     String code, mapped to an HTTP status.
        details (dict): Extra data for logs (never returned to the client).
    """

    def __init__(
        self,
        message: str,
        code: str = "MARKETPLACE_ERROR",
        details: dict | None = None,
    ):
        self.message = message
        self.code = code
        self.details = details or {}
        super().__init__(message)


class AuthenticationError(MarketplaceError):
    """Missing or rejected bearer credential: 401 Unauthorized."""

    def __init__(self, message: str = "Unauthorized", details: dict | None = None):
        super().__init__(message, code="AUTH_ERROR", details=details)


class ValidationError(MarketplaceError):
    """Domain validation failure: 422 Unprocessable Entity."""

    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message, code="VALIDATION_ERROR", details=details)


class NotFoundError(MarketplaceError):
    """Entity not found: 404 Not Found."""

    def __init__(self, entity: str, entity_id: str):
        super().__init__(
            message=f"{entity} not found",
            code="NOT_FOUND",
            details={"entity": entity, "id": entity_id},
        )


class ProvisioningError(MarketplaceError):
    """Payment account creation, persistence or link issuance failed: 500."""

    def __init__(
        self,
        message: str = "Failed to create Stripe account link",
        details: dict | None = None,
    ):
        super().__init__(message, code="PROVISIONING_FAILED", details=details)


class RetrievalError(MarketplaceError):
    """Payment platform unreachable during a status read: 500."""

    def __init__(
        self,
        message: str = "Failed to retrieve account status",
        details: dict | None = None,
    ):
        super().__init__(message, code="RETRIEVAL_FAILED", details=details)


class StoreError(MarketplaceError):
    """Record store unreachable or constraint violated: 500."""

    def __init__(self, message: str = "Something went wrong", details: dict | None = None):
        super().__init__(message, code="STORE_ERROR", details=details)


__all__ = [
    "MarketplaceError",
    "AuthenticationError",
    "ValidationError",
    "NotFoundError",
    "ProvisioningError",
    "RetrievalError",
    "StoreError",
]
