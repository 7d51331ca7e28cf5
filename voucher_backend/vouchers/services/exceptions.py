# vouchers/services/exceptions.py

"""
VOUCHER SERVICE ERRORS

Centralized domain errors for the fulfillment pipeline.

Only unrecoverable conditions are raised. Expected business outcomes
(short balance, issuer rejection of one voucher, storefront refusal)
travel back as result objects.
"""


class VoucherServiceError(Exception):
    """Base exception for all voucher fulfillment failures."""


class PurchaseOrderNotFound(VoucherServiceError):
    """Raised when a purchase order id does not resolve."""


class StoreNotFound(VoucherServiceError):
    """Raised when the owning merchant store does not resolve."""


class InvalidOrderTransitionError(VoucherServiceError):
    """Raised on a lifecycle transition the state machine does not allow."""


class OrderValidationError(VoucherServiceError):
    """Raised when an order or one of its lines is malformed."""


class CredentialsMisconfiguredError(VoucherServiceError):
    """Raised when a store lacks issuer credentials or a storefront token."""


# ============================================================
# INTEGRATIONS
# ============================================================


class IntegrationError(VoucherServiceError):
    """Base for third-party failures."""


class IssuerError(IntegrationError):
    """Issuer API failure."""


class IssuerTransportError(IssuerError):
    """Timeout, network failure or non-2xx status. Transient for retry purposes."""

    def __init__(self, message: str, *, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code


class IssuerAuthenticationError(IssuerError):
    """Issuer refused the store credentials."""


class IssuerResponseError(IssuerError):
    """Issuer answered with a malformed body or a failed lookup."""


class StorefrontError(IntegrationError):
    """Storefront API failure."""


class StorefrontTransportError(StorefrontError):
    def __init__(self, message: str, *, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code


class StorefrontResponseError(StorefrontError):
    """Storefront answered but reported failure or a malformed body."""
