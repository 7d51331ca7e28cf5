from .issuer import IssuerClient, IssuerSession, TransactionResult
from .storefront import StorefrontClient

__all__ = [
    "IssuerClient",
    "IssuerSession",
    "TransactionResult",
    "StorefrontClient",
]
