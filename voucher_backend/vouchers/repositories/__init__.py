from .base import CatalogRepository, PurchaseRepository
from .memory import InMemoryCatalogRepository, InMemoryPurchaseRepository

__all__ = [
    "CatalogRepository",
    "PurchaseRepository",
    "InMemoryCatalogRepository",
    "InMemoryPurchaseRepository",
]
