"""
Store models export surface.
"""

from .product_option import StoreProductOption
from .store import Store

__all__ = [
    "Store",
    "StoreProductOption",
]
