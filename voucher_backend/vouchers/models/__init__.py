"""
Voucher purchase models export surface.
"""

from .purchase_order import PurchaseOrder
from .purchase_order_item import PurchaseOrderItem
from .voucher_unit import VoucherUnit

__all__ = [
    "PurchaseOrder",
    "PurchaseOrderItem",
    "VoucherUnit",
]
