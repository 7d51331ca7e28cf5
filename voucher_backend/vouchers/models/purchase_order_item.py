# vouchers/models/purchase_order_item.py

import uuid
from decimal import Decimal

from django.db import models

from vouchers.models.purchase_order import PurchaseOrder


class PurchaseOrderItem(models.Model):
    """
    One line of a purchase order: a product option and a quantity.

    Pricing (unit_wholesale_price / total_wholesale_cost) may be refreshed
    from the issuer until processing starts; everything else is fixed
    once the order leaves DRAFT.
    """

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    purchase_order = models.ForeignKey(
        PurchaseOrder,
        on_delete=models.CASCADE,
        related_name="items",
    )

    product_option_code = models.CharField(max_length=100)
    quantity_ordered = models.PositiveIntegerField()

    unit_face_value = models.DecimalField(
        max_digits=14, decimal_places=4, default=Decimal("0.0000")
    )
    unit_wholesale_price = models.DecimalField(
        max_digits=14, decimal_places=4, default=Decimal("0.0000")
    )
    total_wholesale_cost = models.DecimalField(
        max_digits=14, decimal_places=2, default=Decimal("0.00")
    )

    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["created_at"]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(quantity_ordered__gt=0),
                name="purchase_order_item_quantity_gt_zero",
            ),
            models.CheckConstraint(
                condition=models.Q(unit_wholesale_price__gte=Decimal("0.0000")),
                name="purchase_order_item_price_nonnegative",
            ),
        ]
        indexes = [
            models.Index(fields=["purchase_order", "created_at"], name="po_item_order_created_idx"),
        ]

    def __str__(self):
        return f"{self.product_option_code} x {self.quantity_ordered}"
