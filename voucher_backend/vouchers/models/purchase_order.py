# vouchers/models/purchase_order.py

import uuid
from decimal import Decimal

from django.core.exceptions import ValidationError
from django.db import models

from store.models.store import Store
from vouchers.domain.status import OrderStatus


class PurchaseOrder(models.Model):
    """
    A merchant's request to buy vouchers from the issuer.

    Mutated only through the fulfillment services:
    - created in DRAFT
    - total_wholesale_cost always equals the sum of its items
    - generated/failed counts are recounted from voucher units
    """

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    STATUS_DRAFT = OrderStatus.DRAFT
    STATUS_PENDING = OrderStatus.PENDING
    STATUS_PROCESSING = OrderStatus.PROCESSING
    STATUS_COMPLETED = OrderStatus.COMPLETED
    STATUS_PARTIALLY_COMPLETED = OrderStatus.PARTIALLY_COMPLETED
    STATUS_FAILED = OrderStatus.FAILED
    STATUS_CANCELLED = OrderStatus.CANCELLED

    store = models.ForeignKey(
        Store,
        on_delete=models.PROTECT,
        related_name="purchase_orders",
    )

    status = models.CharField(
        max_length=24, choices=OrderStatus.CHOICES, default=OrderStatus.DRAFT
    )

    total_wholesale_cost = models.DecimalField(
        max_digits=14, decimal_places=2, default=Decimal("0.00")
    )
    balance_before = models.DecimalField(
        max_digits=14, decimal_places=2, null=True, blank=True
    )
    balance_after = models.DecimalField(
        max_digits=14, decimal_places=2, null=True, blank=True
    )

    total_vouchers_generated = models.PositiveIntegerField(default=0)
    total_vouchers_failed = models.PositiveIntegerField(default=0)

    error_message = models.TextField(null=True, blank=True)
    success_message = models.TextField(null=True, blank=True)

    processing_started_at = models.DateTimeField(null=True, blank=True)
    processing_completed_at = models.DateTimeField(null=True, blank=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["-created_at"]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(total_wholesale_cost__gte=Decimal("0.00")),
                name="purchase_order_total_nonnegative",
            ),
        ]
        indexes = [
            models.Index(fields=["store", "created_at"], name="po_store_created_idx"),
            models.Index(fields=["status", "created_at"], name="po_status_created_idx"),
        ]

    def clean(self):
        if self.total_wholesale_cost is not None and self.total_wholesale_cost < Decimal("0.00"):
            raise ValidationError(
                {"total_wholesale_cost": "total_wholesale_cost cannot be negative"}
            )

    def __str__(self):
        return f"PO {str(self.id)[:8]} ({self.status})"
