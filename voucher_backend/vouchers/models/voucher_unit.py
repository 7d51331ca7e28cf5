# vouchers/models/voucher_unit.py

import uuid

from django.db import models

from vouchers.domain.status import VoucherStatus
from vouchers.models.purchase_order import PurchaseOrder
from vouchers.models.purchase_order_item import PurchaseOrderItem


class VoucherUnit(models.Model):
    """
    One individually issued voucher (one per ordered quantity unit).

    external_id is the idempotency key sent to the issuer.
    The issued code is `reference`; storefront_synced marks it attached
    to the storefront product.
    """

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    purchase_order = models.ForeignKey(
        PurchaseOrder,
        on_delete=models.CASCADE,
        related_name="voucher_units",
    )
    item = models.ForeignKey(
        PurchaseOrderItem,
        on_delete=models.CASCADE,
        related_name="voucher_units",
    )

    external_id = models.CharField(max_length=64, unique=True)
    status = models.CharField(
        max_length=16, choices=VoucherStatus.CHOICES, default=VoucherStatus.PENDING
    )

    request_sent_at = models.DateTimeField(null=True, blank=True)
    response_received_at = models.DateTimeField(null=True, blank=True)
    response_time_ms = models.PositiveIntegerField(null=True, blank=True)
    issuer_response = models.JSONField(null=True, blank=True)
    operation_succeeded = models.BooleanField(null=True, blank=True)

    serial_number = models.CharField(max_length=255, null=True, blank=True)
    transaction_id = models.CharField(max_length=64, null=True, blank=True)
    provider_transaction_id = models.CharField(max_length=64, null=True, blank=True)
    reference = models.CharField(max_length=255, null=True, blank=True)
    redeem_url = models.URLField(max_length=500, null=True, blank=True)
    response_amount = models.DecimalField(
        max_digits=14, decimal_places=4, null=True, blank=True
    )
    amount_wholesale = models.DecimalField(
        max_digits=14, decimal_places=4, null=True, blank=True
    )

    error_text = models.TextField(null=True, blank=True)
    retry_count = models.PositiveSmallIntegerField(default=0)
    processed_at = models.DateTimeField(null=True, blank=True)

    storefront_synced = models.BooleanField(default=False)
    storefront_synced_at = models.DateTimeField(null=True, blank=True)

    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["external_id"]
        indexes = [
            models.Index(fields=["purchase_order", "status"], name="voucher_order_status_idx"),
            models.Index(fields=["purchase_order", "storefront_synced"], name="voucher_order_synced_idx"),
        ]

    def __str__(self):
        return f"{self.external_id} ({self.status})"
