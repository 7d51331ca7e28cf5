"""
======================================================
PATH: vouchers/migrations/0001_initial.py
======================================================
MIGRATION: CREATE PurchaseOrder + PurchaseOrderItem + VoucherUnit
"""

from __future__ import annotations

import uuid
from decimal import Decimal

import django.db.models.deletion
from django.db import migrations, models

ORDER_STATUS_CHOICES = [
    ("DRAFT", "Draft"),
    ("PENDING", "Pending"),
    ("PROCESSING", "Processing"),
    ("COMPLETED", "Completed"),
    ("PARTIALLY_COMPLETED", "Partially completed"),
    ("FAILED", "Failed"),
    ("CANCELLED", "Cancelled"),
]

VOUCHER_STATUS_CHOICES = [
    ("PENDING", "Pending"),
    ("PROCESSING", "Processing"),
    ("GENERATED", "Generated"),
    ("FAILED", "Failed"),
]


def _uuid_pk():
    return models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False, serialize=False)


class Migration(migrations.Migration):
    initial = True

    dependencies = [
        ("store", "0001_initial"),
    ]

    operations = [
        migrations.CreateModel(
            name="PurchaseOrder",
            fields=[
                ("id", _uuid_pk()),
                (
                    "status",
                    models.CharField(max_length=24, choices=ORDER_STATUS_CHOICES, default="DRAFT"),
                ),
                (
                    "total_wholesale_cost",
                    models.DecimalField(max_digits=14, decimal_places=2, default=Decimal("0.00")),
                ),
                (
                    "balance_before",
                    models.DecimalField(max_digits=14, decimal_places=2, null=True, blank=True),
                ),
                (
                    "balance_after",
                    models.DecimalField(max_digits=14, decimal_places=2, null=True, blank=True),
                ),
                ("total_vouchers_generated", models.PositiveIntegerField(default=0)),
                ("total_vouchers_failed", models.PositiveIntegerField(default=0)),
                ("error_message", models.TextField(null=True, blank=True)),
                ("success_message", models.TextField(null=True, blank=True)),
                ("processing_started_at", models.DateTimeField(null=True, blank=True)),
                ("processing_completed_at", models.DateTimeField(null=True, blank=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                (
                    "store",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="purchase_orders",
                        to="store.store",
                    ),
                ),
            ],
            options={
                "ordering": ["-created_at"],
                "indexes": [
                    models.Index(fields=["store", "created_at"], name="po_store_created_idx"),
                    models.Index(fields=["status", "created_at"], name="po_status_created_idx"),
                ],
                "constraints": [
                    models.CheckConstraint(
                        condition=models.Q(("total_wholesale_cost__gte", Decimal("0.00"))),
                        name="purchase_order_total_nonnegative",
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name="PurchaseOrderItem",
            fields=[
                ("id", _uuid_pk()),
                ("product_option_code", models.CharField(max_length=100)),
                ("quantity_ordered", models.PositiveIntegerField()),
                (
                    "unit_face_value",
                    models.DecimalField(max_digits=14, decimal_places=4, default=Decimal("0.0000")),
                ),
                (
                    "unit_wholesale_price",
                    models.DecimalField(max_digits=14, decimal_places=4, default=Decimal("0.0000")),
                ),
                (
                    "total_wholesale_cost",
                    models.DecimalField(max_digits=14, decimal_places=2, default=Decimal("0.00")),
                ),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                (
                    "purchase_order",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="items",
                        to="vouchers.purchaseorder",
                    ),
                ),
            ],
            options={
                "ordering": ["created_at"],
                "indexes": [
                    models.Index(
                        fields=["purchase_order", "created_at"],
                        name="po_item_order_created_idx",
                    ),
                ],
                "constraints": [
                    models.CheckConstraint(
                        condition=models.Q(("quantity_ordered__gt", 0)),
                        name="purchase_order_item_quantity_gt_zero",
                    ),
                    models.CheckConstraint(
                        condition=models.Q(("unit_wholesale_price__gte", Decimal("0.0000"))),
                        name="purchase_order_item_price_nonnegative",
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name="VoucherUnit",
            fields=[
                ("id", _uuid_pk()),
                ("external_id", models.CharField(max_length=64, unique=True)),
                (
                    "status",
                    models.CharField(max_length=16, choices=VOUCHER_STATUS_CHOICES, default="PENDING"),
                ),
                ("request_sent_at", models.DateTimeField(null=True, blank=True)),
                ("response_received_at", models.DateTimeField(null=True, blank=True)),
                ("response_time_ms", models.PositiveIntegerField(null=True, blank=True)),
                ("issuer_response", models.JSONField(null=True, blank=True)),
                ("operation_succeeded", models.BooleanField(null=True, blank=True)),
                ("serial_number", models.CharField(max_length=255, null=True, blank=True)),
                ("transaction_id", models.CharField(max_length=64, null=True, blank=True)),
                ("provider_transaction_id", models.CharField(max_length=64, null=True, blank=True)),
                ("reference", models.CharField(max_length=255, null=True, blank=True)),
                ("redeem_url", models.URLField(max_length=500, null=True, blank=True)),
                (
                    "response_amount",
                    models.DecimalField(max_digits=14, decimal_places=4, null=True, blank=True),
                ),
                (
                    "amount_wholesale",
                    models.DecimalField(max_digits=14, decimal_places=4, null=True, blank=True),
                ),
                ("error_text", models.TextField(null=True, blank=True)),
                ("retry_count", models.PositiveSmallIntegerField(default=0)),
                ("processed_at", models.DateTimeField(null=True, blank=True)),
                ("storefront_synced", models.BooleanField(default=False)),
                ("storefront_synced_at", models.DateTimeField(null=True, blank=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                (
                    "purchase_order",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="voucher_units",
                        to="vouchers.purchaseorder",
                    ),
                ),
                (
                    "item",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="voucher_units",
                        to="vouchers.purchaseorderitem",
                    ),
                ),
            ],
            options={
                "ordering": ["external_id"],
                "indexes": [
                    models.Index(fields=["purchase_order", "status"], name="voucher_order_status_idx"),
                    models.Index(
                        fields=["purchase_order", "storefront_synced"],
                        name="voucher_order_synced_idx",
                    ),
                ],
            },
        ),
    ]
