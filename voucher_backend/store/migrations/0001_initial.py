"""
======================================================
PATH: store/migrations/0001_initial.py
======================================================
MIGRATION: CREATE Store + StoreProductOption
"""

from __future__ import annotations

import uuid
from decimal import Decimal

import django.db.models.deletion
from django.db import migrations, models


class Migration(migrations.Migration):
    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name="Store",
            fields=[
                (
                    "id",
                    models.UUIDField(
                        primary_key=True,
                        default=uuid.uuid4,
                        editable=False,
                        serialize=False,
                    ),
                ),
                ("name", models.CharField(max_length=255)),
                (
                    "code",
                    models.CharField(
                        max_length=50,
                        null=True,
                        blank=True,
                        db_index=True,
                        help_text="Unique store code (optional). If set, must be unique.",
                    ),
                ),
                ("storefront_merchant_id", models.CharField(max_length=64, blank=True, default="")),
                ("storefront_access_token", models.TextField(blank=True, default="")),
                ("issuer_username", models.CharField(max_length=255, blank=True, default="")),
                ("issuer_password", models.CharField(max_length=255, blank=True, default="")),
                ("issuer_terminal_key", models.CharField(max_length=255, blank=True, default="")),
                (
                    "issuer_sandbox",
                    models.BooleanField(
                        default=False,
                        help_text="Route issuer calls to the sandbox endpoint.",
                    ),
                ),
                ("is_active", models.BooleanField(default=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
            ],
            options={
                "ordering": ["name"],
                "constraints": [
                    models.UniqueConstraint(
                        fields=("code",),
                        condition=models.Q(("code__isnull", False), models.Q(("code", ""), _negated=True)),
                        name="uniq_store_code_when_present",
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name="StoreProductOption",
            fields=[
                (
                    "id",
                    models.UUIDField(
                        primary_key=True,
                        default=uuid.uuid4,
                        editable=False,
                        serialize=False,
                    ),
                ),
                ("option_code", models.CharField(max_length=100, db_index=True)),
                ("option_name", models.CharField(max_length=255, blank=True, default="")),
                (
                    "storefront_product_id",
                    models.CharField(max_length=64, blank=True, default="", db_index=True),
                ),
                ("stock_quantity", models.IntegerField(default=0)),
                ("last_stock_update", models.DateTimeField(null=True, blank=True)),
                (
                    "wholesale_price",
                    models.DecimalField(max_digits=14, decimal_places=4, default=Decimal("0.0000")),
                ),
                (
                    "min_face_value",
                    models.DecimalField(max_digits=14, decimal_places=4, default=Decimal("0.0000")),
                ),
                (
                    "max_face_value",
                    models.DecimalField(max_digits=14, decimal_places=4, default=Decimal("0.0000")),
                ),
                (
                    "store_currency_price",
                    models.DecimalField(max_digits=14, decimal_places=4, null=True, blank=True),
                ),
                (
                    "custom_price",
                    models.DecimalField(max_digits=14, decimal_places=4, null=True, blank=True),
                ),
                (
                    "markup_percentage",
                    models.DecimalField(max_digits=9, decimal_places=4, null=True, blank=True),
                ),
                ("last_price_update", models.DateTimeField(null=True, blank=True)),
                ("is_active", models.BooleanField(default=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                (
                    "store",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="product_options",
                        to="store.store",
                    ),
                ),
            ],
            options={
                "ordering": ["option_code"],
                "indexes": [
                    models.Index(fields=["store", "storefront_product_id"], name="store_option_product_idx"),
                ],
                "constraints": [
                    models.UniqueConstraint(
                        fields=("store", "option_code"),
                        name="uniq_store_option_code",
                    ),
                    models.CheckConstraint(
                        condition=models.Q(("stock_quantity__gte", 0)),
                        name="store_option_stock_nonnegative",
                    ),
                ],
            },
        ),
    ]
