# store/models/product_option.py

import uuid
from decimal import Decimal

from django.db import models

from store.models.store import Store


class StoreProductOption(models.Model):
    """
    A storefront catalog entry linked to one issuer product option.

    - option_code: issuer ProductOptionCode
    - storefront_product_id: product that receives the generated codes
    - stock_quantity: locally cached stock counter for that product
    - wholesale/face pricing: last band fetched from the issuer
    """

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    store = models.ForeignKey(
        Store,
        on_delete=models.CASCADE,
        related_name="product_options",
    )

    option_code = models.CharField(max_length=100, db_index=True)
    option_name = models.CharField(max_length=255, blank=True, default="")
    storefront_product_id = models.CharField(
        max_length=64, blank=True, default="", db_index=True
    )

    stock_quantity = models.IntegerField(default=0)
    last_stock_update = models.DateTimeField(null=True, blank=True)

    wholesale_price = models.DecimalField(
        max_digits=14, decimal_places=4, default=Decimal("0.0000")
    )
    min_face_value = models.DecimalField(
        max_digits=14, decimal_places=4, default=Decimal("0.0000")
    )
    max_face_value = models.DecimalField(
        max_digits=14, decimal_places=4, default=Decimal("0.0000")
    )
    store_currency_price = models.DecimalField(
        max_digits=14, decimal_places=4, null=True, blank=True
    )
    custom_price = models.DecimalField(
        max_digits=14, decimal_places=4, null=True, blank=True
    )
    markup_percentage = models.DecimalField(
        max_digits=9, decimal_places=4, null=True, blank=True
    )
    last_price_update = models.DateTimeField(null=True, blank=True)

    is_active = models.BooleanField(default=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["option_code"]
        constraints = [
            models.UniqueConstraint(
                fields=["store", "option_code"],
                name="uniq_store_option_code",
            ),
            models.CheckConstraint(
                condition=models.Q(stock_quantity__gte=0),
                name="store_option_stock_nonnegative",
            ),
        ]
        indexes = [
            models.Index(fields=["store", "storefront_product_id"], name="store_option_product_idx"),
        ]

    def __str__(self):
        return f"{self.option_code} -> {self.storefront_product_id or '-'}"
