# store/models/store.py

import uuid

from django.db import models
from django.db.models import Q


class Store(models.Model):
    """
    Represents a merchant's storefront account.

    Holds the two sets of third-party credentials the fulfillment
    pipeline needs:
    - issuer credentials (username/password/terminal key + sandbox flag)
    - storefront access token (refreshed out-of-band by the OAuth flow)

    Credentials are never copied onto orders or vouchers.
    """

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    name = models.CharField(max_length=255)

    # Optional, but if provided must be unique
    code = models.CharField(
        max_length=50,
        null=True,
        blank=True,
        help_text="Unique store code (optional). If set, must be unique.",
        db_index=True,
    )

    storefront_merchant_id = models.CharField(max_length=64, blank=True, default="")
    storefront_access_token = models.TextField(blank=True, default="")

    issuer_username = models.CharField(max_length=255, blank=True, default="")
    issuer_password = models.CharField(max_length=255, blank=True, default="")
    issuer_terminal_key = models.CharField(max_length=255, blank=True, default="")
    issuer_sandbox = models.BooleanField(
        default=False,
        help_text="Route issuer calls to the sandbox endpoint.",
    )

    is_active = models.BooleanField(default=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["name"]
        constraints = [
            models.UniqueConstraint(
                fields=["code"],
                condition=Q(code__isnull=False) & ~Q(code=""),
                name="uniq_store_code_when_present",
            ),
        ]

    def __str__(self):
        c = (self.code or "").strip()
        if c:
            return f"{self.name} ({c})"
        return self.name
