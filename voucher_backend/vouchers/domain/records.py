# vouchers/domain/records.py

"""
PLAIN DOMAIN RECORDS

The fulfillment pipeline works on these dataclasses only.
Repositories translate them to and from storage (ORM rows or memory).

Ownership:
- PurchaseOrderRecord owns its items (order.items)
- VoucherUnitRecord points to its item by id and never carries credentials
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import datetime
from decimal import ROUND_HALF_UP, Decimal
from typing import Any

from vouchers.domain.status import OrderStatus, VoucherStatus

TWOPLACES = Decimal("0.01")
FOURPLACES = Decimal("0.0001")


def money(v) -> Decimal:
    if v is None or v == "":
        return Decimal("0.00")
    return Decimal(str(v)).quantize(TWOPLACES, rounding=ROUND_HALF_UP)


def price(v) -> Decimal:
    """Unit prices keep four places (issuer bands are fractional)."""
    if v is None or v == "":
        return Decimal("0.0000")
    return Decimal(str(v)).quantize(FOURPLACES, rounding=ROUND_HALF_UP)


def to_minor_units(amount) -> int:
    minor = (Decimal(str(amount or "0")) * Decimal("100")).quantize(
        Decimal("1"), rounding=ROUND_HALF_UP
    )
    return int(minor)


def from_minor_units(minor) -> Decimal:
    return money(Decimal(int(minor or 0)) / Decimal("100"))


@dataclass
class StoreRecord:
    id: uuid.UUID
    name: str
    issuer_username: str = ""
    issuer_password: str = ""
    issuer_terminal_key: str = ""
    issuer_sandbox: bool = False
    storefront_access_token: str = ""
    is_active: bool = True

    @property
    def has_issuer_credentials(self) -> bool:
        return all(
            (v or "").strip()
            for v in (self.issuer_username, self.issuer_password, self.issuer_terminal_key)
        )


@dataclass
class ProductOptionRecord:
    """
    A storefront catalog entry linked to one issuer product option.
    stock_quantity is the locally cached counter for the storefront product.
    """

    id: uuid.UUID
    store_id: uuid.UUID
    option_code: str
    option_name: str = ""
    storefront_product_id: str = ""
    stock_quantity: int = 0
    last_stock_update: datetime | None = None
    wholesale_price: Decimal = Decimal("0.0000")
    min_face_value: Decimal = Decimal("0.0000")
    max_face_value: Decimal = Decimal("0.0000")
    store_currency_price: Decimal | None = None
    custom_price: Decimal | None = None
    markup_percentage: Decimal | None = None
    last_price_update: datetime | None = None


@dataclass
class PurchaseOrderItemRecord:
    id: uuid.UUID
    order_id: uuid.UUID
    product_option_code: str
    quantity_ordered: int
    unit_face_value: Decimal = Decimal("0.0000")
    unit_wholesale_price: Decimal = Decimal("0.0000")
    total_wholesale_cost: Decimal = Decimal("0.00")

    def reprice(self, unit_wholesale_price) -> None:
        self.unit_wholesale_price = price(unit_wholesale_price)
        self.total_wholesale_cost = money(
            Decimal(int(self.quantity_ordered)) * self.unit_wholesale_price
        )


@dataclass
class PurchaseOrderRecord:
    id: uuid.UUID
    store_id: uuid.UUID
    status: str = OrderStatus.DRAFT
    total_wholesale_cost: Decimal = Decimal("0.00")
    balance_before: Decimal | None = None
    balance_after: Decimal | None = None
    total_vouchers_generated: int = 0
    total_vouchers_failed: int = 0
    error_message: str | None = None
    success_message: str | None = None
    processing_started_at: datetime | None = None
    processing_completed_at: datetime | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None
    items: list[PurchaseOrderItemRecord] = field(default_factory=list)

    def recompute_total(self) -> Decimal:
        self.total_wholesale_cost = money(
            sum((it.total_wholesale_cost for it in self.items), Decimal("0.00"))
        )
        return self.total_wholesale_cost

    @property
    def total_quantity(self) -> int:
        return sum(int(it.quantity_ordered) for it in self.items)

    def item_by_id(self, item_id) -> PurchaseOrderItemRecord | None:
        for it in self.items:
            if it.id == item_id:
                return it
        return None


@dataclass
class VoucherUnitRecord:
    id: uuid.UUID
    order_id: uuid.UUID
    item_id: uuid.UUID
    external_id: str
    status: str = VoucherStatus.PENDING
    request_sent_at: datetime | None = None
    response_received_at: datetime | None = None
    response_time_ms: int | None = None
    issuer_response: dict[str, Any] | None = None
    operation_succeeded: bool | None = None
    serial_number: str | None = None
    transaction_id: str | None = None
    provider_transaction_id: str | None = None
    reference: str | None = None
    redeem_url: str | None = None
    response_amount: Decimal | None = None
    amount_wholesale: Decimal | None = None
    error_text: str | None = None
    retry_count: int = 0
    processed_at: datetime | None = None
    storefront_synced: bool = False
    storefront_synced_at: datetime | None = None
    created_at: datetime | None = None

    @property
    def is_publishable(self) -> bool:
        return self.status == VoucherStatus.GENERATED and not self.storefront_synced
