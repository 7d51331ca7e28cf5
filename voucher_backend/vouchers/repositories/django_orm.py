# vouchers/repositories/django_orm.py

"""
Django ORM repositories.

Mapping rules:
- rows <-> records field-by-field (same names)
- order save writes the header and item pricing only; items are
  never added or removed here
- stock increments use F() so concurrent publishers do not lose counts
"""

from __future__ import annotations

from datetime import datetime
from typing import Iterable

from django.db import transaction
from django.db.models import Count, F
from django.utils import timezone

from store.models import Store, StoreProductOption
from vouchers.domain.records import (
    ProductOptionRecord,
    PurchaseOrderItemRecord,
    PurchaseOrderRecord,
    StoreRecord,
    VoucherUnitRecord,
)
from vouchers.domain.status import VoucherStatus
from vouchers.models import PurchaseOrder, PurchaseOrderItem, VoucherUnit
from vouchers.services.exceptions import PurchaseOrderNotFound, StoreNotFound

ORDER_FIELDS = (
    "status",
    "total_wholesale_cost",
    "balance_before",
    "balance_after",
    "total_vouchers_generated",
    "total_vouchers_failed",
    "error_message",
    "success_message",
    "processing_started_at",
    "processing_completed_at",
)

ITEM_PRICING_FIELDS = ("unit_wholesale_price", "total_wholesale_cost")

# Stock is only ever changed through increment_stock.
STOCK_FIELDS = ("stock_quantity", "last_stock_update")

UNIT_FIELDS = (
    "status",
    "request_sent_at",
    "response_received_at",
    "response_time_ms",
    "issuer_response",
    "operation_succeeded",
    "serial_number",
    "transaction_id",
    "provider_transaction_id",
    "reference",
    "redeem_url",
    "response_amount",
    "amount_wholesale",
    "error_text",
    "retry_count",
    "processed_at",
    "storefront_synced",
    "storefront_synced_at",
)

OPTION_FIELDS = (
    "option_name",
    "storefront_product_id",
    "stock_quantity",
    "last_stock_update",
    "wholesale_price",
    "min_face_value",
    "max_face_value",
    "store_currency_price",
    "custom_price",
    "markup_percentage",
    "last_price_update",
)


# ============================================================
# ROW -> RECORD
# ============================================================


def _item_record(row: PurchaseOrderItem) -> PurchaseOrderItemRecord:
    return PurchaseOrderItemRecord(
        id=row.id,
        order_id=row.purchase_order_id,
        product_option_code=row.product_option_code,
        quantity_ordered=row.quantity_ordered,
        unit_face_value=row.unit_face_value,
        unit_wholesale_price=row.unit_wholesale_price,
        total_wholesale_cost=row.total_wholesale_cost,
    )


def _order_record(row: PurchaseOrder) -> PurchaseOrderRecord:
    return PurchaseOrderRecord(
        id=row.id,
        store_id=row.store_id,
        created_at=row.created_at,
        updated_at=row.updated_at,
        items=[_item_record(it) for it in row.items.all()],
        **{f: getattr(row, f) for f in ORDER_FIELDS},
    )


def _unit_record(row: VoucherUnit) -> VoucherUnitRecord:
    return VoucherUnitRecord(
        id=row.id,
        order_id=row.purchase_order_id,
        item_id=row.item_id,
        external_id=row.external_id,
        created_at=row.created_at,
        **{f: getattr(row, f) for f in UNIT_FIELDS},
    )


def _store_record(row: Store) -> StoreRecord:
    return StoreRecord(
        id=row.id,
        name=row.name,
        issuer_username=row.issuer_username,
        issuer_password=row.issuer_password,
        issuer_terminal_key=row.issuer_terminal_key,
        issuer_sandbox=row.issuer_sandbox,
        storefront_access_token=row.storefront_access_token,
        is_active=row.is_active,
    )


def _option_record(row: StoreProductOption) -> ProductOptionRecord:
    return ProductOptionRecord(
        id=row.id,
        store_id=row.store_id,
        option_code=row.option_code,
        **{f: getattr(row, f) for f in OPTION_FIELDS},
    )


# ============================================================
# REPOSITORIES
# ============================================================


class DjangoPurchaseRepository:
    def load(self, order_id) -> PurchaseOrderRecord:
        try:
            row = PurchaseOrder.objects.prefetch_related("items").get(id=order_id)
        except PurchaseOrder.DoesNotExist as exc:
            raise PurchaseOrderNotFound(f"Purchase order {order_id} not found") from exc
        return _order_record(row)

    @transaction.atomic
    def create(self, order: PurchaseOrderRecord) -> PurchaseOrderRecord:
        row = PurchaseOrder.objects.create(
            id=order.id,
            store_id=order.store_id,
            **{f: getattr(order, f) for f in ORDER_FIELDS},
        )
        for it in order.items:
            PurchaseOrderItem.objects.create(
                id=it.id,
                purchase_order=row,
                product_option_code=it.product_option_code,
                quantity_ordered=it.quantity_ordered,
                unit_face_value=it.unit_face_value,
                unit_wholesale_price=it.unit_wholesale_price,
                total_wholesale_cost=it.total_wholesale_cost,
            )
        return self.load(row.id)

    @transaction.atomic
    def save(self, order: PurchaseOrderRecord) -> None:
        updated = PurchaseOrder.objects.filter(id=order.id).update(
            updated_at=timezone.now(),
            **{f: getattr(order, f) for f in ORDER_FIELDS},
        )
        if not updated:
            raise PurchaseOrderNotFound(f"Purchase order {order.id} not found")

        for it in order.items:
            PurchaseOrderItem.objects.filter(id=it.id, purchase_order_id=order.id).update(
                **{f: getattr(it, f) for f in ITEM_PRICING_FIELDS}
            )

    def list_units(self, order_id) -> list[VoucherUnitRecord]:
        return [_unit_record(u) for u in VoucherUnit.objects.filter(purchase_order_id=order_id)]

    def count_units_by_item(self, order_id) -> dict:
        rows = (
            VoucherUnit.objects.filter(purchase_order_id=order_id)
            .values("item_id")
            .annotate(n=Count("id"))
        )
        return {r["item_id"]: r["n"] for r in rows}

    def add_units(self, units: Iterable[VoucherUnitRecord]) -> None:
        VoucherUnit.objects.bulk_create(
            [
                VoucherUnit(
                    id=u.id,
                    purchase_order_id=u.order_id,
                    item_id=u.item_id,
                    external_id=u.external_id,
                    **{f: getattr(u, f) for f in UNIT_FIELDS},
                )
                for u in units
            ]
        )

    def save_unit(self, unit: VoucherUnitRecord) -> None:
        VoucherUnit.objects.filter(id=unit.id).update(
            **{f: getattr(unit, f) for f in UNIT_FIELDS}
        )

    def _by_status(self, order_id, status: str) -> list[VoucherUnitRecord]:
        qs = VoucherUnit.objects.filter(purchase_order_id=order_id, status=status)
        return [_unit_record(u) for u in qs]

    def find_pending_units(self, order_id) -> list[VoucherUnitRecord]:
        return self._by_status(order_id, VoucherStatus.PENDING)

    def find_failed_units(self, order_id) -> list[VoucherUnitRecord]:
        return self._by_status(order_id, VoucherStatus.FAILED)

    def find_unpublished_units(self, order_id) -> list[VoucherUnitRecord]:
        qs = VoucherUnit.objects.filter(
            purchase_order_id=order_id,
            status=VoucherStatus.GENERATED,
            storefront_synced=False,
        )
        return [_unit_record(u) for u in qs]

    def mark_units_published(self, unit_ids, *, at: datetime) -> int:
        return VoucherUnit.objects.filter(
            id__in=list(unit_ids), storefront_synced=False
        ).update(storefront_synced=True, storefront_synced_at=at)

    def count_units_by_status(self, order_id) -> dict[str, int]:
        rows = (
            VoucherUnit.objects.filter(purchase_order_id=order_id)
            .values("status")
            .annotate(n=Count("id"))
        )
        return {r["status"]: r["n"] for r in rows}


class DjangoCatalogRepository:
    def load_store(self, store_id) -> StoreRecord:
        try:
            return _store_record(Store.objects.get(id=store_id))
        except Store.DoesNotExist as exc:
            raise StoreNotFound(f"Store {store_id} not found") from exc

    def list_options(self, store_id) -> list[ProductOptionRecord]:
        qs = StoreProductOption.objects.filter(store_id=store_id, is_active=True)
        return [_option_record(o) for o in qs]

    def find_options(self, store_id, option_code: str) -> list[ProductOptionRecord]:
        qs = StoreProductOption.objects.filter(store_id=store_id, option_code=option_code)
        return [_option_record(o) for o in qs]

    def save_option(self, option: ProductOptionRecord) -> None:
        StoreProductOption.objects.filter(id=option.id).update(
            **{f: getattr(option, f) for f in OPTION_FIELDS if f not in STOCK_FIELDS}
        )

    @transaction.atomic
    def increment_stock(
        self, store_id, storefront_product_id: str, quantity: int, *, at: datetime
    ) -> list[ProductOptionRecord]:
        qs = StoreProductOption.objects.filter(
            store_id=store_id, storefront_product_id=storefront_product_id
        )
        qs.update(stock_quantity=F("stock_quantity") + int(quantity), last_stock_update=at)
        return [_option_record(o) for o in qs]
