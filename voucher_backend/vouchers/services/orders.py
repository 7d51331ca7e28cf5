# vouchers/services/orders.py

"""
PURCHASE ORDER ASSEMBLY

Creates DRAFT orders from catalog lines and moves them through the
manual part of the lifecycle (submit / cancel). Processing itself is
the coordinator's job.
"""

from __future__ import annotations

import logging
import uuid
from collections import OrderedDict
from datetime import datetime
from typing import Callable, Iterable

from django.utils import timezone

from vouchers.domain.lifecycle import transition_order
from vouchers.domain.records import PurchaseOrderItemRecord, PurchaseOrderRecord
from vouchers.domain.status import OrderStatus
from vouchers.repositories.base import CatalogRepository, PurchaseRepository
from vouchers.services.exceptions import OrderValidationError

logger = logging.getLogger(__name__)


def _merge_lines(lines: Iterable[dict]) -> "OrderedDict[str, int]":
    merged: OrderedDict[str, int] = OrderedDict()
    for line in lines:
        code = str(line.get("option_code") or "").strip()
        if not code:
            raise OrderValidationError("Each line needs an option_code")
        try:
            qty = int(line.get("quantity"))
        except (TypeError, ValueError):
            raise OrderValidationError(f"Quantity for {code} must be an integer") from None
        if qty <= 0:
            raise OrderValidationError(f"Quantity for {code} must be > 0")
        merged[code] = merged.get(code, 0) + qty
    return merged


def create_purchase_order(
    *,
    orders: PurchaseRepository,
    catalog: CatalogRepository,
    store_id,
    lines: Iterable[dict],
    clock: Callable[[], datetime] = timezone.now,
) -> PurchaseOrderRecord:
    """
    lines: [{"option_code": str, "quantity": int}, ...]
    Repeated option codes are merged into one item.
    """
    store = catalog.load_store(store_id)
    if not store.is_active:
        raise OrderValidationError(f"Store {store.id} is inactive")

    merged = _merge_lines(lines)
    if not merged:
        raise OrderValidationError("Purchase order must have at least one line")

    now = clock()
    order = PurchaseOrderRecord(
        id=uuid.uuid4(),
        store_id=store.id,
        status=OrderStatus.DRAFT,
        created_at=now,
        updated_at=now,
    )

    for code, qty in merged.items():
        options = catalog.find_options(store.id, code)
        if not options:
            raise OrderValidationError(f"Unknown product option '{code}' for this store")
        option = options[0]

        item = PurchaseOrderItemRecord(
            id=uuid.uuid4(),
            order_id=order.id,
            product_option_code=code,
            quantity_ordered=qty,
            unit_face_value=option.min_face_value,
        )
        item.reprice(option.wholesale_price)
        order.items.append(item)

    order.recompute_total()
    created = orders.create(order)

    logger.info(
        "Purchase order created",
        extra={
            "order_id": str(created.id),
            "store_id": str(store.id),
            "items": len(created.items),
            "total_wholesale_cost": str(created.total_wholesale_cost),
        },
    )
    return created


def submit_order(
    *,
    orders: PurchaseRepository,
    order_id,
    clock: Callable[[], datetime] = timezone.now,
) -> PurchaseOrderRecord:
    order = orders.load(order_id)
    if not order.items:
        raise OrderValidationError("Cannot submit an order without items")

    transition_order(order, OrderStatus.PENDING, now=clock())
    orders.save(order)
    logger.info("Purchase order submitted", extra={"order_id": str(order.id)})
    return order


def cancel_order(
    *,
    orders: PurchaseRepository,
    order_id,
    clock: Callable[[], datetime] = timezone.now,
) -> PurchaseOrderRecord:
    order = orders.load(order_id)
    transition_order(order, OrderStatus.CANCELLED, now=clock())
    orders.save(order)
    logger.info("Purchase order cancelled", extra={"order_id": str(order.id)})
    return order
