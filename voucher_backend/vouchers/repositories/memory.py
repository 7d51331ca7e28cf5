# vouchers/repositories/memory.py

"""
In-memory repositories.

Records are deep-copied on the way in and out so callers only observe
what they explicitly saved, the same as with a database.
"""

from __future__ import annotations

import copy
import uuid
from collections import Counter
from datetime import datetime
from typing import Iterable

from vouchers.domain.records import (
    ProductOptionRecord,
    PurchaseOrderRecord,
    StoreRecord,
    VoucherUnitRecord,
)
from vouchers.domain.status import VoucherStatus
from vouchers.services.exceptions import PurchaseOrderNotFound, StoreNotFound


class InMemoryPurchaseRepository:
    def __init__(self):
        self._orders: dict[uuid.UUID, PurchaseOrderRecord] = {}
        self._units: dict[uuid.UUID, VoucherUnitRecord] = {}

    def load(self, order_id) -> PurchaseOrderRecord:
        try:
            return copy.deepcopy(self._orders[order_id])
        except KeyError:
            raise PurchaseOrderNotFound(f"Purchase order {order_id} not found") from None

    def create(self, order: PurchaseOrderRecord) -> PurchaseOrderRecord:
        self._orders[order.id] = copy.deepcopy(order)
        return copy.deepcopy(order)

    def save(self, order: PurchaseOrderRecord) -> None:
        if order.id not in self._orders:
            raise PurchaseOrderNotFound(f"Purchase order {order.id} not found")
        self._orders[order.id] = copy.deepcopy(order)

    def _units_for(self, order_id, status: str | None = None) -> list[VoucherUnitRecord]:
        out = [
            u
            for u in self._units.values()
            if u.order_id == order_id and (status is None or u.status == status)
        ]
        out.sort(key=lambda u: u.external_id)
        return [copy.deepcopy(u) for u in out]

    def list_units(self, order_id) -> list[VoucherUnitRecord]:
        return self._units_for(order_id)

    def count_units_by_item(self, order_id) -> dict[uuid.UUID, int]:
        return dict(Counter(u.item_id for u in self._units.values() if u.order_id == order_id))

    def add_units(self, units: Iterable[VoucherUnitRecord]) -> None:
        for u in units:
            if any(x.external_id == u.external_id for x in self._units.values()):
                raise ValueError(f"Duplicate external_id {u.external_id}")
            self._units[u.id] = copy.deepcopy(u)

    def save_unit(self, unit: VoucherUnitRecord) -> None:
        self._units[unit.id] = copy.deepcopy(unit)

    def find_pending_units(self, order_id) -> list[VoucherUnitRecord]:
        return self._units_for(order_id, VoucherStatus.PENDING)

    def find_failed_units(self, order_id) -> list[VoucherUnitRecord]:
        return self._units_for(order_id, VoucherStatus.FAILED)

    def find_unpublished_units(self, order_id) -> list[VoucherUnitRecord]:
        return [u for u in self._units_for(order_id) if u.is_publishable]

    def mark_units_published(self, unit_ids, *, at: datetime) -> int:
        n = 0
        for uid in unit_ids:
            unit = self._units.get(uid)
            if unit is None or unit.storefront_synced:
                continue
            unit.storefront_synced = True
            unit.storefront_synced_at = at
            n += 1
        return n

    def count_units_by_status(self, order_id) -> dict[str, int]:
        return dict(Counter(u.status for u in self._units.values() if u.order_id == order_id))


class InMemoryCatalogRepository:
    def __init__(self):
        self._stores: dict[uuid.UUID, StoreRecord] = {}
        self._options: dict[uuid.UUID, ProductOptionRecord] = {}

    def add_store(self, store: StoreRecord) -> StoreRecord:
        self._stores[store.id] = copy.deepcopy(store)
        return store

    def add_option(self, option: ProductOptionRecord) -> ProductOptionRecord:
        self._options[option.id] = copy.deepcopy(option)
        return option

    def load_store(self, store_id) -> StoreRecord:
        try:
            return copy.deepcopy(self._stores[store_id])
        except KeyError:
            raise StoreNotFound(f"Store {store_id} not found") from None

    def list_options(self, store_id) -> list[ProductOptionRecord]:
        out = [o for o in self._options.values() if o.store_id == store_id]
        out.sort(key=lambda o: o.option_code)
        return [copy.deepcopy(o) for o in out]

    def find_options(self, store_id, option_code: str) -> list[ProductOptionRecord]:
        return [o for o in self.list_options(store_id) if o.option_code == option_code]

    def save_option(self, option: ProductOptionRecord) -> None:
        stored = self._options.get(option.id)
        saved = copy.deepcopy(option)
        if stored is not None:
            saved.stock_quantity = stored.stock_quantity
            saved.last_stock_update = stored.last_stock_update
        self._options[option.id] = saved

    def increment_stock(
        self, store_id, storefront_product_id: str, quantity: int, *, at: datetime
    ) -> list[ProductOptionRecord]:
        updated = []
        for o in self._options.values():
            if o.store_id == store_id and o.storefront_product_id == storefront_product_id:
                o.stock_quantity = int(o.stock_quantity or 0) + int(quantity)
                o.last_stock_update = at
                updated.append(copy.deepcopy(o))
        return updated
