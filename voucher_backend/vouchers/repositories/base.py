# vouchers/repositories/base.py

"""
PERSISTENCE INTERFACES

The pipeline talks to storage only through these two narrow interfaces:
- PurchaseRepository: orders, their items and voucher units
- CatalogRepository: merchant stores and storefront product options

Implementations:
- vouchers.repositories.django_orm (production)
- vouchers.repositories.memory (tests, scripts)
"""

from __future__ import annotations

import uuid
from datetime import datetime
from typing import Iterable, Protocol

from vouchers.domain.records import (
    ProductOptionRecord,
    PurchaseOrderRecord,
    StoreRecord,
    VoucherUnitRecord,
)


class PurchaseRepository(Protocol):
    def load(self, order_id: uuid.UUID) -> PurchaseOrderRecord:
        """Order with its items. Raises PurchaseOrderNotFound."""

    def create(self, order: PurchaseOrderRecord) -> PurchaseOrderRecord: ...

    def save(self, order: PurchaseOrderRecord) -> None:
        """Persist order header fields and item pricing."""

    def list_units(self, order_id: uuid.UUID) -> list[VoucherUnitRecord]: ...

    def count_units_by_item(self, order_id: uuid.UUID) -> dict[uuid.UUID, int]: ...

    def add_units(self, units: Iterable[VoucherUnitRecord]) -> None: ...

    def save_unit(self, unit: VoucherUnitRecord) -> None: ...

    def find_pending_units(self, order_id: uuid.UUID) -> list[VoucherUnitRecord]: ...

    def find_failed_units(self, order_id: uuid.UUID) -> list[VoucherUnitRecord]: ...

    def find_unpublished_units(self, order_id: uuid.UUID) -> list[VoucherUnitRecord]:
        """GENERATED units not yet attached to the storefront."""

    def mark_units_published(
        self, unit_ids: Iterable[uuid.UUID], *, at: datetime
    ) -> int: ...

    def count_units_by_status(self, order_id: uuid.UUID) -> dict[str, int]: ...


class CatalogRepository(Protocol):
    def load_store(self, store_id: uuid.UUID) -> StoreRecord:
        """Raises StoreNotFound."""

    def list_options(self, store_id: uuid.UUID) -> list[ProductOptionRecord]: ...

    def find_options(
        self, store_id: uuid.UUID, option_code: str
    ) -> list[ProductOptionRecord]: ...

    def save_option(self, option: ProductOptionRecord) -> None: ...

    def increment_stock(
        self,
        store_id: uuid.UUID,
        storefront_product_id: str,
        quantity: int,
        *,
        at: datetime,
    ) -> list[ProductOptionRecord]:
        """Add quantity to every option of the storefront product; returns them updated."""
