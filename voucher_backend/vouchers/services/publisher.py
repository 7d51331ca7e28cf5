# vouchers/services/publisher.py

"""
STOCK & CATALOG PUBLISHER

Pushes GENERATED voucher codes to the merchant storefront.

Rules:
- only GENERATED, not-yet-published units are considered (idempotent)
- units are grouped by the storefront product their option links to
- one storefront call per product group
- success: units marked published + stock counter += codes attached
- failure: logged, units stay unpublished for a later pass
- voucher generation is NEVER rolled back here
"""

from __future__ import annotations

import logging
from collections import OrderedDict
from datetime import datetime
from typing import Callable

from django.utils import timezone

from vouchers.clients.storefront import StorefrontClient
from vouchers.domain.records import PurchaseOrderRecord, VoucherUnitRecord
from vouchers.domain.results import PublishResult
from vouchers.repositories.base import CatalogRepository, PurchaseRepository
from vouchers.services.exceptions import CredentialsMisconfiguredError, StorefrontError

logger = logging.getLogger("vouchers.fulfillment")


class StockPublisher:
    def __init__(
        self,
        *,
        orders: PurchaseRepository,
        catalog: CatalogRepository,
        storefront: StorefrontClient,
        clock: Callable[[], datetime] = timezone.now,
    ):
        self.orders = orders
        self.catalog = catalog
        self.storefront = storefront
        self.clock = clock

    def _group_by_product(
        self, order: PurchaseOrderRecord, units: list[VoucherUnitRecord]
    ) -> tuple["OrderedDict[str, list[VoucherUnitRecord]]", int]:
        groups: OrderedDict[str, list[VoucherUnitRecord]] = OrderedDict()
        skipped = 0
        product_for_code: dict[str, str | None] = {}

        for unit in units:
            item = order.item_by_id(unit.item_id)
            if item is None or not unit.reference:
                logger.warning(
                    "Generated voucher has no publishable code",
                    extra={"order_id": str(order.id), "external_id": unit.external_id},
                )
                skipped += 1
                continue

            code = item.product_option_code
            if code not in product_for_code:
                linked = [
                    o.storefront_product_id
                    for o in self.catalog.find_options(order.store_id, code)
                    if o.storefront_product_id
                ]
                product_for_code[code] = linked[0] if linked else None

            product_id = product_for_code[code]
            if not product_id:
                logger.warning(
                    "Option is not linked to a storefront product",
                    extra={"order_id": str(order.id), "option_code": code},
                )
                skipped += 1
                continue

            groups.setdefault(product_id, []).append(unit)

        return groups, skipped

    def publish_order(self, order_id) -> PublishResult:
        order = self.orders.load(order_id)
        store = self.catalog.load_store(order.store_id)

        units = self.orders.find_unpublished_units(order.id)
        if not units:
            return PublishResult()

        groups, skipped = self._group_by_product(order, units)

        published_products: list[str] = []
        failed_products: list[str] = []
        errors: dict[str, str] = {}
        codes_published = 0

        for product_id, group in groups.items():
            codes = [u.reference for u in group]
            try:
                self.storefront.attach_digital_codes(store, product_id, codes)
            except (StorefrontError, CredentialsMisconfiguredError) as exc:
                logger.error(
                    "Failed to publish voucher codes",
                    extra={
                        "order_id": str(order.id),
                        "storefront_product_id": product_id,
                        "codes": len(codes),
                        "error": str(exc),
                    },
                )
                failed_products.append(product_id)
                errors[product_id] = str(exc)
                continue

            now = self.clock()
            self.orders.mark_units_published([u.id for u in group], at=now)
            self.catalog.increment_stock(store.id, product_id, len(codes), at=now)

            codes_published += len(codes)
            published_products.append(product_id)
            logger.info(
                "Voucher codes published",
                extra={
                    "order_id": str(order.id),
                    "storefront_product_id": product_id,
                    "codes": len(codes),
                },
            )

        return PublishResult(
            codes_published=codes_published,
            products_published=tuple(published_products),
            products_failed=tuple(failed_products),
            skipped_units=skipped,
            errors=errors,
        )
