# vouchers/services/pricing.py

"""
CATALOG PRICING SERVICE

Keeps the store's catalog options in line with the issuer's price bands.

Fixed-price policy (applies everywhere a band is consumed):
- the unit wholesale price is ALWAYS the band minimum
- a band whose min and max wholesale differ is a provider anomaly:
  it is logged and reported back to the caller, never averaged

Two entry points:
- propagate(): called by the balance verifier for each option of an order;
  failures are logged and swallowed so order processing continues
- refresh_store_pricing(): bulk refresh of every catalog option of a store;
  one option failing does not stop the others
"""

from __future__ import annotations

import logging
from datetime import datetime
from decimal import Decimal
from typing import Callable

from django.utils import timezone

from vouchers.clients.issuer import IssuerClient, IssuerSession
from vouchers.domain.records import ProductOptionRecord, price
from vouchers.domain.results import PriceBand, PricingRefreshResult
from vouchers.repositories.base import CatalogRepository
from vouchers.services.exceptions import IssuerError

logger = logging.getLogger(__name__)

HUNDRED = Decimal("100")


def anomaly_message(band: PriceBand) -> str:
    return (
        f"Option {band.option_code} reports a wholesale range "
        f"{band.min_wholesale_value}-{band.max_wholesale_value}; "
        "only fixed-price options are supported, using the minimum"
    )


def apply_price_band(
    option: ProductOptionRecord, band: PriceBand, *, now: datetime
) -> ProductOptionRecord:
    old_wholesale = option.wholesale_price
    new_wholesale = band.min_wholesale_value

    option.wholesale_price = new_wholesale
    if band.min_face_value:
        option.min_face_value = band.min_face_value
    if band.max_face_value:
        option.max_face_value = band.max_face_value

    # keep the store's conversion ratio when rescaling the local price
    if option.store_currency_price and old_wholesale and old_wholesale > 0:
        rate = Decimal(option.store_currency_price) / Decimal(old_wholesale)
        option.store_currency_price = price(new_wholesale * rate)

    if option.custom_price and option.store_currency_price and option.store_currency_price > 0:
        markup = Decimal(option.custom_price) - Decimal(option.store_currency_price)
        option.markup_percentage = price(markup / Decimal(option.store_currency_price) * HUNDRED)

    option.last_price_update = now
    return option


class CatalogPricingService:
    def __init__(
        self,
        *,
        catalog: CatalogRepository,
        issuer: IssuerClient,
        clock: Callable[[], datetime] = timezone.now,
    ):
        self.catalog = catalog
        self.issuer = issuer
        self.clock = clock

    def propagate(self, store_id, band: PriceBand) -> int:
        """Apply a band to every catalog option with that code. Never raises."""
        try:
            options = self.catalog.find_options(store_id, band.option_code)
            for option in options:
                old = option.wholesale_price
                apply_price_band(option, band, now=self.clock())
                self.catalog.save_option(option)
                logger.info(
                    "Catalog option repriced",
                    extra={
                        "option_code": band.option_code,
                        "old_wholesale": str(old),
                        "new_wholesale": str(option.wholesale_price),
                        "markup_percentage": str(option.markup_percentage),
                    },
                )
            return len(options)
        except Exception:
            logger.exception(
                "Failed to update catalog pricing",
                extra={"store_id": str(store_id), "option_code": band.option_code},
            )
            return 0

    def refresh_store_pricing(
        self, store_id, *, session: IssuerSession | None = None
    ) -> PricingRefreshResult:
        store = self.catalog.load_store(store_id)
        if session is None:
            session = self.issuer.authenticate(store)

        codes = sorted({o.option_code for o in self.catalog.list_options(store.id)})
        logger.info(
            "Refreshing catalog pricing",
            extra={"store_id": str(store.id), "option_count": len(codes)},
        )

        updated = 0
        failed: list[str] = []
        for code in codes:
            try:
                band = self.issuer.get_product_pricing(session, code)
            except IssuerError as exc:
                logger.warning(
                    "Pricing refresh failed for option",
                    extra={"store_id": str(store.id), "option_code": code, "error": str(exc)},
                )
                failed.append(code)
                continue

            if not band.is_fixed_price:
                logger.warning(anomaly_message(band), extra={"option_code": code})

            if self.propagate(store.id, band):
                updated += 1
            else:
                failed.append(code)

        logger.info(
            "Catalog pricing refreshed",
            extra={"store_id": str(store.id), "updated": updated, "failed": len(failed)},
        )
        return PricingRefreshResult(
            store_id=store.id,
            total=len(codes),
            updated_count=updated,
            failed_codes=tuple(failed),
        )
