# vouchers/tests/test_pricing.py

import uuid
from decimal import Decimal

from django.test import SimpleTestCase

from vouchers.domain.records import ProductOptionRecord
from vouchers.services.pricing import apply_price_band
from vouchers.tests.fakes import FIXED_NOW, add_option, band, build_pipeline


class ApplyPriceBandTests(SimpleTestCase):
    def _option(self, **kwargs):
        return ProductOptionRecord(
            id=uuid.uuid4(), store_id=uuid.uuid4(), option_code="OPT-A", **kwargs
        )

    def test_minimum_becomes_wholesale(self):
        option = self._option(wholesale_price=Decimal("8.00"))
        apply_price_band(option, band("OPT-A", "9.50", max_wholesale="11.00", face="15.00"), now=FIXED_NOW)

        self.assertEqual(option.wholesale_price, Decimal("9.50"))
        self.assertEqual(option.min_face_value, Decimal("15.00"))
        self.assertEqual(option.last_price_update, FIXED_NOW)

    def test_store_currency_price_keeps_ratio_and_markup_is_recomputed(self):
        option = self._option(
            wholesale_price=Decimal("10.00"),
            store_currency_price=Decimal("37.50"),
            custom_price=Decimal("60.00"),
        )

        apply_price_band(option, band("OPT-A", "12.00"), now=FIXED_NOW)

        # 37.50 / 10.00 = 3.75 -> 12.00 * 3.75
        self.assertEqual(option.store_currency_price, Decimal("45.0000"))
        # (60 - 45) / 45 * 100
        self.assertEqual(option.markup_percentage, Decimal("33.3333"))

    def test_no_markup_without_custom_price(self):
        option = self._option(wholesale_price=Decimal("10.00"), store_currency_price=Decimal("20.00"))
        apply_price_band(option, band("OPT-A", "10.00"), now=FIXED_NOW)
        self.assertIsNone(option.markup_percentage)


class CatalogPricingServiceTests(SimpleTestCase):
    """
    GUARANTEES:
    - every distinct option code is priced once
    - one failed lookup does not stop the refresh
    - stock counters are never touched by repricing
    """

    def setUp(self):
        self.p = build_pipeline(
            bands={"OPT-A": band("OPT-A", "11.00"), "OPT-B": band("OPT-B", "4.00")}
        )
        add_option(self.p, "OPT-A", product_id="P-A1", stock_quantity=7)
        add_option(self.p, "OPT-A", product_id="P-A2")
        add_option(self.p, "OPT-B", product_id="P-B")

    def test_refresh_updates_every_option(self):
        result = self.p.pricing.refresh_store_pricing(self.p.store.id)

        self.assertEqual(result.total, 2)
        self.assertEqual(result.updated_count, 2)
        self.assertEqual(result.failed_codes, ())
        self.assertEqual(self.p.issuer.pricing_calls, ["OPT-A", "OPT-B"])

        for option in self.p.catalog.find_options(self.p.store.id, "OPT-A"):
            self.assertEqual(option.wholesale_price, Decimal("11.00"))

    def test_refresh_continues_past_a_failed_code(self):
        self.p.issuer.pricing_errors.add("OPT-A")

        result = self.p.pricing.refresh_store_pricing(self.p.store.id)

        self.assertEqual(result.updated_count, 1)
        self.assertEqual(result.failed_codes, ("OPT-A",))
        option_b = self.p.catalog.find_options(self.p.store.id, "OPT-B")[0]
        self.assertEqual(option_b.wholesale_price, Decimal("4.00"))

    def test_repricing_keeps_stock(self):
        self.p.pricing.propagate(self.p.store.id, band("OPT-A", "11.00"))

        stocks = sorted(o.stock_quantity for o in self.p.catalog.find_options(self.p.store.id, "OPT-A"))
        self.assertEqual(stocks, [0, 7])

    def test_propagate_unknown_code_updates_nothing(self):
        self.assertEqual(self.p.pricing.propagate(self.p.store.id, band("OPT-Z")), 0)

    def test_result_serializes(self):
        result = self.p.pricing.refresh_store_pricing(self.p.store.id)
        self.assertEqual(
            result.as_dict(),
            {
                "store_id": str(self.p.store.id),
                "total": 2,
                "updated_count": 2,
                "failed_codes": [],
            },
        )
