# vouchers/tests/test_commands.py

from __future__ import annotations

from decimal import Decimal
from io import StringIO
from unittest.mock import patch

from django.core.management import call_command
from django.core.management.base import CommandError
from django.test import TestCase

from store.models import Store, StoreProductOption
from vouchers.domain.status import OrderStatus
from vouchers.models import PurchaseOrder
from vouchers.services.orders import create_purchase_order
from vouchers.services.wiring import build_fulfillment
from vouchers.tests.fakes import REJECT, FakeIssuer, FakeStorefront, auth_failure, band

COMMANDS = "vouchers.management.commands"


class FulfillmentCommandTests(TestCase):
    def setUp(self):
        self.store = Store.objects.create(
            name="Main Store",
            issuer_username="merchant",
            issuer_password="secret",
            issuer_terminal_key="term-1",
            storefront_access_token="sf-token",
        )
        StoreProductOption.objects.create(
            store=self.store,
            option_code="OPT-A",
            storefront_product_id="P-100",
            wholesale_price=Decimal("10.00"),
            min_face_value=Decimal("12.00"),
        )
        self.issuer = FakeIssuer(balance_minor=100_000, bands={"OPT-A": band("OPT-A", "10.00")})
        self.storefront = FakeStorefront()

        self.f = build_fulfillment(issuer=self.issuer, storefront=self.storefront)
        self.order = create_purchase_order(
            orders=self.f.orders,
            catalog=self.f.catalog,
            store_id=self.store.id,
            lines=[{"option_code": "OPT-A", "quantity": 2}],
        )

        for name in (
            "process_purchase_order",
            "retry_failed_vouchers",
            "publish_vouchers",
            "refresh_store_pricing",
        ):
            patcher = patch(
                f"{COMMANDS}.{name}.build_fulfillment",
                side_effect=lambda: build_fulfillment(issuer=self.issuer, storefront=self.storefront),
            )
            patcher.start()
            self.addCleanup(patcher.stop)

    def _call(self, *args):
        out = StringIO()
        call_command(*args, stdout=out, stderr=StringIO())
        return out.getvalue()

    def test_process(self):
        out = self._call("process_purchase_order", str(self.order.id))

        self.assertIn("COMPLETED", out)
        self.assertIn("Codes published: 2", out)
        self.assertEqual(PurchaseOrder.objects.get(id=self.order.id).status, OrderStatus.COMPLETED)

    def test_process_preflight_failure(self):
        self.issuer.auth_error = auth_failure()
        with self.assertRaises(CommandError):
            self._call("process_purchase_order", str(self.order.id))

    def test_retry(self):
        self.issuer.outcomes = [REJECT]
        self._call("process_purchase_order", str(self.order.id))

        out = self._call("retry_failed_vouchers", str(self.order.id))

        self.assertIn("Retried 1: 1 generated, 0 failed", out)

    def test_retry_nothing_to_do(self):
        self._call("process_purchase_order", str(self.order.id))
        with self.assertRaises(CommandError):
            self._call("retry_failed_vouchers", str(self.order.id))

    def test_publish(self):
        self.storefront.failing_products.add("P-100")
        self._call("process_purchase_order", str(self.order.id))
        self.storefront.failing_products.clear()

        out = self._call("publish_vouchers", str(self.order.id))

        self.assertIn("Published 2 code(s) to 1 product(s).", out)

    def test_refresh_pricing(self):
        self.issuer.bands["OPT-A"] = band("OPT-A", "11.00")

        out = self._call("refresh_store_pricing", str(self.store.id))

        self.assertIn("Updated 1/1 option(s).", out)
        option = StoreProductOption.objects.get(store=self.store, option_code="OPT-A")
        self.assertEqual(option.wholesale_price, Decimal("11.00"))
