# vouchers/tests/test_api.py

from __future__ import annotations

import uuid
from decimal import Decimal
from unittest.mock import patch

from django.contrib.auth import get_user_model
from django.test import TestCase
from django.urls import reverse
from rest_framework import status
from rest_framework.test import APIClient

from store.models import Store, StoreProductOption
from vouchers.domain.status import OrderStatus
from vouchers.models import PurchaseOrder
from vouchers.services.wiring import build_fulfillment
from vouchers.tests.fakes import REJECT, FakeIssuer, FakeStorefront, auth_failure, band

User = get_user_model()


class PurchaseOrderApiTests(TestCase):
    """
    GUARANTEES:
    - only authenticated staff reach the endpoints
    - create -> submit -> process -> retry works over HTTP
    - domain errors map to 400 / 404 / 502
    """

    def setUp(self):
        self.user = User.objects.create_user(username="ops", password="pass1234")
        self.client = APIClient()
        self.client.force_authenticate(user=self.user)

        self.store = Store.objects.create(
            name="Main Store",
            issuer_username="merchant",
            issuer_password="secret",
            issuer_terminal_key="term-1",
            storefront_access_token="sf-token",
        )
        self.option = StoreProductOption.objects.create(
            store=self.store,
            option_code="OPT-A",
            storefront_product_id="P-100",
            wholesale_price=Decimal("10.00"),
            min_face_value=Decimal("12.00"),
            max_face_value=Decimal("12.00"),
        )

        self.issuer = FakeIssuer(balance_minor=100_000, bands={"OPT-A": band("OPT-A", "10.00")})
        self.storefront = FakeStorefront()

        patcher = patch(
            "vouchers.api.views.build_fulfillment",
            side_effect=lambda: build_fulfillment(issuer=self.issuer, storefront=self.storefront),
        )
        patcher.start()
        self.addCleanup(patcher.stop)

    def _create(self, qty=2):
        res = self.client.post(
            reverse("purchase-orders-list"),
            {"store_id": str(self.store.id), "items": [{"option_code": "OPT-A", "quantity": qty}]},
            format="json",
        )
        self.assertEqual(res.status_code, status.HTTP_201_CREATED, res.data)
        return res.data["id"]

    def _post(self, name, order_id):
        return self.client.post(reverse(name, args=[order_id]), format="json")

    def test_requires_authentication(self):
        res = APIClient().get(reverse("purchase-orders-list"))
        self.assertEqual(res.status_code, status.HTTP_401_UNAUTHORIZED)

    def test_create_returns_draft(self):
        order_id = self._create(qty=2)

        res = self.client.get(reverse("purchase-orders-detail", args=[order_id]))

        self.assertEqual(res.status_code, status.HTTP_200_OK)
        self.assertEqual(res.data["status"], OrderStatus.DRAFT)
        self.assertEqual(Decimal(res.data["total_wholesale_cost"]), Decimal("20.00"))
        self.assertEqual(len(res.data["items"]), 1)

    def test_create_rejects_unknown_option(self):
        res = self.client.post(
            reverse("purchase-orders-list"),
            {"store_id": str(self.store.id), "items": [{"option_code": "NOPE", "quantity": 1}]},
            format="json",
        )
        self.assertEqual(res.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertFalse(PurchaseOrder.objects.exists())

    def test_create_rejects_zero_quantity(self):
        res = self.client.post(
            reverse("purchase-orders-list"),
            {"store_id": str(self.store.id), "items": [{"option_code": "OPT-A", "quantity": 0}]},
            format="json",
        )
        self.assertEqual(res.status_code, status.HTTP_400_BAD_REQUEST)

    def test_create_for_unknown_store(self):
        res = self.client.post(
            reverse("purchase-orders-list"),
            {"store_id": str(uuid.uuid4()), "items": [{"option_code": "OPT-A", "quantity": 1}]},
            format="json",
        )
        self.assertEqual(res.status_code, status.HTTP_404_NOT_FOUND)

    def test_submit_process_and_list_vouchers(self):
        order_id = self._create(qty=2)
        self.assertEqual(self._post("purchase-orders-submit", order_id).status_code, 200)

        res = self._post("purchase-orders-process", order_id)

        self.assertEqual(res.status_code, status.HTTP_200_OK, res.data)
        self.assertEqual(res.data["status"], OrderStatus.COMPLETED)
        self.assertEqual(res.data["generated"], 2)
        self.assertTrue(res.data["balance_check"]["sufficient"])
        self.assertEqual(res.data["publish"]["codes_published"], 2)

        res = self.client.get(reverse("purchase-orders-vouchers", args=[order_id]))
        self.assertEqual(len(res.data), 2)
        self.assertTrue(all(v["storefront_synced"] for v in res.data))
        self.assertTrue(all(v["option_code"] == "OPT-A" for v in res.data))

        detail = self.client.get(reverse("purchase-orders-detail", args=[order_id])).data
        self.assertEqual(detail["voucher_counts"], {"GENERATED": 2, "published": 2})

    def test_retry_after_partial(self):
        self.issuer.outcomes = [REJECT]
        order_id = self._create(qty=2)

        res = self._post("purchase-orders-process", order_id)
        self.assertEqual(res.data["status"], OrderStatus.PARTIALLY_COMPLETED)

        res = self._post("purchase-orders-retry", order_id)
        self.assertEqual(res.status_code, status.HTTP_200_OK)
        self.assertEqual(res.data["status"], OrderStatus.COMPLETED)

    def test_check_balance(self):
        order_id = self._create(qty=3)

        res = self._post("purchase-orders-check-balance", order_id)

        self.assertEqual(res.status_code, status.HTTP_200_OK)
        self.assertEqual(res.data["balance"], "1000.00")
        self.assertEqual(res.data["totalCost"], "30.00")
        self.assertTrue(res.data["sufficient"])

    def test_issuer_failure_is_bad_gateway(self):
        self.issuer.auth_error = auth_failure()
        order_id = self._create(qty=1)

        res = self._post("purchase-orders-process", order_id)

        self.assertEqual(res.status_code, status.HTTP_502_BAD_GATEWAY)
        self.assertEqual(PurchaseOrder.objects.get(id=order_id).status, OrderStatus.FAILED)

    def test_cancel_then_process_is_rejected(self):
        order_id = self._create(qty=1)
        self.assertEqual(self._post("purchase-orders-cancel", order_id).status_code, 200)

        res = self._post("purchase-orders-process", order_id)

        self.assertEqual(res.status_code, status.HTTP_400_BAD_REQUEST)

    def test_publish_endpoint(self):
        self.storefront.failing_products.add("P-100")
        order_id = self._create(qty=1)
        self._post("purchase-orders-process", order_id)

        self.storefront.failing_products.clear()
        res = self._post("purchase-orders-publish", order_id)

        self.assertEqual(res.status_code, status.HTTP_200_OK)
        self.assertEqual(res.data["codes_published"], 1)
        self.option.refresh_from_db()
        self.assertEqual(self.option.stock_quantity, 1)

    def test_filter_by_status(self):
        self._create(qty=1)
        done = self._create(qty=1)
        self._post("purchase-orders-process", done)

        res = self.client.get(reverse("purchase-orders-list"), {"status": OrderStatus.COMPLETED})

        self.assertEqual(res.data["count"], 1)
        self.assertEqual(res.data["results"][0]["id"], done)
