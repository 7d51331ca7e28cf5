# vouchers/tests/test_orders.py

import uuid
from decimal import Decimal

from django.test import SimpleTestCase

from vouchers.domain.status import OrderStatus
from vouchers.services.exceptions import (
    InvalidOrderTransitionError,
    OrderValidationError,
    StoreNotFound,
)
from vouchers.services.orders import cancel_order, create_purchase_order, submit_order
from vouchers.tests.fakes import FIXED_NOW, add_option, build_pipeline, fixed_clock


class CreatePurchaseOrderTests(SimpleTestCase):
    def setUp(self):
        self.p = build_pipeline()
        add_option(self.p, "OPT-A", wholesale="9.25", face="10.00")
        add_option(self.p, "OPT-B", wholesale="4.00", face="5.00")

    def _create(self, lines, store_id=None):
        return create_purchase_order(
            orders=self.p.orders,
            catalog=self.p.catalog,
            store_id=store_id or self.p.store.id,
            lines=lines,
            clock=fixed_clock,
        )

    def test_creates_draft_with_catalog_prices(self):
        order = self._create(
            [{"option_code": "OPT-A", "quantity": 2}, {"option_code": "OPT-B", "quantity": 1}]
        )

        self.assertEqual(order.status, OrderStatus.DRAFT)
        self.assertEqual(order.created_at, FIXED_NOW)
        self.assertEqual(len(order.items), 2)

        a = order.items[0]
        self.assertEqual(a.unit_wholesale_price, Decimal("9.2500"))
        self.assertEqual(a.unit_face_value, Decimal("10.00"))
        self.assertEqual(a.total_wholesale_cost, Decimal("18.50"))
        self.assertEqual(order.total_wholesale_cost, Decimal("22.50"))

        self.assertEqual(self.p.orders.load(order.id).total_quantity, 3)

    def test_repeated_codes_are_merged(self):
        order = self._create(
            [{"option_code": "OPT-A", "quantity": 1}, {"option_code": "OPT-A", "quantity": 2}]
        )
        self.assertEqual(len(order.items), 1)
        self.assertEqual(order.items[0].quantity_ordered, 3)

    def test_rejects_bad_lines(self):
        for lines in (
            [],
            [{"option_code": "OPT-A", "quantity": 0}],
            [{"option_code": "OPT-A", "quantity": "two"}],
            [{"option_code": "", "quantity": 1}],
            [{"option_code": "OPT-X", "quantity": 1}],
        ):
            with self.subTest(lines=lines):
                with self.assertRaises(OrderValidationError):
                    self._create(lines)

    def test_inactive_store_is_rejected(self):
        store = self.p.catalog.load_store(self.p.store.id)
        store.is_active = False
        self.p.catalog.add_store(store)

        with self.assertRaises(OrderValidationError):
            self._create([{"option_code": "OPT-A", "quantity": 1}])

    def test_unknown_store(self):
        with self.assertRaises(StoreNotFound):
            self._create([{"option_code": "OPT-A", "quantity": 1}], store_id=uuid.uuid4())


class SubmitCancelTests(SimpleTestCase):
    def setUp(self):
        self.p = build_pipeline()
        add_option(self.p, "OPT-A")
        self.order = create_purchase_order(
            orders=self.p.orders,
            catalog=self.p.catalog,
            store_id=self.p.store.id,
            lines=[{"option_code": "OPT-A", "quantity": 1}],
            clock=fixed_clock,
        )

    def test_submit(self):
        order = submit_order(orders=self.p.orders, order_id=self.order.id, clock=fixed_clock)
        self.assertEqual(order.status, OrderStatus.PENDING)
        self.assertEqual(self.p.orders.load(self.order.id).status, OrderStatus.PENDING)

    def test_cancel_draft_and_pending(self):
        submit_order(orders=self.p.orders, order_id=self.order.id, clock=fixed_clock)
        order = cancel_order(orders=self.p.orders, order_id=self.order.id, clock=fixed_clock)
        self.assertEqual(order.status, OrderStatus.CANCELLED)

    def test_cancelled_is_terminal(self):
        cancel_order(orders=self.p.orders, order_id=self.order.id, clock=fixed_clock)
        with self.assertRaises(InvalidOrderTransitionError):
            submit_order(orders=self.p.orders, order_id=self.order.id, clock=fixed_clock)
