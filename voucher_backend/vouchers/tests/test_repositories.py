# vouchers/tests/test_repositories.py

import uuid
from decimal import Decimal

from django.db import IntegrityError, transaction
from django.test import SimpleTestCase, TestCase
from django.utils import timezone

from store.models import Store, StoreProductOption
from vouchers.domain.records import VoucherUnitRecord
from vouchers.domain.status import OrderStatus, VoucherStatus
from vouchers.models import PurchaseOrder, VoucherUnit
from vouchers.repositories.memory import InMemoryPurchaseRepository
from vouchers.services.exceptions import PurchaseOrderNotFound
from vouchers.services.orders import create_purchase_order, submit_order
from vouchers.services.wiring import build_fulfillment
from vouchers.tests.fakes import OK, REJECT, FakeIssuer, FakeStorefront, band


class DjangoPipelineTests(TestCase):
    """
    GUARANTEES (database-backed):
    - the full pipeline persists order, units and stock
    - unit keys are unique at the database level
    - repricing never overwrites the stock counter
    """

    def setUp(self):
        self.store = Store.objects.create(
            name="Main Store",
            issuer_username="merchant",
            issuer_password="secret",
            issuer_terminal_key="term-1",
            issuer_sandbox=True,
            storefront_access_token="sf-token",
        )
        self.option = StoreProductOption.objects.create(
            store=self.store,
            option_code="OPT-A",
            storefront_product_id="P-100",
            wholesale_price=Decimal("9.00"),
            min_face_value=Decimal("12.00"),
            max_face_value=Decimal("12.00"),
        )
        self.issuer = FakeIssuer(balance_minor=100_000, bands={"OPT-A": band("OPT-A", "10.00")})
        self.storefront = FakeStorefront()
        self.f = build_fulfillment(issuer=self.issuer, storefront=self.storefront)

    def _order(self, qty=3):
        order = create_purchase_order(
            orders=self.f.orders,
            catalog=self.f.catalog,
            store_id=self.store.id,
            lines=[{"option_code": "OPT-A", "quantity": qty}],
        )
        submit_order(orders=self.f.orders, order_id=order.id)
        return order

    def test_create_and_load(self):
        order = self._order(qty=2)

        row = PurchaseOrder.objects.get(id=order.id)
        self.assertEqual(row.status, OrderStatus.PENDING)
        self.assertEqual(row.total_wholesale_cost, Decimal("18.00"))
        self.assertEqual(row.items.count(), 1)

        loaded = self.f.orders.load(order.id)
        self.assertEqual(loaded.items[0].unit_face_value, Decimal("12.00"))
        self.assertEqual(loaded.total_quantity, 2)

    def test_load_missing_order(self):
        with self.assertRaises(PurchaseOrderNotFound):
            self.f.orders.load(uuid.uuid4())

    def test_full_run_is_persisted(self):
        order = self._order(qty=3)

        result = self.f.coordinator.process_order(order.id)

        self.assertEqual(result.status, OrderStatus.COMPLETED)
        row = PurchaseOrder.objects.get(id=order.id)
        self.assertEqual(row.status, OrderStatus.COMPLETED)
        self.assertEqual(row.total_vouchers_generated, 3)
        self.assertEqual(row.total_wholesale_cost, Decimal("30.00"))
        self.assertEqual(row.balance_before, Decimal("1000.00"))
        self.assertEqual(row.balance_after, Decimal("970.00"))
        self.assertIsNotNone(row.processing_started_at)
        self.assertIsNotNone(row.processing_completed_at)

        units = VoucherUnit.objects.filter(purchase_order_id=order.id)
        self.assertEqual(units.count(), 3)
        self.assertFalse(units.exclude(status=VoucherStatus.GENERATED).exists())
        self.assertFalse(units.filter(storefront_synced=False).exists())

        self.option.refresh_from_db()
        self.assertEqual(self.option.stock_quantity, 3)
        self.assertEqual(self.option.wholesale_price, Decimal("10.00"))
        self.assertIsNotNone(self.option.last_stock_update)

    def test_partial_then_retry(self):
        self.issuer.outcomes = [OK, REJECT, OK]
        order = self._order(qty=3)

        first = self.f.coordinator.process_order(order.id)
        self.assertEqual(first.status, OrderStatus.PARTIALLY_COMPLETED)
        failed = VoucherUnit.objects.get(purchase_order_id=order.id, status=VoucherStatus.FAILED)
        self.assertEqual(failed.retry_count, 0)
        self.assertEqual(failed.error_text, "Out of stock")

        second = self.f.coordinator.retry_failed_units(order.id)

        self.assertEqual(second.status, OrderStatus.COMPLETED)
        failed.refresh_from_db()
        self.assertEqual(failed.status, VoucherStatus.GENERATED)
        self.assertTrue(failed.storefront_synced)
        self.assertEqual(VoucherUnit.objects.filter(purchase_order_id=order.id).count(), 3)
        self.option.refresh_from_db()
        self.assertEqual(self.option.stock_quantity, 3)

    def test_external_id_is_unique(self):
        order = self._order(qty=1)
        item_id = order.items[0].id
        unit = VoucherUnitRecord(
            id=uuid.uuid4(), order_id=order.id, item_id=item_id, external_id="PO-DUP-0001"
        )
        self.f.orders.add_units([unit])

        clash = VoucherUnitRecord(
            id=uuid.uuid4(), order_id=order.id, item_id=item_id, external_id="PO-DUP-0001"
        )
        with self.assertRaises(IntegrityError):
            with transaction.atomic():
                self.f.orders.add_units([clash])

    def test_unit_counts(self):
        order = self._order(qty=2)
        self.issuer.outcomes = [REJECT]
        self.f.coordinator.process_order(order.id)

        self.assertEqual(
            self.f.orders.count_units_by_status(order.id),
            {VoucherStatus.FAILED: 1, VoucherStatus.GENERATED: 1},
        )
        self.assertEqual(self.f.orders.count_units_by_item(order.id), {order.items[0].id: 2})


class DjangoCatalogRepositoryTests(TestCase):
    def setUp(self):
        self.store = Store.objects.create(name="Store")
        self.option = StoreProductOption.objects.create(
            store=self.store, option_code="OPT-A", storefront_product_id="P-1", stock_quantity=5
        )
        self.f = build_fulfillment(issuer=FakeIssuer(), storefront=FakeStorefront())

    def test_save_option_keeps_stock(self):
        record = self.f.catalog.find_options(self.store.id, "OPT-A")[0]
        record.wholesale_price = Decimal("7.5000")
        record.stock_quantity = 0

        self.f.catalog.save_option(record)

        self.option.refresh_from_db()
        self.assertEqual(self.option.wholesale_price, Decimal("7.5000"))
        self.assertEqual(self.option.stock_quantity, 5)

    def test_increment_stock(self):
        now = timezone.now()
        updated = self.f.catalog.increment_stock(self.store.id, "P-1", 3, at=now)

        self.assertEqual([o.stock_quantity for o in updated], [8])
        self.option.refresh_from_db()
        self.assertEqual(self.option.stock_quantity, 8)
        self.assertEqual(self.option.last_stock_update, now)

    def test_inactive_options_are_not_listed(self):
        StoreProductOption.objects.create(store=self.store, option_code="OPT-B", is_active=False)
        codes = [o.option_code for o in self.f.catalog.list_options(self.store.id)]
        self.assertEqual(codes, ["OPT-A"])


class InMemoryPurchaseRepositoryTests(SimpleTestCase):
    def test_unpublished_units_are_generated_and_unsynced(self):
        repo = InMemoryPurchaseRepository()
        order_id, item_id = uuid.uuid4(), uuid.uuid4()

        def unit(seq, status, synced=False):
            return VoucherUnitRecord(
                id=uuid.uuid4(),
                order_id=order_id,
                item_id=item_id,
                external_id=f"PO-MEM-{seq:04d}",
                status=status,
                storefront_synced=synced,
            )

        repo.add_units([
            unit(1, VoucherStatus.GENERATED),
            unit(2, VoucherStatus.GENERATED, synced=True),
            unit(3, VoucherStatus.FAILED),
            unit(4, VoucherStatus.PENDING),
            unit(5, VoucherStatus.GENERATED),
        ])

        found = repo.find_unpublished_units(order_id)

        self.assertEqual([u.external_id for u in found], ["PO-MEM-0001", "PO-MEM-0005"])
        self.assertTrue(all(u.is_publishable for u in found))

        repo.mark_units_published([found[0].id], at=timezone.now())
        self.assertEqual(
            [u.external_id for u in repo.find_unpublished_units(order_id)], ["PO-MEM-0005"]
        )
