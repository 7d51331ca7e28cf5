# vouchers/tests/test_lifecycle.py

import uuid

from django.test import SimpleTestCase

from vouchers.domain.lifecycle import (
    can_transition,
    outcome_status,
    transition_order,
    transition_unit,
)
from vouchers.domain.records import PurchaseOrderRecord, VoucherUnitRecord
from vouchers.domain.status import OrderStatus, VoucherStatus
from vouchers.services.exceptions import InvalidOrderTransitionError
from vouchers.tests.fakes import FIXED_NOW


class OrderLifecycleTests(SimpleTestCase):
    """
    GUARANTEES:
    - DRAFT -> PENDING -> PROCESSING -> run outcome
    - CANCELLED only from DRAFT / PENDING
    - COMPLETED and CANCELLED are terminal
    - processing timestamps are stamped by the transition
    """

    def _order(self, status):
        return PurchaseOrderRecord(id=uuid.uuid4(), store_id=uuid.uuid4(), status=status)

    def test_happy_path(self):
        order = self._order(OrderStatus.DRAFT)
        transition_order(order, OrderStatus.PENDING, now=FIXED_NOW)
        transition_order(order, OrderStatus.PROCESSING, now=FIXED_NOW)
        self.assertEqual(order.processing_started_at, FIXED_NOW)

        transition_order(order, OrderStatus.COMPLETED, now=FIXED_NOW)
        self.assertEqual(order.status, OrderStatus.COMPLETED)
        self.assertEqual(order.processing_completed_at, FIXED_NOW)

    def test_cancel_only_before_processing(self):
        self.assertTrue(can_transition(from_status=OrderStatus.DRAFT, to_status=OrderStatus.CANCELLED))
        self.assertTrue(can_transition(from_status=OrderStatus.PENDING, to_status=OrderStatus.CANCELLED))
        self.assertFalse(can_transition(from_status=OrderStatus.PROCESSING, to_status=OrderStatus.CANCELLED))
        self.assertFalse(can_transition(from_status=OrderStatus.FAILED, to_status=OrderStatus.CANCELLED))

    def test_terminal_states_reject_everything(self):
        for terminal in (OrderStatus.COMPLETED, OrderStatus.CANCELLED):
            order = self._order(terminal)
            with self.assertRaises(InvalidOrderTransitionError):
                transition_order(order, OrderStatus.PROCESSING, now=FIXED_NOW)

    def test_draft_cannot_jump_to_processing(self):
        order = self._order(OrderStatus.DRAFT)
        with self.assertRaises(InvalidOrderTransitionError):
            transition_order(order, OrderStatus.PROCESSING, now=FIXED_NOW)
        self.assertEqual(order.status, OrderStatus.DRAFT)

    def test_resume_keeps_first_start_time(self):
        order = self._order(OrderStatus.PARTIALLY_COMPLETED)
        first = FIXED_NOW.replace(hour=1)
        order.processing_started_at = first
        transition_order(order, OrderStatus.PROCESSING, now=FIXED_NOW)
        self.assertEqual(order.processing_started_at, first)

    def test_outcome_status(self):
        self.assertEqual(outcome_status(generated=3, failed=0), OrderStatus.COMPLETED)
        self.assertEqual(outcome_status(generated=1, failed=1), OrderStatus.PARTIALLY_COMPLETED)
        self.assertEqual(outcome_status(generated=0, failed=2), OrderStatus.FAILED)
        self.assertEqual(outcome_status(generated=0, failed=0), OrderStatus.FAILED)


class UnitLifecycleTests(SimpleTestCase):
    def _unit(self, status):
        return VoucherUnitRecord(
            id=uuid.uuid4(),
            order_id=uuid.uuid4(),
            item_id=uuid.uuid4(),
            external_id="PO-1",
            status=status,
        )

    def test_pending_goes_through_processing(self):
        unit = self._unit(VoucherStatus.PENDING)
        with self.assertRaises(InvalidOrderTransitionError):
            transition_unit(unit, VoucherStatus.GENERATED)

        transition_unit(unit, VoucherStatus.PROCESSING)
        transition_unit(unit, VoucherStatus.GENERATED)
        self.assertEqual(unit.status, VoucherStatus.GENERATED)

    def test_failed_may_reenter_processing(self):
        unit = self._unit(VoucherStatus.FAILED)
        transition_unit(unit, VoucherStatus.PROCESSING)
        self.assertEqual(unit.status, VoucherStatus.PROCESSING)

    def test_generated_is_final(self):
        unit = self._unit(VoucherStatus.GENERATED)
        with self.assertRaises(InvalidOrderTransitionError):
            transition_unit(unit, VoucherStatus.PROCESSING)
