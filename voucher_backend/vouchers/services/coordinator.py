# vouchers/services/coordinator.py

"""
ORDER LIFECYCLE COORDINATOR

Drives a purchase order from PENDING to a run outcome.

process_order():
1. balance + pricing gate (verifier); short balance -> FAILED, stop
2. PROCESSING, processing_started_at stamped once
   (an order that already ran first fails units stranded in PROCESSING)
3. expand items into PENDING units (never duplicates), execute each
   sequentially, throttled every N issuer round trips
4. recount units -> COMPLETED / PARTIALLY_COMPLETED / FAILED,
   aggregates + post-run balance snapshot
5. hand off to the publisher; its failure never changes the order status

retry_failed_units():
- re-executes FAILED units still under the retry cap
- no balance/pricing pass

Both entry points hold the store lock for their whole run.
"""

from __future__ import annotations

import logging
import uuid
from datetime import datetime
from typing import Callable

from django.utils import timezone

from vouchers.clients.issuer import IssuerClient, IssuerSession
from vouchers.domain.lifecycle import (
    PROCESSABLE_ORDER_STATES,
    RETRYABLE_ORDER_STATES,
    transition_order,
    transition_unit,
    outcome_status,
)
from vouchers.domain.records import PurchaseOrderRecord, VoucherUnitRecord
from vouchers.domain.results import BalanceCheckResult, ProcessOrderResult, PublishResult
from vouchers.domain.status import OrderStatus, VoucherStatus
from vouchers.repositories.base import CatalogRepository, PurchaseRepository
from vouchers.services.exceptions import InvalidOrderTransitionError, VoucherServiceError
from vouchers.services.executor import TransactionExecutor
from vouchers.services.policies import CallCountThrottle, RetryPolicy, StoreLocks
from vouchers.services.publisher import StockPublisher
from vouchers.services.verifier import BalanceVerifier

logger = logging.getLogger("vouchers.fulfillment")

INTERRUPTED_ERROR = "Interrupted before a response was recorded"


def external_id_for(order_id, item_id, seq: int) -> str:
    """Deterministic idempotency key: same order/item/position -> same key."""
    return f"PO-{str(order_id)[:8]}-{str(item_id)[:8]}-{seq:04d}"


class FulfillmentCoordinator:
    def __init__(
        self,
        *,
        orders: PurchaseRepository,
        catalog: CatalogRepository,
        issuer: IssuerClient,
        verifier: BalanceVerifier,
        executor: TransactionExecutor,
        publisher: StockPublisher,
        retry_policy: RetryPolicy | None = None,
        throttle=None,
        locks: StoreLocks | None = None,
        clock: Callable[[], datetime] = timezone.now,
        storefront_name: str = "storefront",
    ):
        self.orders = orders
        self.catalog = catalog
        self.issuer = issuer
        self.verifier = verifier
        self.executor = executor
        self.publisher = publisher
        self.retry_policy = retry_policy or RetryPolicy()
        self.throttle = throttle if throttle is not None else CallCountThrottle()
        self.locks = locks or StoreLocks()
        self.clock = clock
        self.storefront_name = storefront_name

    # ============================================================
    # UNIT EXPANSION
    # ============================================================

    def expand_units(self, order: PurchaseOrderRecord) -> list[VoucherUnitRecord]:
        """Create the PENDING units still missing for each item."""
        existing = self.orders.count_units_by_item(order.id)
        now = self.clock()
        created: list[VoucherUnitRecord] = []

        for item in order.items:
            have = existing.get(item.id, 0)
            for seq in range(have + 1, int(item.quantity_ordered) + 1):
                created.append(
                    VoucherUnitRecord(
                        id=uuid.uuid4(),
                        order_id=order.id,
                        item_id=item.id,
                        external_id=external_id_for(order.id, item.id, seq),
                        created_at=now,
                    )
                )

        if created:
            self.orders.add_units(created)
            logger.info(
                "Voucher units created",
                extra={"order_id": str(order.id), "count": len(created)},
            )
        return created

    def _fail_interrupted_units(self, order: PurchaseOrderRecord) -> int:
        stale = [u for u in self.orders.list_units(order.id) if u.status == VoucherStatus.PROCESSING]
        for unit in stale:
            transition_unit(unit, VoucherStatus.FAILED)
            unit.error_text = INTERRUPTED_ERROR
            unit.retry_count = int(unit.retry_count or 0) + 1
            self.orders.save_unit(unit)
        if stale:
            logger.warning(
                "Units left in PROCESSING by an interrupted run marked FAILED",
                extra={"order_id": str(order.id), "count": len(stale)},
            )
        return len(stale)

    # ============================================================
    # ENTRY POINTS
    # ============================================================

    def process_order(self, order_id) -> ProcessOrderResult:
        store_id = self.orders.load(order_id).store_id
        with self.locks.hold(store_id):
            return self._process_locked(order_id)

    def retry_failed_units(self, order_id) -> ProcessOrderResult:
        store_id = self.orders.load(order_id).store_id
        with self.locks.hold(store_id):
            return self._retry_locked(order_id)

    def publish(self, order_id) -> PublishResult:
        result = self.publisher.publish_order(order_id)
        if result.codes_published:
            order = self.orders.load(order_id)
            self._record_success_message(order, result)
            self.orders.save(order)
        return result

    # ============================================================
    # RUNS
    # ============================================================

    def _process_locked(self, order_id) -> ProcessOrderResult:
        order = self.orders.load(order_id)

        if order.status == OrderStatus.DRAFT:
            transition_order(order, OrderStatus.PENDING, now=self.clock())
            self.orders.save(order)

        if order.status not in PROCESSABLE_ORDER_STATES:
            raise InvalidOrderTransitionError(
                f"Purchase order {order.id} cannot be processed from '{order.status}'"
            )
        if order.status == OrderStatus.FAILED and order.processing_started_at is not None:
            raise InvalidOrderTransitionError(
                f"Purchase order {order.id} already ran; retry its failed vouchers instead"
            )

        resuming = (
            order.status == OrderStatus.PROCESSING or order.processing_started_at is not None
        )

        try:
            check, session = self.verifier.verify(order.id)
        except VoucherServiceError as exc:
            self._record_preflight_failure(order.id, exc)
            raise

        order = self.orders.load(order.id)
        if not check.sufficient:
            return self._stop_short_balance(order, check)

        transition_order(order, OrderStatus.PROCESSING, now=self.clock())
        order.error_message = None
        self.orders.save(order)
        logger.info(
            "Purchase order processing started",
            extra={"order_id": str(order.id), "total_quantity": order.total_quantity},
        )

        if resuming:
            self._fail_interrupted_units(order)

        self.expand_units(order)
        pending = self.orders.find_pending_units(order.id)
        attempted, generated = self._execute_units(order, pending, session)

        return self._finish_run(order.id, check, attempted, generated)

    def _retry_locked(self, order_id) -> ProcessOrderResult:
        order = self.orders.load(order_id)
        if order.status not in RETRYABLE_ORDER_STATES:
            raise InvalidOrderTransitionError(
                f"Purchase order {order.id} has nothing to retry in '{order.status}'"
            )

        candidates = [u for u in self.orders.find_failed_units(order.id)
                      if self.retry_policy.can_retry(u)]
        if not candidates:
            logger.info("No retryable vouchers", extra={"order_id": str(order.id)})
            return self._summarize(order)

        store = self.catalog.load_store(order.store_id)
        session = self.issuer.authenticate(store)

        logger.info(
            "Retrying failed vouchers",
            extra={"order_id": str(order.id), "count": len(candidates)},
        )
        attempted, generated = self._execute_units(order, candidates, session, retrying=True)
        return self._finish_run(order.id, None, attempted, generated)

    def _execute_units(
        self,
        order: PurchaseOrderRecord,
        units: list[VoucherUnitRecord],
        session: IssuerSession,
        *,
        retrying: bool = False,
    ) -> tuple[int, int]:
        self.throttle.reset()
        attempted = generated = 0

        for index, unit in enumerate(units):
            item = order.item_by_id(unit.item_id)
            if item is None:
                logger.error("Voucher unit has no item", extra={"external_id": unit.external_id})
                continue

            if retrying and index:
                self.retry_policy.wait()

            outcome = self.executor.execute(unit, item=item, session=session)
            attempted += 1
            if outcome.generated:
                generated += 1
            if not outcome.transport_failure:
                self.throttle.record_call()

        return attempted, generated

    def _finish_run(
        self, order_id, check: BalanceCheckResult | None, attempted: int, generated: int
    ) -> ProcessOrderResult:
        order = self.orders.load(order_id)
        counts = self.orders.count_units_by_status(order.id)
        total_generated = counts.get(VoucherStatus.GENERATED, 0)
        total_failed = counts.get(VoucherStatus.FAILED, 0)

        status = outcome_status(generated=total_generated, failed=total_failed)
        transition_order(order, status, now=self.clock())
        order.total_vouchers_generated = total_generated
        order.total_vouchers_failed = total_failed
        order.balance_after = self._balance_snapshot(order)
        if status == OrderStatus.FAILED:
            order.error_message = "No vouchers could be generated"
        elif status == OrderStatus.PARTIALLY_COMPLETED:
            order.error_message = f"{total_failed} voucher(s) failed"
        else:
            order.error_message = None
        self.orders.save(order)

        logger.info(
            "Purchase order run finished",
            extra={
                "order_id": str(order.id),
                "status": status,
                "generated": total_generated,
                "failed": total_failed,
            },
        )

        publish = None
        if total_generated:
            try:
                publish = self.publish(order.id)
            except Exception:
                logger.exception(
                    "Publishing voucher codes failed",
                    extra={"order_id": str(order.id)},
                )
            order = self.orders.load(order.id)

        return ProcessOrderResult(
            order=order,
            balance_check=check,
            attempted=attempted,
            generated=generated,
            failed=attempted - generated,
            publish=publish,
        )

    # ============================================================
    # HELPERS
    # ============================================================

    def _balance_snapshot(self, order: PurchaseOrderRecord):
        try:
            store = self.catalog.load_store(order.store_id)
            return self.issuer.authenticate(store).balance
        except VoucherServiceError as exc:
            logger.warning(
                "Could not read post-run balance",
                extra={"order_id": str(order.id), "error": str(exc)},
            )
            return order.balance_after

    def _record_preflight_failure(self, order_id, exc: Exception) -> None:
        order = self.orders.load(order_id)
        order.error_message = f"Processing failed: {exc}"
        if order.status in (OrderStatus.PENDING, OrderStatus.FAILED):
            transition_order(order, OrderStatus.FAILED, now=self.clock())
        self.orders.save(order)
        logger.error(
            "Purchase order pre-flight check failed",
            extra={"order_id": str(order_id), "error": str(exc)},
        )

    def _stop_short_balance(
        self, order: PurchaseOrderRecord, check: BalanceCheckResult
    ) -> ProcessOrderResult:
        order.error_message = (
            f"Insufficient balance. Required: {check.total_cost}, Available: {check.balance}"
        )
        # a resumed run keeps its status; only a fresh order fails outright
        if order.processing_started_at is None and order.status != OrderStatus.FAILED:
            transition_order(order, OrderStatus.FAILED, now=self.clock())
        self.orders.save(order)
        logger.warning(
            "Insufficient issuer balance",
            extra={
                "order_id": str(order.id),
                "required": str(check.total_cost),
                "available": str(check.balance),
            },
        )
        return ProcessOrderResult(order=order, balance_check=check)

    def _record_success_message(self, order: PurchaseOrderRecord, result: PublishResult) -> None:
        order.success_message = (
            f"{result.codes_published} vouchers generated and synced to {self.storefront_name}."
        )

    def _summarize(self, order: PurchaseOrderRecord) -> ProcessOrderResult:
        return ProcessOrderResult(order=order)
