# vouchers/services/verifier.py

"""
BALANCE & PRICING VERIFIER

Pre-flight gate for one purchase order.

Rules:
- authenticate with the owning store's issuer credentials
- fetch the live price band of every distinct option on the order
- reprice items from the band minimum, ONLY before processing has started
- any auth, network or pricing failure propagates (the gate aborts)
- sufficient = balance (minor units) >= cost still to be issued (minor units)

Side effect:
- an order that FAILED on a balance shortfall and now passes the check
  is reset to PENDING and its error cleared
"""

from __future__ import annotations

import logging
from datetime import datetime
from decimal import Decimal
from typing import Callable

from django.utils import timezone

from vouchers.clients.issuer import IssuerClient, IssuerSession
from vouchers.domain.lifecycle import transition_order
from vouchers.domain.records import PurchaseOrderRecord, money, to_minor_units
from vouchers.domain.results import BalanceCheckResult
from vouchers.domain.status import OrderStatus, VoucherStatus
from vouchers.repositories.base import CatalogRepository, PurchaseRepository
from vouchers.services.pricing import CatalogPricingService, anomaly_message

logger = logging.getLogger(__name__)


class BalanceVerifier:
    def __init__(
        self,
        *,
        orders: PurchaseRepository,
        catalog: CatalogRepository,
        issuer: IssuerClient,
        pricing: CatalogPricingService,
        clock: Callable[[], datetime] = timezone.now,
    ):
        self.orders = orders
        self.catalog = catalog
        self.issuer = issuer
        self.pricing = pricing
        self.clock = clock

    def check_balance_and_update_pricing(self, order_id) -> BalanceCheckResult:
        result, _session = self.verify(order_id)
        return result

    def verify(self, order_id) -> tuple[BalanceCheckResult, IssuerSession]:
        """Same as the public check, also handing back the open issuer session."""
        order = self.orders.load(order_id)
        store = self.catalog.load_store(order.store_id)
        session = self.issuer.authenticate(store)

        started = order.processing_started_at is not None
        anomalies: list[str] = []

        for code in sorted({it.product_option_code for it in order.items}):
            band = self.issuer.get_product_pricing(session, code)

            if not band.is_fixed_price:
                msg = anomaly_message(band)
                anomalies.append(msg)
                logger.warning(msg, extra={"order_id": str(order.id), "option_code": code})

            if not started:
                for item in order.items:
                    if item.product_option_code == code:
                        item.reprice(band.min_wholesale_value)

            self.pricing.propagate(order.store_id, band)

        order.recompute_total()
        required = self._cost_to_issue(order) if started else order.total_wholesale_cost
        sufficient = session.balance_minor >= to_minor_units(required)

        order.balance_before = session.balance

        if (
            sufficient
            and order.status == OrderStatus.FAILED
            and order.processing_started_at is None
        ):
            transition_order(order, OrderStatus.PENDING, now=self.clock())
            order.error_message = None
            logger.info("Purchase order reset to PENDING after balance re-check",
                        extra={"order_id": str(order.id)})

        self.orders.save(order)

        logger.info(
            "Balance verified",
            extra={
                "order_id": str(order.id),
                "balance": str(session.balance),
                "required": str(required),
                "sufficient": sufficient,
            },
        )

        result = BalanceCheckResult(
            balance=session.balance,
            sufficient=sufficient,
            total_cost=money(required),
            anomalies=tuple(anomalies),
        )
        return result, session

    def _cost_to_issue(self, order: PurchaseOrderRecord) -> Decimal:
        # units already sent to the issuer are paid for or settled
        done: dict = {}
        for unit in self.orders.list_units(order.id):
            if unit.status != VoucherStatus.PENDING:
                done[unit.item_id] = done.get(unit.item_id, 0) + 1

        total = Decimal("0.00")
        for item in order.items:
            remaining = max(int(item.quantity_ordered) - done.get(item.id, 0), 0)
            total += Decimal(remaining) * item.unit_wholesale_price
        return money(total)

    def get_balance_info(self, store_id) -> dict:
        store = self.catalog.load_store(store_id)
        session = self.issuer.authenticate(store)
        return {
            "store_id": str(store.id),
            "balance": str(session.balance),
            "balance_minor": session.balance_minor,
            "sandbox": store.issuer_sandbox,
        }
