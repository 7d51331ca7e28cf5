# vouchers/domain/lifecycle.py

"""
PURCHASE ORDER / VOUCHER UNIT LIFECYCLE RULES

This module defines the ONLY allowed lifecycle transitions
for purchase orders and voucher units.

DESIGN PRINCIPLES:
- No storage writes
- No network calls
- Single source of truth
"""

from __future__ import annotations

from datetime import datetime

from vouchers.domain.records import PurchaseOrderRecord, VoucherUnitRecord
from vouchers.domain.status import OrderStatus, VoucherStatus
from vouchers.services.exceptions import InvalidOrderTransitionError

# ============================================================
# ORDER STATES
# ============================================================

TERMINAL_ORDER_STATES = {
    OrderStatus.CANCELLED,
    OrderStatus.COMPLETED,
}

# FAILED -> PENDING is the balance re-check reset.
# FAILED/PARTIALLY_COMPLETED -> run outcome is the recount after a retry pass.
# PARTIALLY_COMPLETED/PROCESSING -> PROCESSING resumes units left PENDING.
ALLOWED_ORDER_TRANSITIONS = {
    OrderStatus.DRAFT: {OrderStatus.PENDING, OrderStatus.CANCELLED},
    OrderStatus.PENDING: {
        OrderStatus.PROCESSING,
        OrderStatus.FAILED,
        OrderStatus.CANCELLED,
    },
    OrderStatus.PROCESSING: {
        OrderStatus.PROCESSING,
        OrderStatus.COMPLETED,
        OrderStatus.PARTIALLY_COMPLETED,
        OrderStatus.FAILED,
    },
    OrderStatus.PARTIALLY_COMPLETED: {
        OrderStatus.PROCESSING,
        OrderStatus.COMPLETED,
        OrderStatus.PARTIALLY_COMPLETED,
        OrderStatus.FAILED,
    },
    OrderStatus.FAILED: {
        OrderStatus.PENDING,
        OrderStatus.COMPLETED,
        OrderStatus.PARTIALLY_COMPLETED,
        OrderStatus.FAILED,
    },
}

PROCESSABLE_ORDER_STATES = {
    OrderStatus.PENDING,
    OrderStatus.FAILED,
    OrderStatus.PROCESSING,
    OrderStatus.PARTIALLY_COMPLETED,
}

RETRYABLE_ORDER_STATES = {
    OrderStatus.FAILED,
    OrderStatus.PARTIALLY_COMPLETED,
}


def can_transition(*, from_status: str, to_status: str) -> bool:
    if from_status in TERMINAL_ORDER_STATES:
        return False

    return to_status in ALLOWED_ORDER_TRANSITIONS.get(from_status, set())


def transition_order(
    order: PurchaseOrderRecord, target_status: str, *, now: datetime
) -> PurchaseOrderRecord:
    if not can_transition(from_status=order.status, to_status=target_status):
        raise InvalidOrderTransitionError(
            f"Purchase order {order.id} cannot transition from "
            f"'{order.status}' to '{target_status}'"
        )

    order.status = target_status
    # resumed runs keep the first start time
    if target_status == OrderStatus.PROCESSING:
        if order.processing_started_at is None:
            order.processing_started_at = now
    elif target_status in OrderStatus.RUN_OUTCOMES:
        order.processing_completed_at = now
    order.updated_at = now
    return order


def outcome_status(*, generated: int, failed: int) -> str:
    """
    COMPLETED: nothing failed and something was generated
    FAILED: nothing was generated
    PARTIALLY_COMPLETED: a mix
    """
    if generated <= 0:
        return OrderStatus.FAILED
    if failed == 0:
        return OrderStatus.COMPLETED
    return OrderStatus.PARTIALLY_COMPLETED


# ============================================================
# UNIT STATES
# ============================================================

ALLOWED_UNIT_TRANSITIONS = {
    VoucherStatus.PENDING: {VoucherStatus.PROCESSING},
    VoucherStatus.PROCESSING: {VoucherStatus.GENERATED, VoucherStatus.FAILED},
    VoucherStatus.FAILED: {VoucherStatus.PROCESSING},
    VoucherStatus.GENERATED: set(),
}


def transition_unit(unit: VoucherUnitRecord, target_status: str) -> VoucherUnitRecord:
    if target_status not in ALLOWED_UNIT_TRANSITIONS.get(unit.status, set()):
        raise InvalidOrderTransitionError(
            f"Voucher {unit.external_id} cannot transition from "
            f"'{unit.status}' to '{target_status}'"
        )
    unit.status = target_status
    return unit
