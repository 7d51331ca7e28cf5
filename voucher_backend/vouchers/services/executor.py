# vouchers/services/executor.py

"""
TRANSACTION EXECUTOR

Issues exactly ONE voucher per call.

Contract:
- unit must be PENDING (first attempt) or FAILED (retry)
- unit goes PROCESSING and is persisted before the issuer is called
- Amount sent is the item's FACE value, Quantity is always 1
- every outcome is persisted with response time and latency
- never raises for a per-unit failure: business rejections, transport
  errors and malformed bodies all end as a FAILED unit
- only transport failures (timeout, network, non-2xx) increment
  retry_count; an issuer rejection leaves it unchanged

Order aggregates are NOT touched here.
"""

from __future__ import annotations

import logging
import time
from datetime import datetime
from typing import Callable

from django.utils import timezone

from vouchers.clients.issuer import IssuerClient, IssuerSession, TransactionResult
from vouchers.domain.lifecycle import transition_unit
from vouchers.domain.records import PurchaseOrderItemRecord, VoucherUnitRecord
from vouchers.domain.results import UnitOutcome
from vouchers.domain.status import VoucherStatus
from vouchers.repositories.base import PurchaseRepository
from vouchers.services.exceptions import IssuerError, IssuerTransportError

logger = logging.getLogger("vouchers.fulfillment")


class TransactionExecutor:
    def __init__(
        self,
        *,
        orders: PurchaseRepository,
        issuer: IssuerClient,
        clock: Callable[[], datetime] = timezone.now,
        monotonic: Callable[[], float] = time.monotonic,
    ):
        self.orders = orders
        self.issuer = issuer
        self.clock = clock
        self.monotonic = monotonic

    def execute(
        self,
        unit: VoucherUnitRecord,
        *,
        item: PurchaseOrderItemRecord,
        session: IssuerSession,
    ) -> UnitOutcome:
        transition_unit(unit, VoucherStatus.PROCESSING)
        unit.request_sent_at = self.clock()
        unit.error_text = None
        unit.issuer_response = None
        unit.operation_succeeded = None
        self.orders.save_unit(unit)

        started = self.monotonic()
        try:
            result = self.issuer.do_transaction(
                session,
                external_id=unit.external_id,
                option_code=item.product_option_code,
                amount=item.unit_face_value,
            )
        except IssuerTransportError as exc:
            return self._failed(unit, started, str(exc), transport=True)
        except IssuerError as exc:
            return self._failed(unit, started, str(exc))
        except Exception as exc:
            logger.exception(
                "Unexpected error issuing voucher",
                extra={"external_id": unit.external_id},
            )
            return self._failed(unit, started, f"Unexpected error: {exc}")

        if not result.succeeded:
            unit.issuer_response = result.raw
            unit.operation_succeeded = False
            return self._failed(unit, started, result.error_text or "Unknown error")

        return self._generated(unit, started, result)

    def _stamp_response(self, unit: VoucherUnitRecord, started: float) -> None:
        unit.response_received_at = self.clock()
        unit.response_time_ms = max(int((self.monotonic() - started) * 1000), 0)
        unit.processed_at = unit.response_received_at

    def _generated(
        self, unit: VoucherUnitRecord, started: float, result: TransactionResult
    ) -> UnitOutcome:
        self._stamp_response(unit, started)
        transition_unit(unit, VoucherStatus.GENERATED)
        unit.issuer_response = result.raw
        unit.operation_succeeded = True
        unit.serial_number = result.serial_number
        unit.transaction_id = result.transaction_id
        unit.provider_transaction_id = result.provider_transaction_id
        unit.reference = result.reference
        unit.redeem_url = result.redeem_url
        unit.response_amount = result.response_amount
        unit.amount_wholesale = result.amount_wholesale
        self.orders.save_unit(unit)

        logger.info(
            "Voucher generated",
            extra={
                "order_id": str(unit.order_id),
                "external_id": unit.external_id,
                "latency_ms": unit.response_time_ms,
            },
        )
        return UnitOutcome(unit=unit, generated=True)

    def _failed(
        self,
        unit: VoucherUnitRecord,
        started: float,
        error: str,
        *,
        transport: bool = False,
    ) -> UnitOutcome:
        self._stamp_response(unit, started)
        transition_unit(unit, VoucherStatus.FAILED)
        unit.error_text = error
        if transport:
            unit.retry_count = int(unit.retry_count or 0) + 1
        if unit.operation_succeeded is None:
            unit.operation_succeeded = False
        self.orders.save_unit(unit)

        log = logger.error if transport else logger.warning
        log(
            "Voucher issuance failed",
            extra={
                "order_id": str(unit.order_id),
                "external_id": unit.external_id,
                "retry_count": unit.retry_count,
                "latency_ms": unit.response_time_ms,
                "error": error,
            },
        )
        return UnitOutcome(unit=unit, generated=False, transport_failure=transport, error=error)
