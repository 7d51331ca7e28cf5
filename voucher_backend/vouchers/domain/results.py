# vouchers/domain/results.py

"""
PIPELINE RESULT TYPES

Each stage returns one of these instead of raising for expected
business outcomes (short balance, issuer rejection, storefront refusal).
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from decimal import Decimal

from vouchers.domain.records import PurchaseOrderRecord, VoucherUnitRecord


@dataclass(frozen=True)
class PriceBand:
    option_code: str
    min_wholesale_value: Decimal
    max_wholesale_value: Decimal
    min_face_value: Decimal
    max_face_value: Decimal

    @property
    def is_fixed_price(self) -> bool:
        return self.min_wholesale_value == self.max_wholesale_value


@dataclass(frozen=True)
class BalanceCheckResult:
    balance: Decimal
    sufficient: bool
    total_cost: Decimal
    anomalies: tuple[str, ...] = ()

    def as_dict(self) -> dict:
        return {
            "balance": str(self.balance),
            "sufficient": self.sufficient,
            "totalCost": str(self.total_cost),
            "anomalies": list(self.anomalies),
        }


@dataclass(frozen=True)
class UnitOutcome:
    unit: VoucherUnitRecord
    generated: bool
    transport_failure: bool = False
    error: str | None = None


@dataclass(frozen=True)
class PublishResult:
    codes_published: int = 0
    products_published: tuple[str, ...] = ()
    products_failed: tuple[str, ...] = ()
    skipped_units: int = 0
    errors: dict[str, str] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return not self.products_failed


@dataclass(frozen=True)
class ProcessOrderResult:
    order: PurchaseOrderRecord
    balance_check: BalanceCheckResult | None = None
    attempted: int = 0
    generated: int = 0
    failed: int = 0
    publish: PublishResult | None = None

    @property
    def status(self) -> str:
        return self.order.status

    def as_dict(self) -> dict:
        out = {
            "order_id": str(self.order.id),
            "status": self.order.status,
            "attempted": self.attempted,
            "generated": self.generated,
            "failed": self.failed,
            "error_message": self.order.error_message,
        }
        if self.balance_check is not None:
            out["balance_check"] = self.balance_check.as_dict()
        if self.publish is not None:
            out["publish"] = {
                "codes_published": self.publish.codes_published,
                "products_published": list(self.publish.products_published),
                "products_failed": list(self.publish.products_failed),
                "skipped_units": self.publish.skipped_units,
            }
        return out


@dataclass(frozen=True)
class PricingRefreshResult:
    store_id: uuid.UUID
    total: int
    updated_count: int
    failed_codes: tuple[str, ...] = ()

    def as_dict(self) -> dict:
        return {
            "store_id": str(self.store_id),
            "total": self.total,
            "updated_count": self.updated_count,
            "failed_codes": list(self.failed_codes),
        }
