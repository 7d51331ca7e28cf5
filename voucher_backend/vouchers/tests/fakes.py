# vouchers/tests/fakes.py

"""
Test doubles for the fulfillment pipeline.

FakeIssuer / FakeStorefront stand in for the HTTP clients;
build_pipeline() wires every component over in-memory repositories
with a fixed clock, no retry backoff and, unless one is passed in,
no throttle pauses.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone as dt_timezone
from decimal import Decimal

from vouchers.clients.issuer import IssuerSession, TransactionResult
from vouchers.domain.records import (
    ProductOptionRecord,
    PurchaseOrderItemRecord,
    PurchaseOrderRecord,
    StoreRecord,
)
from vouchers.domain.results import PriceBand
from vouchers.domain.status import OrderStatus
from vouchers.repositories.memory import InMemoryCatalogRepository, InMemoryPurchaseRepository
from vouchers.services.coordinator import FulfillmentCoordinator
from vouchers.services.exceptions import (
    IssuerAuthenticationError,
    IssuerResponseError,
    StorefrontTransportError,
)
from vouchers.services.executor import TransactionExecutor
from vouchers.services.policies import NoThrottle, RetryPolicy, StoreLocks
from vouchers.services.pricing import CatalogPricingService
from vouchers.services.publisher import StockPublisher
from vouchers.services.verifier import BalanceVerifier

FIXED_NOW = datetime(2024, 5, 1, 12, 0, tzinfo=dt_timezone.utc)

OK = "ok"
REJECT = "reject"


def fixed_clock():
    return FIXED_NOW


def band(code, wholesale="10.00", max_wholesale=None, face="12.00") -> PriceBand:
    return PriceBand(
        option_code=code,
        min_wholesale_value=Decimal(wholesale),
        max_wholesale_value=Decimal(max_wholesale or wholesale),
        min_face_value=Decimal(face),
        max_face_value=Decimal(face),
    )


class FakeIssuer:
    """
    outcomes: consumed one per do_transaction call.
    Each entry is OK, REJECT or an exception instance to raise.
    Once exhausted every call succeeds.
    """

    def __init__(self, *, balance_minor=100_000, bands=None):
        self.balance_minor = balance_minor
        self.bands: dict[str, PriceBand] = dict(bands or {})
        self.outcomes: list = []
        self.auth_error: Exception | None = None
        self.pricing_errors: set[str] = set()
        self.auth_calls = 0
        self.pricing_calls: list[str] = []
        self.transactions: list[dict] = []

    def authenticate(self, store: StoreRecord) -> IssuerSession:
        self.auth_calls += 1
        if self.auth_error is not None:
            raise self.auth_error
        return IssuerSession(
            token="tok-test",
            base_url="https://sandbox.test" if store.issuer_sandbox else "https://issuer.test",
            balance_minor=self.balance_minor,
        )

    def get_product_pricing(self, session: IssuerSession, option_code: str) -> PriceBand:
        self.pricing_calls.append(option_code)
        if option_code in self.pricing_errors:
            raise IssuerResponseError(f"Pricing lookup failed for {option_code}")
        return self.bands[option_code]

    def do_transaction(self, session, *, external_id, option_code, amount) -> TransactionResult:
        self.transactions.append(
            {"external_id": external_id, "option_code": option_code, "amount": amount}
        )
        outcome = self.outcomes.pop(0) if self.outcomes else OK

        if isinstance(outcome, Exception):
            raise outcome

        if outcome == REJECT:
            return TransactionResult(
                succeeded=False,
                raw={"OperationSucceeded": False, "ErrorText": "Out of stock"},
                error_text="Out of stock",
            )

        wholesale = self.bands[option_code].min_wholesale_value if option_code in self.bands else None
        if wholesale is not None:
            self.balance_minor -= int(wholesale * 100)
        n = len(self.transactions)
        return TransactionResult(
            succeeded=True,
            raw={"OperationSucceeded": True},
            response_amount=Decimal(amount),
            amount_wholesale=wholesale,
            serial_number=f"SN-{n}",
            transaction_id=f"TX-{n}",
            provider_transaction_id=f"PTX-{n}",
            reference=f"CODE-{external_id}",
            redeem_url=f"https://redeem.test/{n}",
        )


class FakeStorefront:
    def __init__(self):
        self.calls: list[tuple[str, list[str]]] = []
        self.failing_products: set[str] = set()

    def attach_digital_codes(self, store, storefront_product_id, codes):
        self.calls.append((storefront_product_id, list(codes)))
        if storefront_product_id in self.failing_products:
            raise StorefrontTransportError(
                f"Storefront HTTP 503 for product {storefront_product_id}", status_code=503
            )
        return {"status": 200, "success": True, "data": {"message": "ok", "code": 200}}


@dataclass
class Pipeline:
    orders: InMemoryPurchaseRepository
    catalog: InMemoryCatalogRepository
    issuer: FakeIssuer
    storefront: FakeStorefront
    pricing: CatalogPricingService
    verifier: BalanceVerifier
    executor: TransactionExecutor
    publisher: StockPublisher
    coordinator: FulfillmentCoordinator
    throttle: object
    store: StoreRecord = None
    options: dict = field(default_factory=dict)


def build_pipeline(
    *, balance_minor=100_000, bands=None, max_attempts=3, throttle=None, locks=None
) -> Pipeline:
    orders = InMemoryPurchaseRepository()
    catalog = InMemoryCatalogRepository()
    issuer = FakeIssuer(balance_minor=balance_minor, bands=bands)
    storefront = FakeStorefront()
    throttle = throttle if throttle is not None else NoThrottle()

    pricing = CatalogPricingService(catalog=catalog, issuer=issuer, clock=fixed_clock)
    verifier = BalanceVerifier(
        orders=orders, catalog=catalog, issuer=issuer, pricing=pricing, clock=fixed_clock
    )
    executor = TransactionExecutor(orders=orders, issuer=issuer, clock=fixed_clock)
    publisher = StockPublisher(
        orders=orders, catalog=catalog, storefront=storefront, clock=fixed_clock
    )
    coordinator = FulfillmentCoordinator(
        orders=orders,
        catalog=catalog,
        issuer=issuer,
        verifier=verifier,
        executor=executor,
        publisher=publisher,
        retry_policy=RetryPolicy(max_attempts=max_attempts, sleep=lambda s: None),
        throttle=throttle,
        locks=locks or StoreLocks(),
        clock=fixed_clock,
    )

    store = catalog.add_store(
        StoreRecord(
            id=uuid.uuid4(),
            name="Test Store",
            issuer_username="merchant",
            issuer_password="secret",
            issuer_terminal_key="term-1",
            issuer_sandbox=True,
            storefront_access_token="sf-token",
        )
    )

    return Pipeline(
        orders=orders,
        catalog=catalog,
        issuer=issuer,
        storefront=storefront,
        pricing=pricing,
        verifier=verifier,
        executor=executor,
        publisher=publisher,
        coordinator=coordinator,
        throttle=throttle,
        store=store,
    )


def add_option(p: Pipeline, code, *, product_id="P-100", wholesale="10.00", face="12.00", **extra):
    option = p.catalog.add_option(
        ProductOptionRecord(
            id=uuid.uuid4(),
            store_id=p.store.id,
            option_code=code,
            storefront_product_id=product_id,
            wholesale_price=Decimal(wholesale),
            min_face_value=Decimal(face),
            max_face_value=Decimal(face),
            **extra,
        )
    )
    p.options[code] = option
    return option


def add_order(p: Pipeline, lines, *, status=OrderStatus.PENDING, unit_price="10.00", face="12.00"):
    """lines: [(option_code, quantity), ...]"""
    order = PurchaseOrderRecord(id=uuid.uuid4(), store_id=p.store.id, status=status)
    for code, qty in lines:
        item = PurchaseOrderItemRecord(
            id=uuid.uuid4(),
            order_id=order.id,
            product_option_code=code,
            quantity_ordered=qty,
            unit_face_value=Decimal(face),
        )
        item.reprice(unit_price)
        order.items.append(item)
    order.recompute_total()
    return p.orders.create(order)


def auth_failure():
    return IssuerAuthenticationError("Issuer authentication failed: bad credentials")
