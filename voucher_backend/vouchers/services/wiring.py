# vouchers/services/wiring.py

"""
Default pipeline assembly from settings.VOUCHERS.

Views and management commands call build_fulfillment(); tests build
the components directly with in-memory repositories and fakes.
"""

from __future__ import annotations

from dataclasses import dataclass

from django.conf import settings

from vouchers.clients.issuer import PRODUCTION_URL, SANDBOX_URL, IssuerClient
from vouchers.clients.storefront import BASE_URL as STOREFRONT_BASE_URL
from vouchers.clients.storefront import StorefrontClient
from vouchers.repositories.base import CatalogRepository, PurchaseRepository
from vouchers.services.coordinator import FulfillmentCoordinator
from vouchers.services.executor import TransactionExecutor
from vouchers.services.policies import CallCountThrottle, RetryPolicy, StoreLocks
from vouchers.services.pricing import CatalogPricingService
from vouchers.services.publisher import StockPublisher
from vouchers.services.verifier import BalanceVerifier

# shared by every pipeline built in this process
STORE_LOCKS = StoreLocks()


@dataclass
class Fulfillment:
    orders: PurchaseRepository
    catalog: CatalogRepository
    pricing: CatalogPricingService
    verifier: BalanceVerifier
    executor: TransactionExecutor
    publisher: StockPublisher
    coordinator: FulfillmentCoordinator


def _config() -> dict:
    return dict(getattr(settings, "VOUCHERS", {}) or {})


def build_fulfillment(
    *,
    orders: PurchaseRepository | None = None,
    catalog: CatalogRepository | None = None,
    issuer: IssuerClient | None = None,
    storefront: StorefrontClient | None = None,
) -> Fulfillment:
    cfg = _config()
    timeout = float(cfg.get("HTTP_TIMEOUT", 25))

    if orders is None or catalog is None:
        from vouchers.repositories.django_orm import (
            DjangoCatalogRepository,
            DjangoPurchaseRepository,
        )

        orders = orders or DjangoPurchaseRepository()
        catalog = catalog or DjangoCatalogRepository()

    issuer = issuer or IssuerClient(
        production_url=cfg.get("ISSUER_PRODUCTION_URL") or PRODUCTION_URL,
        sandbox_url=cfg.get("ISSUER_SANDBOX_URL") or SANDBOX_URL,
        product_type_code=cfg.get("ISSUER_PRODUCT_TYPE_CODE") or "Voucher",
        timeout=timeout,
    )
    storefront = storefront or StorefrontClient(
        base_url=cfg.get("STOREFRONT_BASE_URL") or STOREFRONT_BASE_URL,
        timeout=timeout,
    )

    pricing = CatalogPricingService(catalog=catalog, issuer=issuer)
    verifier = BalanceVerifier(orders=orders, catalog=catalog, issuer=issuer, pricing=pricing)
    executor = TransactionExecutor(orders=orders, issuer=issuer)
    publisher = StockPublisher(orders=orders, catalog=catalog, storefront=storefront)

    coordinator = FulfillmentCoordinator(
        orders=orders,
        catalog=catalog,
        issuer=issuer,
        verifier=verifier,
        executor=executor,
        publisher=publisher,
        retry_policy=RetryPolicy(
            max_attempts=int(cfg.get("MAX_ATTEMPTS", 3)),
            backoff_seconds=float(cfg.get("RETRY_BACKOFF_SECONDS", 0)),
        ),
        throttle=CallCountThrottle(
            every=int(cfg.get("THROTTLE_EVERY", 10)),
            pause_seconds=float(cfg.get("THROTTLE_PAUSE_SECONDS", 1.0)),
        ),
        locks=STORE_LOCKS,
        storefront_name=cfg.get("STOREFRONT_NAME") or "storefront",
    )

    return Fulfillment(
        orders=orders,
        catalog=catalog,
        pricing=pricing,
        verifier=verifier,
        executor=executor,
        publisher=publisher,
        coordinator=coordinator,
    )
