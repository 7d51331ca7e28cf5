# store/services/stock.py

"""
STORE STOCK SUMMARY

Read-only view of the locally cached stock counters:
- every catalog option of the store with its counter and last update
- vouchers published to the storefront in the last 24 hours, per option
- totals across the store
"""

from __future__ import annotations

from datetime import timedelta

from django.db.models import Count
from django.utils import timezone

from store.models import Store, StoreProductOption
from vouchers.models import VoucherUnit
from vouchers.services.exceptions import StoreNotFound

RECENT_WINDOW = timedelta(hours=24)


def get_store_stock_info(*, store_id, now=None) -> dict:
    try:
        store = Store.objects.get(id=store_id)
    except Store.DoesNotExist as exc:
        raise StoreNotFound(f"Store {store_id} not found") from exc

    now = now or timezone.now()
    cutoff = now - RECENT_WINDOW

    recent_rows = (
        VoucherUnit.objects.filter(
            purchase_order__store=store,
            storefront_synced=True,
            storefront_synced_at__gte=cutoff,
        )
        .values("item__product_option_code")
        .annotate(n=Count("id"))
    )
    recent = {r["item__product_option_code"]: r["n"] for r in recent_rows}

    options = []
    for opt in StoreProductOption.objects.filter(store=store).order_by("option_code"):
        options.append(
            {
                "id": str(opt.id),
                "option_code": opt.option_code,
                "option_name": opt.option_name,
                "storefront_product_id": opt.storefront_product_id,
                "stock_quantity": opt.stock_quantity,
                "last_stock_update": opt.last_stock_update.isoformat() if opt.last_stock_update else None,
                "published_last_24h": recent.get(opt.option_code, 0),
            }
        )

    return {
        "store_id": str(store.id),
        "store_name": store.name,
        "total_options": len(options),
        "total_stock": sum(o["stock_quantity"] for o in options),
        "published_last_24h": sum(recent.values()),
        "options": options,
    }
