# vouchers/clients/storefront.py

"""
STOREFRONT API CLIENT

Attaches generated voucher codes to a storefront product:
    POST {base}/products/{product_id}/digital-codes   {"codes": [...]}
    -> {status, success, data: {message, code}}

The merchant's access token is refreshed out-of-band; this client
only reads the current one from the store record.
"""

from __future__ import annotations

from typing import Any

from vouchers.clients.http import DEFAULT_TIMEOUT, error_message, request_json
from vouchers.domain.records import StoreRecord
from vouchers.services.exceptions import (
    CredentialsMisconfiguredError,
    StorefrontResponseError,
    StorefrontTransportError,
)

BASE_URL = "https://api.salla.dev/admin/v2"


class StorefrontClient:
    def __init__(self, *, base_url: str = BASE_URL, timeout: float = DEFAULT_TIMEOUT):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout

    def attach_digital_codes(
        self, store: StoreRecord, storefront_product_id: str, codes: list[str]
    ) -> dict[str, Any]:
        token = (store.storefront_access_token or "").strip()
        if not token:
            raise CredentialsMisconfiguredError(
                f"Store {store.id} has no storefront access token"
            )
        if not codes:
            raise ValueError("codes must not be empty")

        payload = request_json(
            "POST",
            f"{self.base_url}/products/{storefront_product_id}/digital-codes",
            body={"codes": list(codes)},
            bearer=token,
            timeout=self.timeout,
            label=f"Storefront digital-codes {storefront_product_id}",
            transport_error=StorefrontTransportError,
            response_error=StorefrontResponseError,
        )

        if not payload.get("success"):
            raise StorefrontResponseError(
                f"Storefront refused codes for product {storefront_product_id}: "
                f"{error_message(payload, 'Unknown error')}"
            )
        return payload
