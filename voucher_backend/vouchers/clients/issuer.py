# vouchers/clients/issuer.py

"""
ISSUER API CLIENT

Endpoints used:
- POST /authenticate                       -> {OperationSucceeded, Token, Plafond}
- POST /GetAvailableProductOptionByCode    -> price band for one product option
- POST /dotransaction                      -> issues exactly one voucher

Money:
- Plafond is reported in minor units (cents)
- Price bands, face values and transaction amounts are currency units
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from typing import Any

from vouchers.clients.http import DEFAULT_TIMEOUT, error_message, request_json
from vouchers.domain.records import StoreRecord, from_minor_units, price
from vouchers.domain.results import PriceBand
from vouchers.services.exceptions import (
    CredentialsMisconfiguredError,
    IssuerAuthenticationError,
    IssuerResponseError,
    IssuerTransportError,
)

logger = logging.getLogger(__name__)

PRODUCTION_URL = "https://api.ubiqfy.com"
SANDBOX_URL = "https://api-sandbox.ubiqfy.com"


@dataclass(frozen=True)
class IssuerSession:
    token: str
    base_url: str
    balance_minor: int

    @property
    def balance(self) -> Decimal:
        return from_minor_units(self.balance_minor)


@dataclass(frozen=True)
class TransactionResult:
    succeeded: bool
    raw: dict[str, Any]
    error_text: str | None = None
    response_amount: Decimal | None = None
    amount_wholesale: Decimal | None = None
    serial_number: str | None = None
    transaction_id: str | None = None
    provider_transaction_id: str | None = None
    reference: str | None = None
    redeem_url: str | None = None


def _decimal_or_none(v) -> Decimal | None:
    if v is None or v == "":
        return None
    try:
        return price(v)
    except (InvalidOperation, ValueError, TypeError):
        return None


def _str_or_none(v) -> str | None:
    if v is None or v == "":
        return None
    return str(v)


def parse_transaction_response(payload: dict[str, Any]) -> TransactionResult:
    succeeded = payload.get("OperationSucceeded")
    if not isinstance(succeeded, bool):
        raise IssuerResponseError(
            "DoTransaction response is missing a boolean OperationSucceeded"
        )

    if not succeeded:
        return TransactionResult(
            succeeded=False,
            raw=payload,
            error_text=str(payload.get("ErrorText") or "Unknown error"),
        )

    data = payload.get("PaymentResultData") or {}
    if not isinstance(data, dict):
        raise IssuerResponseError("DoTransaction PaymentResultData is not an object")

    return TransactionResult(
        succeeded=True,
        raw=payload,
        response_amount=_decimal_or_none(data.get("ResponseAmount")),
        amount_wholesale=_decimal_or_none(data.get("AmountWholesale")),
        serial_number=_str_or_none(data.get("SerialNumber")),
        transaction_id=_str_or_none(data.get("TransactionId")),
        provider_transaction_id=_str_or_none(data.get("ProviderTransactionId")),
        reference=_str_or_none(data.get("Reference")),
        redeem_url=_str_or_none(data.get("RedeemUrl")),
    )


class IssuerClient:
    """
    Thin, stateless client. Sessions are returned to the caller,
    which reuses one token for the whole run of an order.
    """

    def __init__(
        self,
        *,
        production_url: str = PRODUCTION_URL,
        sandbox_url: str = SANDBOX_URL,
        product_type_code: str = "Voucher",
        timeout: float = DEFAULT_TIMEOUT,
    ):
        self.production_url = production_url.rstrip("/")
        self.sandbox_url = sandbox_url.rstrip("/")
        self.product_type_code = product_type_code
        self.timeout = timeout

    def base_url_for(self, store: StoreRecord) -> str:
        return self.sandbox_url if store.issuer_sandbox else self.production_url

    def _post(self, url: str, body: dict, *, token: str | None, label: str) -> dict:
        return request_json(
            "POST",
            url,
            body=body,
            bearer=token,
            timeout=self.timeout,
            label=label,
            transport_error=IssuerTransportError,
            response_error=IssuerResponseError,
        )

    def authenticate(self, store: StoreRecord) -> IssuerSession:
        if not store.has_issuer_credentials:
            raise CredentialsMisconfiguredError(
                f"Store {store.id} has no issuer credentials configured"
            )

        base_url = self.base_url_for(store)
        payload = self._post(
            f"{base_url}/authenticate",
            {
                "Username": store.issuer_username,
                "Password": store.issuer_password,
                "TerminalKey": store.issuer_terminal_key,
            },
            token=None,
            label="Issuer authenticate",
        )

        token = (payload.get("Token") or "").strip()
        if payload.get("OperationSucceeded") is False or not token:
            raise IssuerAuthenticationError(
                f"Issuer authentication failed for store {store.id}: "
                f"{error_message(payload, 'no token returned')}"
            )

        try:
            balance_minor = int(payload.get("Plafond") or 0)
        except (TypeError, ValueError) as exc:
            raise IssuerResponseError(
                f"Issuer returned a non-numeric Plafond: {payload.get('Plafond')!r}"
            ) from exc

        logger.info(
            "Issuer session opened",
            extra={"store_id": str(store.id), "base_url": base_url, "balance_minor": balance_minor},
        )
        return IssuerSession(token=token, base_url=base_url, balance_minor=balance_minor)

    def get_product_pricing(self, session: IssuerSession, option_code: str) -> PriceBand:
        payload = self._post(
            f"{session.base_url}/GetAvailableProductOptionByCode",
            {"Token": session.token, "ProductOptionCode": option_code},
            token=session.token,
            label=f"Issuer pricing {option_code}",
        )

        if not payload.get("OperationSucceeded"):
            raise IssuerResponseError(
                f"Pricing lookup failed for {option_code}: {error_message(payload, 'Unknown error')}"
            )

        option = payload.get("AvailableProductOption")
        if not isinstance(option, dict):
            raise IssuerResponseError(
                f"Pricing lookup for {option_code} returned no AvailableProductOption"
            )

        face = option.get("MinMaxFaceRangeValue") or {}
        band = option.get("MinMaxRangeValue") or {}
        return PriceBand(
            option_code=option_code,
            min_wholesale_value=price(band.get("MinWholesaleValue")),
            max_wholesale_value=price(band.get("MaxWholesaleValue")),
            min_face_value=price(face.get("MinFaceValue")),
            max_face_value=price(face.get("MaxFaceValue")),
        )

    def do_transaction(
        self,
        session: IssuerSession,
        *,
        external_id: str,
        option_code: str,
        amount: Decimal,
    ) -> TransactionResult:
        body = {
            "Token": session.token,
            "ExternalId": external_id,
            "ProductTypeCode": self.product_type_code,
            "ProductOptionCode": option_code,
            "Amount": float(price(amount)),
            "Quantity": 1,
        }
        payload = self._post(
            f"{session.base_url}/dotransaction",
            body,
            token=session.token,
            label=f"Issuer DoTransaction {external_id}",
        )
        return parse_transaction_response(payload)
