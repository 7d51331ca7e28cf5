# vouchers/api/views.py

"""
======================================================
PATH: vouchers/api/views.py
======================================================
PURCHASE ORDER VIEWSET (STAFF)

Endpoints (under /api/vouchers/):
- GET/POST purchase-orders/
- GET      purchase-orders/{id}/
- POST     purchase-orders/{id}/submit/
- POST     purchase-orders/{id}/cancel/
- POST     purchase-orders/{id}/check-balance/
- POST     purchase-orders/{id}/process/
- POST     purchase-orders/{id}/retry/
- POST     purchase-orders/{id}/publish/
- GET      purchase-orders/{id}/vouchers/

Error mapping:
- not found                       -> 404
- validation / lifecycle / creds  -> 400
- issuer or storefront failure    -> 502
======================================================
"""

from __future__ import annotations

import logging

from drf_spectacular.utils import extend_schema
from rest_framework import mixins, status, viewsets
from rest_framework.decorators import action
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from vouchers.api.serializers import (
    PurchaseOrderCreateSerializer,
    PurchaseOrderSerializer,
    VoucherUnitSerializer,
)
from vouchers.models import PurchaseOrder
from vouchers.services.exceptions import (
    IntegrationError,
    PurchaseOrderNotFound,
    StoreNotFound,
    VoucherServiceError,
)
from vouchers.services.orders import cancel_order, create_purchase_order, submit_order
from vouchers.services.wiring import build_fulfillment

logger = logging.getLogger(__name__)


def error_response(exc: VoucherServiceError) -> Response:
    if isinstance(exc, (PurchaseOrderNotFound, StoreNotFound)):
        code = status.HTTP_404_NOT_FOUND
    elif isinstance(exc, IntegrationError):
        code = status.HTTP_502_BAD_GATEWAY
    else:
        code = status.HTTP_400_BAD_REQUEST
    return Response({"detail": str(exc)}, status=code)


class PurchaseOrderViewSet(
    mixins.CreateModelMixin,
    viewsets.ReadOnlyModelViewSet,
):
    serializer_class = PurchaseOrderSerializer
    permission_classes = [IsAuthenticated]
    filterset_fields = ["status", "store"]
    lookup_value_regex = "[0-9a-fA-F-]{36}"

    def get_queryset(self):
        return (
            PurchaseOrder.objects.select_related("store")
            .prefetch_related("items", "voucher_units")
            .order_by("-created_at")
        )

    def _detail(self, order_id, code=status.HTTP_200_OK) -> Response:
        order = self.get_queryset().get(id=order_id)
        return Response(PurchaseOrderSerializer(order).data, status=code)

    # ======================================================
    # CREATE (DRAFT)
    # ======================================================

    @extend_schema(
        tags=["vouchers"],
        request=PurchaseOrderCreateSerializer,
        responses={201: PurchaseOrderSerializer},
    )
    def create(self, request, *args, **kwargs):
        s = PurchaseOrderCreateSerializer(data=request.data)
        s.is_valid(raise_exception=True)
        data = s.validated_data

        f = build_fulfillment()
        try:
            order = create_purchase_order(
                orders=f.orders,
                catalog=f.catalog,
                store_id=data["store_id"],
                lines=data["items"],
            )
        except VoucherServiceError as exc:
            return error_response(exc)

        return self._detail(order.id, code=status.HTTP_201_CREATED)

    # ======================================================
    # LIFECYCLE
    # ======================================================

    @extend_schema(tags=["vouchers"], request=None, responses={200: PurchaseOrderSerializer})
    @action(detail=True, methods=["post"], url_path="submit")
    def submit(self, request, pk=None):
        f = build_fulfillment()
        try:
            submit_order(orders=f.orders, order_id=pk)
        except VoucherServiceError as exc:
            return error_response(exc)
        return self._detail(pk)

    @extend_schema(tags=["vouchers"], request=None, responses={200: PurchaseOrderSerializer})
    @action(detail=True, methods=["post"], url_path="cancel")
    def cancel(self, request, pk=None):
        f = build_fulfillment()
        try:
            cancel_order(orders=f.orders, order_id=pk)
        except VoucherServiceError as exc:
            return error_response(exc)
        return self._detail(pk)

    # ======================================================
    # FULFILLMENT
    # ======================================================

    @extend_schema(tags=["vouchers"], request=None)
    @action(detail=True, methods=["post"], url_path="check-balance")
    def check_balance(self, request, pk=None):
        f = build_fulfillment()
        try:
            result = f.verifier.check_balance_and_update_pricing(pk)
        except VoucherServiceError as exc:
            return error_response(exc)
        return Response(result.as_dict(), status=status.HTTP_200_OK)

    @extend_schema(tags=["vouchers"], request=None)
    @action(detail=True, methods=["post"], url_path="process")
    def process(self, request, pk=None):
        f = build_fulfillment()
        try:
            result = f.coordinator.process_order(pk)
        except VoucherServiceError as exc:
            logger.warning("Process order failed", extra={"order_id": str(pk), "error": str(exc)})
            return error_response(exc)
        return Response(result.as_dict(), status=status.HTTP_200_OK)

    @extend_schema(tags=["vouchers"], request=None)
    @action(detail=True, methods=["post"], url_path="retry")
    def retry(self, request, pk=None):
        f = build_fulfillment()
        try:
            result = f.coordinator.retry_failed_units(pk)
        except VoucherServiceError as exc:
            return error_response(exc)
        return Response(result.as_dict(), status=status.HTTP_200_OK)

    @extend_schema(tags=["vouchers"], request=None)
    @action(detail=True, methods=["post"], url_path="publish")
    def publish(self, request, pk=None):
        f = build_fulfillment()
        try:
            result = f.coordinator.publish(pk)
        except VoucherServiceError as exc:
            return error_response(exc)
        return Response(
            {
                "codes_published": result.codes_published,
                "products_published": list(result.products_published),
                "products_failed": list(result.products_failed),
                "skipped_units": result.skipped_units,
                "errors": result.errors,
            },
            status=status.HTTP_200_OK,
        )

    @extend_schema(tags=["vouchers"], responses={200: VoucherUnitSerializer(many=True)})
    @action(detail=True, methods=["get"], url_path="vouchers")
    def vouchers(self, request, pk=None):
        order = self.get_object()
        qs = order.voucher_units.select_related("item").order_by("external_id")
        return Response(VoucherUnitSerializer(qs, many=True).data, status=status.HTTP_200_OK)
