# store/views/store.py

"""
STORE VIEWSET

Purpose:
- Staff store management (authenticated)
- Issuer balance, bulk pricing refresh and stock summary per store

Endpoints:
- GET  /api/store/stores/{id}/balance/
- POST /api/store/stores/{id}/refresh-pricing/
- GET  /api/store/stores/{id}/stock/
"""

from drf_spectacular.utils import extend_schema
from rest_framework import status, viewsets
from rest_framework.decorators import action
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from store.models import Store, StoreProductOption
from store.serializers.store import StoreProductOptionSerializer, StoreSerializer
from store.services.stock import get_store_stock_info
from vouchers.api.views import error_response
from vouchers.services.exceptions import VoucherServiceError
from vouchers.services.wiring import build_fulfillment


class StoreViewSet(viewsets.ModelViewSet):
    """
    Merchant store API
    """

    queryset = Store.objects.all().order_by("name")
    serializer_class = StoreSerializer
    permission_classes = [IsAuthenticated]
    filterset_fields = ["is_active", "issuer_sandbox"]
    lookup_value_regex = "[0-9a-fA-F-]{36}"

    @extend_schema(tags=["store"], responses={200: StoreProductOptionSerializer(many=True)})
    @action(detail=True, methods=["get"], url_path="options")
    def options(self, request, pk=None):
        store = self.get_object()
        qs = StoreProductOption.objects.filter(store=store).order_by("option_code")
        return Response(
            StoreProductOptionSerializer(qs, many=True).data, status=status.HTTP_200_OK
        )

    @extend_schema(tags=["store"])
    @action(detail=True, methods=["get"], url_path="balance")
    def balance(self, request, pk=None):
        store = self.get_object()
        try:
            data = build_fulfillment().verifier.get_balance_info(store.id)
        except VoucherServiceError as exc:
            return error_response(exc)
        return Response(data, status=status.HTTP_200_OK)

    @extend_schema(tags=["store"], request=None)
    @action(detail=True, methods=["post"], url_path="refresh-pricing")
    def refresh_pricing(self, request, pk=None):
        store = self.get_object()
        try:
            result = build_fulfillment().pricing.refresh_store_pricing(store.id)
        except VoucherServiceError as exc:
            return error_response(exc)
        return Response(result.as_dict(), status=status.HTTP_200_OK)

    @extend_schema(tags=["store"])
    @action(detail=True, methods=["get"], url_path="stock")
    def stock(self, request, pk=None):
        store = self.get_object()
        return Response(get_store_stock_info(store_id=store.id), status=status.HTTP_200_OK)
