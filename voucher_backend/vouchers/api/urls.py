# vouchers/api/urls.py

from django.urls import include, path
from rest_framework.routers import DefaultRouter

from vouchers.api.views import PurchaseOrderViewSet

router = DefaultRouter()
router.register(r"purchase-orders", PurchaseOrderViewSet, basename="purchase-orders")

urlpatterns = [
    path("", include(router.urls)),
]
