# store/admin.py

from django.contrib import admin

from store.models import Store, StoreProductOption


@admin.register(Store)
class StoreAdmin(admin.ModelAdmin):
    list_display = ("name", "code", "issuer_sandbox", "is_active", "created_at")
    list_filter = ("is_active", "issuer_sandbox")
    search_fields = ("name", "code", "storefront_merchant_id")


@admin.register(StoreProductOption)
class StoreProductOptionAdmin(admin.ModelAdmin):
    list_display = (
        "option_code",
        "store",
        "storefront_product_id",
        "stock_quantity",
        "wholesale_price",
        "last_price_update",
    )
    readonly_fields = ("stock_quantity", "last_stock_update", "last_price_update")
    list_filter = ("store", "is_active")
    search_fields = ("option_code", "option_name", "storefront_product_id")
