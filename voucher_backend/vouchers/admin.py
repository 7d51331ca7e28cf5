# vouchers/admin.py

from django.contrib import admin

from vouchers.models import PurchaseOrder, PurchaseOrderItem, VoucherUnit


# ======================================================
# PURCHASE ORDER ADMIN
# ======================================================


class PurchaseOrderItemInline(admin.TabularInline):
    model = PurchaseOrderItem
    extra = 0
    readonly_fields = ("unit_wholesale_price", "total_wholesale_cost")


@admin.register(PurchaseOrder)
class PurchaseOrderAdmin(admin.ModelAdmin):
    list_display = (
        "id",
        "store",
        "status",
        "total_wholesale_cost",
        "total_vouchers_generated",
        "total_vouchers_failed",
        "created_at",
    )
    readonly_fields = (
        "status",
        "total_wholesale_cost",
        "balance_before",
        "balance_after",
        "total_vouchers_generated",
        "total_vouchers_failed",
        "error_message",
        "success_message",
        "processing_started_at",
        "processing_completed_at",
        "created_at",
    )
    list_filter = ("status", "store")
    inlines = [PurchaseOrderItemInline]


# ======================================================
# VOUCHER UNIT ADMIN
# ======================================================


@admin.register(VoucherUnit)
class VoucherUnitAdmin(admin.ModelAdmin):
    list_display = (
        "external_id",
        "purchase_order",
        "status",
        "retry_count",
        "storefront_synced",
        "response_time_ms",
    )
    readonly_fields = (
        "external_id",
        "issuer_response",
        "operation_succeeded",
        "serial_number",
        "transaction_id",
        "provider_transaction_id",
        "reference",
        "redeem_url",
        "response_amount",
        "amount_wholesale",
        "request_sent_at",
        "response_received_at",
        "response_time_ms",
    )
    search_fields = ("external_id", "serial_number", "transaction_id")
    list_filter = ("status", "storefront_synced")
