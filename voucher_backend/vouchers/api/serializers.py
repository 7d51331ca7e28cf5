# vouchers/api/serializers.py

from rest_framework import serializers

from vouchers.models import PurchaseOrder, PurchaseOrderItem, VoucherUnit


class PurchaseOrderLineSerializer(serializers.Serializer):
    option_code = serializers.CharField(max_length=100)
    quantity = serializers.IntegerField(min_value=1)


class PurchaseOrderCreateSerializer(serializers.Serializer):
    store_id = serializers.UUIDField()
    items = PurchaseOrderLineSerializer(many=True, allow_empty=False)


class PurchaseOrderItemSerializer(serializers.ModelSerializer):
    class Meta:
        model = PurchaseOrderItem
        fields = [
            "id",
            "product_option_code",
            "quantity_ordered",
            "unit_face_value",
            "unit_wholesale_price",
            "total_wholesale_cost",
        ]


class PurchaseOrderSerializer(serializers.ModelSerializer):
    store_name = serializers.CharField(source="store.name", read_only=True)
    items = PurchaseOrderItemSerializer(many=True, read_only=True)
    voucher_counts = serializers.SerializerMethodField()

    class Meta:
        model = PurchaseOrder
        fields = [
            "id",
            "store",
            "store_name",
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
            "updated_at",
            "items",
            "voucher_counts",
        ]
        read_only_fields = fields

    def get_voucher_counts(self, obj):
        counts = {}
        for unit in obj.voucher_units.all():
            counts[unit.status] = counts.get(unit.status, 0) + 1
        counts["published"] = sum(1 for u in obj.voucher_units.all() if u.storefront_synced)
        return counts


class VoucherUnitSerializer(serializers.ModelSerializer):
    option_code = serializers.CharField(source="item.product_option_code", read_only=True)

    class Meta:
        model = VoucherUnit
        fields = [
            "id",
            "external_id",
            "option_code",
            "status",
            "serial_number",
            "transaction_id",
            "provider_transaction_id",
            "reference",
            "redeem_url",
            "response_amount",
            "amount_wholesale",
            "error_text",
            "retry_count",
            "response_time_ms",
            "request_sent_at",
            "response_received_at",
            "storefront_synced",
            "storefront_synced_at",
        ]
        read_only_fields = fields
