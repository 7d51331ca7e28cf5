from rest_framework import serializers

from store.models import Store, StoreProductOption


class StoreSerializer(serializers.ModelSerializer):
    """
    Merchant store.
    Secrets are write-only; reads only say whether they are configured.
    """

    has_issuer_credentials = serializers.SerializerMethodField()
    has_storefront_token = serializers.SerializerMethodField()

    class Meta:
        model = Store
        fields = [
            "id",
            "name",
            "code",
            "storefront_merchant_id",
            "storefront_access_token",
            "issuer_username",
            "issuer_password",
            "issuer_terminal_key",
            "issuer_sandbox",
            "has_issuer_credentials",
            "has_storefront_token",
            "is_active",
            "created_at",
            "updated_at",
        ]
        read_only_fields = [
            "id",
            "created_at",
            "updated_at",
        ]
        extra_kwargs = {
            "storefront_access_token": {"write_only": True},
            "issuer_password": {"write_only": True},
            "issuer_terminal_key": {"write_only": True},
        }

    def get_has_issuer_credentials(self, obj):
        return all(
            (v or "").strip()
            for v in (obj.issuer_username, obj.issuer_password, obj.issuer_terminal_key)
        )

    def get_has_storefront_token(self, obj):
        return bool((obj.storefront_access_token or "").strip())


class StoreProductOptionSerializer(serializers.ModelSerializer):
    class Meta:
        model = StoreProductOption
        fields = [
            "id",
            "store",
            "option_code",
            "option_name",
            "storefront_product_id",
            "stock_quantity",
            "last_stock_update",
            "wholesale_price",
            "min_face_value",
            "max_face_value",
            "store_currency_price",
            "custom_price",
            "markup_percentage",
            "last_price_update",
            "is_active",
        ]
        read_only_fields = [
            "id",
            "stock_quantity",
            "last_stock_update",
            "wholesale_price",
            "min_face_value",
            "max_face_value",
            "markup_percentage",
            "last_price_update",
        ]
