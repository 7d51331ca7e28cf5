# vouchers/apps.py

"""
VOUCHERS APP CONFIG

Voucher purchase fulfillment:
- purchase orders and their line items
- one voucher unit per ordered quantity
- issuer issuance + storefront code publishing
"""

from django.apps import AppConfig


class VouchersConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "vouchers"
    verbose_name = "Voucher Purchases"
