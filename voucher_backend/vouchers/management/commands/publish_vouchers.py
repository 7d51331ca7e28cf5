# vouchers/management/commands/publish_vouchers.py

from __future__ import annotations

from django.core.management.base import BaseCommand, CommandError

from vouchers.services.exceptions import VoucherServiceError
from vouchers.services.wiring import build_fulfillment


class Command(BaseCommand):
    help = "Attach generated but unpublished voucher codes of an order to the storefront."

    def add_arguments(self, parser):
        parser.add_argument("order_id", help="Purchase order UUID")

    def handle(self, *args, **options):
        try:
            result = build_fulfillment().coordinator.publish(options["order_id"])
        except VoucherServiceError as exc:
            raise CommandError(str(exc)) from exc

        self.stdout.write(
            f"Published {result.codes_published} code(s) to "
            f"{len(result.products_published)} product(s)."
        )
        if result.skipped_units:
            self.stdout.write(
                self.style.WARNING(f"{result.skipped_units} voucher(s) had no publishable code.")
            )
        for product_id, err in result.errors.items():
            self.stderr.write(self.style.ERROR(f"Product {product_id}: {err}"))
