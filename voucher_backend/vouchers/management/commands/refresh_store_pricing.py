# vouchers/management/commands/refresh_store_pricing.py

from __future__ import annotations

from django.core.management.base import BaseCommand, CommandError

from vouchers.services.exceptions import VoucherServiceError
from vouchers.services.wiring import build_fulfillment


class Command(BaseCommand):
    help = "Fetch live issuer pricing for every catalog option of a store."

    def add_arguments(self, parser):
        parser.add_argument("store_id", help="Store UUID")

    def handle(self, *args, **options):
        try:
            result = build_fulfillment().pricing.refresh_store_pricing(options["store_id"])
        except VoucherServiceError as exc:
            raise CommandError(str(exc)) from exc

        self.stdout.write(
            self.style.SUCCESS(f"Updated {result.updated_count}/{result.total} option(s).")
        )
        if result.failed_codes:
            self.stdout.write(
                self.style.WARNING("Failed: " + ", ".join(result.failed_codes))
            )
