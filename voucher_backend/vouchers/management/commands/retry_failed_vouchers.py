# vouchers/management/commands/retry_failed_vouchers.py

from __future__ import annotations

from django.core.management.base import BaseCommand, CommandError

from vouchers.services.exceptions import VoucherServiceError
from vouchers.services.wiring import build_fulfillment


class Command(BaseCommand):
    help = "Re-issue FAILED vouchers of a purchase order that are still under the retry cap."

    def add_arguments(self, parser):
        parser.add_argument("order_id", help="Purchase order UUID")

    def handle(self, *args, **options):
        try:
            result = build_fulfillment().coordinator.retry_failed_units(options["order_id"])
        except VoucherServiceError as exc:
            raise CommandError(str(exc)) from exc

        if not result.attempted:
            self.stdout.write(self.style.WARNING("No retryable vouchers."))
            return

        style = self.style.SUCCESS if not result.failed else self.style.WARNING
        self.stdout.write(
            style(
                f"Retried {result.attempted}: {result.generated} generated, "
                f"{result.failed} failed. Order is now {result.status}."
            )
        )
