# vouchers/management/commands/process_purchase_order.py

from __future__ import annotations

from django.core.management.base import BaseCommand, CommandError

from vouchers.domain.status import OrderStatus
from vouchers.services.exceptions import VoucherServiceError
from vouchers.services.wiring import build_fulfillment


class Command(BaseCommand):
    help = "Verify balance, issue every pending voucher of a purchase order and publish the codes."

    def add_arguments(self, parser):
        parser.add_argument("order_id", help="Purchase order UUID")

    def handle(self, *args, **options):
        order_id = options["order_id"]

        try:
            result = build_fulfillment().coordinator.process_order(order_id)
        except VoucherServiceError as exc:
            raise CommandError(f"Processing failed: {exc}") from exc

        order = result.order
        self.stdout.write(
            f"Order {order.id}: {order.status} "
            f"(generated={order.total_vouchers_generated}, failed={order.total_vouchers_failed})"
        )

        if result.balance_check is not None:
            self.stdout.write(
                f"Balance {result.balance_check.balance}, required {result.balance_check.total_cost}"
            )
            for note in result.balance_check.anomalies:
                self.stdout.write(self.style.WARNING(note))

        if result.publish is not None:
            self.stdout.write(f"Codes published: {result.publish.codes_published}")
            for product_id, err in result.publish.errors.items():
                self.stdout.write(self.style.WARNING(f"Product {product_id}: {err}"))

        if order.status == OrderStatus.COMPLETED:
            self.stdout.write(self.style.SUCCESS("Done."))
        elif order.error_message:
            self.stdout.write(self.style.ERROR(order.error_message))
