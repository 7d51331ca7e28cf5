# vouchers/domain/status.py

"""
STATUS VOCABULARY

Single source of truth for purchase order and voucher unit statuses.
Both the ORM models and the plain records import these constants.
"""


class OrderStatus:
    DRAFT = "DRAFT"
    PENDING = "PENDING"
    PROCESSING = "PROCESSING"
    COMPLETED = "COMPLETED"
    PARTIALLY_COMPLETED = "PARTIALLY_COMPLETED"
    FAILED = "FAILED"
    CANCELLED = "CANCELLED"

    CHOICES = [
        (DRAFT, "Draft"),
        (PENDING, "Pending"),
        (PROCESSING, "Processing"),
        (COMPLETED, "Completed"),
        (PARTIALLY_COMPLETED, "Partially completed"),
        (FAILED, "Failed"),
        (CANCELLED, "Cancelled"),
    ]

    RUN_OUTCOMES = {COMPLETED, PARTIALLY_COMPLETED, FAILED}


class VoucherStatus:
    PENDING = "PENDING"
    PROCESSING = "PROCESSING"
    GENERATED = "GENERATED"
    FAILED = "FAILED"

    CHOICES = [
        (PENDING, "Pending"),
        (PROCESSING, "Processing"),
        (GENERATED, "Generated"),
        (FAILED, "Failed"),
    ]
