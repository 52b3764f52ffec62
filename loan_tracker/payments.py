"""Distribution of a payment across a loan's installments."""

from dataclasses import dataclass
from decimal import Decimal
from typing import Iterable

from loan_tracker.exceptions import InvalidInputError, ValidationError
from loan_tracker.models import Installment, InstallmentStatus
from loan_tracker.money import Amount, is_whole_cents, to_decimal
from loan_tracker.status import is_settled


@dataclass(frozen=True)
class PaymentAllocation:
    """Share of a payment applied to one installment."""

    installment_number: int
    applied: Decimal
    amount_paid: Decimal  # Installment total after this payment
    status: InstallmentStatus


def validate_payment_amount(amount: Amount) -> Decimal:
    """Return the payment amount as Decimal, or raise ``ValidationError``."""
    try:
        value = to_decimal(amount)
    except InvalidInputError as e:
        raise ValidationError(str(e)) from e

    if value <= 0:
        raise ValidationError(f"Payment amount must be positive, got {value}")
    if not is_whole_cents(value):
        raise ValidationError(f"Payment amount must have at most 2 decimals, got {value}")
    return value


def allocate_payment(
    installments: Iterable[Installment],
    amount: Amount,
) -> list[PaymentAllocation]:
    """Apply a payment to installments, oldest unpaid first.

    Fully paid installments are skipped based on their amounts, not their
    stored status. Any part of the payment left after the last installment
    is not allocated; callers reject overpayment beforehand.

    Parameters
    ----------
    installments : Iterable[Installment]
        The loan's installments, in any order.
    amount : Amount
        Payment amount.

    Returns
    -------
    list[PaymentAllocation]
        One entry per installment touched, in installment order.
    """
    remaining = validate_payment_amount(amount)
    allocations: list[PaymentAllocation] = []

    for inst in sorted(installments, key=lambda i: i.number):
        if remaining <= 0:
            break
        if is_settled(inst):
            continue

        due = to_decimal(inst.amount)
        paid = to_decimal(inst.amount_paid)
        applied = min(remaining, due - paid)
        new_paid = paid + applied
        allocations.append(
            PaymentAllocation(
                installment_number=inst.number,
                applied=applied,
                amount_paid=new_paid,
                status=InstallmentStatus.PAID if new_paid >= due else InstallmentStatus.PARTIAL,
            )
        )
        remaining -= applied

    return allocations
