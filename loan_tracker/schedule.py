"""Installment schedule generation.

A schedule is a pure function of ``LoanTerms``: no clock, no storage, no
randomness. Amounts are rounded once per installment and the last
installment absorbs the rounding residual, so the schedule always sums to
``amount_to_return`` to the cent.
"""

import logging
from dataclasses import replace
from datetime import date, timedelta
from decimal import ROUND_HALF_UP, Decimal

from loan_tracker.dates import to_calendar_date
from loan_tracker.exceptions import InvalidInputError, ValidationError
from loan_tracker.models import Frequency, LoanTerms, PaymentMode, ScheduledInstallment
from loan_tracker.money import CENT, Amount, is_whole_cents, to_decimal

logger = logging.getLogger(__name__)

# Biweekly is a fixed 15-day step, not half a calendar month
STEP_DAYS = {
    Frequency.DAILY: 1,
    Frequency.WEEKLY: 7,
    Frequency.BIWEEKLY: 15,
}


def generate_schedule(terms: LoanTerms) -> list[ScheduledInstallment]:
    """Generate the installment schedule for a loan.

    Parameters
    ----------
    terms : LoanTerms
        Loan terms. In single mode ``term_days`` sets the due date; in
        installment mode ``frequency`` and ``installment_count`` do.

    Returns
    -------
    list[ScheduledInstallment]
        Installments numbered from 1, in due date order.

    Raises
    ------
    ValidationError
        If the terms are malformed.
    """
    terms = normalize_terms(terms)
    total = terms.amount_to_return

    if terms.payment_mode == PaymentMode.SINGLE:
        schedule = [
            ScheduledInstallment(
                number=1,
                due_date=terms.start_date + timedelta(days=terms.term_days),
                amount=total,
            )
        ]
    else:
        schedule = _split_installments(
            total, terms.start_date, terms.frequency, terms.installment_count
        )

    logger.debug(
        "Generated %d installment(s) totalling %s from %s",
        len(schedule),
        total,
        terms.start_date.isoformat(),
    )
    return schedule


def normalize_terms(terms: LoanTerms) -> LoanTerms:
    """Validate terms and return them with Decimal amounts, a plain date
    and enum members. Fields that do not apply to the payment mode are
    cleared.

    Raises
    ------
    ValidationError
        If the terms are malformed.
    """
    principal = _amount(terms.principal, "Principal")
    total = _amount(terms.amount_to_return, "Amount to return")
    if total < principal:
        raise ValidationError(
            f"Amount to return ({total}) must be at least the principal ({principal})"
        )

    try:
        start = to_calendar_date(terms.start_date)
    except InvalidInputError as e:
        raise ValidationError(str(e)) from e

    mode = _coerce(PaymentMode, terms.payment_mode, "payment mode")
    if mode == PaymentMode.SINGLE:
        return replace(
            terms,
            principal=principal,
            amount_to_return=total,
            start_date=start,
            payment_mode=mode,
            frequency=None,
            installment_count=None,
            term_days=_positive_int(terms.term_days, "term_days"),
        )

    return replace(
        terms,
        principal=principal,
        amount_to_return=total,
        start_date=start,
        payment_mode=mode,
        frequency=_coerce(Frequency, terms.frequency, "frequency"),
        installment_count=_positive_int(terms.installment_count, "installment_count"),
        term_days=None,
    )


def due_date_for(start: date, frequency: Frequency, number: int) -> date:
    """Due date of installment ``number`` counted from the start date."""
    return start + timedelta(days=STEP_DAYS[frequency] * number)


def _split_installments(
    total: Decimal,
    start: date,
    frequency: Frequency,
    count: int,
) -> list[ScheduledInstallment]:
    share = (total / count).quantize(CENT, rounding=ROUND_HALF_UP)
    last = total - share * (count - 1)
    if last <= 0:
        raise ValidationError(
            f"Amount {total} is too small to split into {count} installments"
        )

    return [
        ScheduledInstallment(
            number=i,
            due_date=due_date_for(start, frequency, i),
            amount=last if i == count else share,
        )
        for i in range(1, count + 1)
    ]


def _amount(value: Amount, name: str) -> Decimal:
    try:
        amount = to_decimal(value)
    except InvalidInputError as e:
        raise ValidationError(str(e)) from e

    if amount <= 0:
        raise ValidationError(f"{name} must be positive, got {amount}")
    if not is_whole_cents(amount):
        raise ValidationError(f"{name} must have at most 2 decimals, got {amount}")
    return amount.quantize(CENT)


def _positive_int(value: int | None, name: str) -> int:
    if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
        raise ValidationError(f"{name} must be a positive integer, got {value!r}")
    return value


def _coerce(enum_type, value, name: str):
    try:
        return enum_type(value)
    except ValueError as e:
        raise ValidationError(f"Unknown {name}: {value!r}") from e
