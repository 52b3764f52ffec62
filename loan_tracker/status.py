"""Live status resolution for loans and installments.

Stored status fields go stale as days pass, so status is recomputed from
amounts and due dates on every read. The only stored value trusted is a
loan already marked ``paid``.

Dates are compared as calendar dates against a ``today`` supplied by the
caller (see ``loan_tracker.dates.DateProvider``); nothing here reads a
clock.
"""

from datetime import date
from decimal import Decimal
from typing import Iterable, Protocol

from loan_tracker.dates import DateLike, to_calendar_date
from loan_tracker.models import InstallmentStatus, LoanDisplayStatus, LoanStatus
from loan_tracker.money import Amount, to_decimal


class InstallmentFacts(Protocol):
    """Anything carrying an installment's due date and amounts."""

    due_date: DateLike
    amount: Amount
    amount_paid: Amount


def resolve_loan_status(
    stored_status: str | LoanStatus | None,
    installments: Iterable[InstallmentFacts],
    amount_returned: Amount,
    amount_to_return: Amount,
    today: DateLike,
) -> LoanDisplayStatus:
    """Derive a loan's display status.

    Rules are checked in order and the first match wins:

    1. stored status ``paid`` or everything returned -> ``PAID``
    2. any installment due before today and not fully paid -> ``OVERDUE``
    3. any installment due before today and partly paid -> ``PARTIAL``
    4. otherwise -> ``ON_TIME``

    Rule 3 only looks at installments already past due; a partial payment
    on a future installment leaves the loan on time.

    Parameters
    ----------
    stored_status : str | LoanStatus | None
        Persisted status, used only as the "already paid" shortcut.
    installments : Iterable[InstallmentFacts]
        The loan's installments.
    amount_returned : Amount
        Total repaid so far.
    amount_to_return : Amount
        Total owed.
    today : DateLike
        Current calendar date in the reference time zone.

    Returns
    -------
    LoanDisplayStatus
        The live status.

    Raises
    ------
    InvalidInputError
        If a due date or amount cannot be parsed.
    """
    if stored_status == LoanStatus.PAID or to_decimal(amount_returned) >= to_decimal(amount_to_return):
        return LoanDisplayStatus.PAID

    current = to_calendar_date(today)
    past_due = [
        (amount, paid)
        for due, amount, paid in (_facts(inst) for inst in installments)
        if due < current
    ]

    if any(paid < amount for amount, paid in past_due):
        return LoanDisplayStatus.OVERDUE

    # Subsumed by the overdue check above.
    if any(0 < paid < amount for amount, paid in past_due):
        return LoanDisplayStatus.PARTIAL

    return LoanDisplayStatus.ON_TIME


def resolve_installment_status(installment: InstallmentFacts, today: DateLike) -> InstallmentStatus:
    """Derive one installment's display status.

    Payment facts win over the due date: a past-due installment with any
    payment on it is ``PARTIAL``, not ``OVERDUE``.
    """
    due, amount, paid = _facts(installment)

    if paid >= amount:
        return InstallmentStatus.PAID
    if paid > 0:
        return InstallmentStatus.PARTIAL
    if due < to_calendar_date(today):
        return InstallmentStatus.OVERDUE
    return InstallmentStatus.PENDING


def is_settled(installment: InstallmentFacts) -> bool:
    """True when the installment is fully paid. The due date is not read."""
    return to_decimal(installment.amount_paid) >= to_decimal(installment.amount)


def _facts(installment: InstallmentFacts) -> tuple[date, Decimal, Decimal]:
    return (
        to_calendar_date(installment.due_date),
        to_decimal(installment.amount),
        to_decimal(installment.amount_paid),
    )
