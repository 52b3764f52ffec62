"""Portfolio dashboard figures and loan listings.

Every figure that depends on status uses the resolved status, never the
stored one, so a loan that slipped past a due date since its last update
is counted as overdue.
"""

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal

from loan_tracker.dates import DateLike, to_calendar_date
from loan_tracker.exceptions import ValidationError
from loan_tracker.models import Installment, InstallmentStatus, Loan, LoanDisplayStatus
from loan_tracker.money import ZERO
from loan_tracker.store import LoanStore

SORT_OPTIONS = ("recent", "pending")

_UNPAID = (InstallmentStatus.PENDING, InstallmentStatus.PARTIAL)


@dataclass
class PortfolioSummary:
    """Dashboard KPIs for a set of loans."""

    total_pending: Decimal = ZERO  # Still to be collected
    capital_outstanding: Decimal = ZERO  # Lent money not yet recovered
    expected_profit: Decimal = ZERO
    overdue_total: Decimal = ZERO
    overdue_count: int = 0
    loan_count: int = 0
    status_counts: dict[LoanDisplayStatus, int] = field(
        default_factory=lambda: {status: 0 for status in LoanDisplayStatus}
    )


@dataclass(frozen=True)
class DueInstallment:
    """An unpaid installment with the debtor it belongs to."""

    loan_id: str
    debtor: str
    installment: Installment
    status: InstallmentStatus

    @property
    def outstanding(self) -> Decimal:
        return self.installment.outstanding


def summarize_portfolio(store: LoanStore, today: DateLike) -> PortfolioSummary:
    """Compute dashboard KPIs over every loan in the store.

    Parameters
    ----------
    store : LoanStore
        Loan records.
    today : DateLike
        Current calendar date in the reference time zone.

    Returns
    -------
    PortfolioSummary
        Aggregated figures.
    """
    summary = PortfolioSummary()

    for loan, status in store.loans_with_status(today):
        pending = loan.pending_amount

        summary.loan_count += 1
        summary.total_pending += pending
        summary.capital_outstanding += max(ZERO, loan.amount_lent - loan.amount_returned)
        summary.expected_profit += loan.expected_profit
        summary.status_counts[status] += 1

        if status == LoanDisplayStatus.OVERDUE:
            summary.overdue_count += 1
            summary.overdue_total += pending

    return summary


def installments_due_on(store: LoanStore, day: DateLike) -> list[DueInstallment]:
    """Unpaid installments due exactly on ``day``, ordered by debtor."""
    target = to_calendar_date(day)
    due = [
        item
        for item in _unpaid_installments(store, target)
        if item.installment.due_date == target
    ]
    return sorted(due, key=lambda item: (item.debtor.lower(), item.installment.number))


def upcoming_installments(
    store: LoanStore,
    today: DateLike,
    limit: int | None = 20,
) -> list[DueInstallment]:
    """Unpaid installments due today or later, soonest first."""
    current = to_calendar_date(today)
    upcoming = sorted(
        (item for item in _unpaid_installments(store, current) if item.installment.due_date >= current),
        key=lambda item: (item.installment.due_date, item.debtor.lower(), item.installment.number),
    )
    return upcoming[:limit] if limit is not None else upcoming


def search_loans(
    store: LoanStore,
    today: DateLike,
    query: str | None = None,
    status: LoanDisplayStatus | str | None = None,
    sort: str = "recent",
) -> list[tuple[Loan, LoanDisplayStatus]]:
    """Search, filter and sort loans for the portfolio list.

    Parameters
    ----------
    store : LoanStore
        Loan records.
    today : DateLike
        Current calendar date.
    query : str | None
        Case-insensitive match on debtor name or concept.
    status : LoanDisplayStatus | str | None
        Keep only loans with this resolved status.
    sort : str
        ``recent`` (newest first) or ``pending`` (largest balance first).

    Returns
    -------
    list[tuple[Loan, LoanDisplayStatus]]
        Matching loans with their resolved status.
    """
    if sort not in SORT_OPTIONS:
        raise ValidationError(f"Unknown sort option: {sort!r}")
    if status is not None:
        try:
            status = LoanDisplayStatus(status)
        except ValueError as e:
            raise ValidationError(f"Unknown status filter: {status!r}") from e

    needle = query.strip().lower() if query else ""
    results = []
    for loan, resolved in store.loans_with_status(today):
        if needle and needle not in loan.name.lower() and needle not in (loan.concept or "").lower():
            continue
        if status is not None and resolved != status:
            continue
        results.append((loan, resolved))

    if sort == "pending":
        results.sort(key=lambda pair: pair[0].pending_amount, reverse=True)
    return results


def _unpaid_installments(store: LoanStore, today: date) -> list[DueInstallment]:
    return [
        DueInstallment(loan.loan_id, loan.name, inst, status)
        for loan, inst, status in store.all_installment_statuses(today)
        if status in _UNPAID
    ]
