"""Loan, installment and payment models."""

from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal
from typing import Any

from loan_tracker.dates import format_date, to_calendar_date
from loan_tracker.models.enums import (
    Frequency,
    InstallmentStatus,
    LoanStatus,
    PaymentMode,
)
from loan_tracker.money import ZERO, to_decimal


@dataclass(frozen=True)
class LoanTerms:
    """Terms a schedule is generated from.

    ``frequency`` and ``installment_count`` apply to installment mode only;
    ``term_days`` (days from start to the single due date) to single mode
    only. Validation happens in ``generate_schedule``.
    """

    principal: Decimal  # Amount lent
    amount_to_return: Decimal  # Fixed total, profit included
    start_date: date
    payment_mode: PaymentMode = PaymentMode.SINGLE
    frequency: Frequency | None = None
    installment_count: int | None = None
    term_days: int | None = None

    @property
    def expected_profit(self) -> Decimal:
        return self.amount_to_return - self.principal


@dataclass(frozen=True)
class ScheduledInstallment:
    """One installment of a generated schedule, before it is stored."""

    number: int
    due_date: date
    amount: Decimal

    @property
    def due_date_str(self) -> str:
        return format_date(self.due_date)


@dataclass
class Installment:
    """Stored loan installment (cuota).

    ``status`` is whatever was last persisted; the live status comes from
    ``resolve_installment_status``.
    """

    installment_id: str
    loan_id: str
    number: int  # 1, 2, 3, ... in due date order
    due_date: date
    amount: Decimal
    amount_paid: Decimal = ZERO
    status: InstallmentStatus = InstallmentStatus.PENDING
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @property
    def outstanding(self) -> Decimal:
        return max(ZERO, self.amount - self.amount_paid)

    @classmethod
    def from_schedule(
        cls,
        entry: ScheduledInstallment,
        loan_id: str,
        installment_id: str,
        created_at: datetime | None = None,
    ) -> "Installment":
        """Build a stored installment from a schedule entry."""
        return cls(
            installment_id=installment_id,
            loan_id=loan_id,
            number=entry.number,
            due_date=entry.due_date,
            amount=entry.amount,
            created_at=created_at,
        )

    @classmethod
    def from_record(cls, record: dict[str, Any]) -> "Installment":
        """Build an installment from a plain storage row.

        Dates may be ISO strings with a time part; amounts may be strings or
        numbers.
        """
        return cls(
            installment_id=str(record["id"] if "id" in record else record["installment_id"]),
            loan_id=str(record["loan_id"]),
            number=int(record["number"]),
            due_date=to_calendar_date(record["due_date"]),
            amount=to_decimal(record["amount"]),
            amount_paid=to_decimal(record.get("amount_paid", 0)),
            status=InstallmentStatus(record.get("status", InstallmentStatus.PENDING)),
        )


@dataclass
class Loan:
    """Loan aggregate: terms plus running repayment totals."""

    loan_id: str
    name: str  # Debtor
    terms: LoanTerms
    concept: str | None = None
    amount_returned: Decimal = ZERO
    status: LoanStatus = LoanStatus.ACTIVE
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @property
    def amount_lent(self) -> Decimal:
        return self.terms.principal

    @property
    def amount_to_return(self) -> Decimal:
        return self.terms.amount_to_return

    @property
    def pending_amount(self) -> Decimal:
        return self.terms.amount_to_return - self.amount_returned

    @property
    def expected_profit(self) -> Decimal:
        return self.terms.expected_profit


@dataclass
class Payment:
    """Append-only payment fact, kept as an audit trail."""

    payment_id: str
    loan_id: str
    amount: Decimal
    paid_at: datetime
    notes: str | None = None
