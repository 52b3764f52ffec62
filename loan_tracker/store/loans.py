"""In-memory loan record store with referential integrity."""

import logging
import threading
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from decimal import Decimal
from typing import Callable

from loan_tracker.dates import DateLike
from loan_tracker.exceptions import (
    EntityNotFoundError,
    InvalidEntityStateError,
    ReferentialIntegrityError,
    ValidationError,
)
from loan_tracker.models import (
    Installment,
    InstallmentStatus,
    Loan,
    LoanDisplayStatus,
    LoanStatus,
    LoanTerms,
    Payment,
)
from loan_tracker.money import Amount
from loan_tracker.payments import allocate_payment, validate_payment_amount
from loan_tracker.schedule import generate_schedule, normalize_terms
from loan_tracker.status import resolve_installment_status, resolve_loan_status

logger = logging.getLogger(__name__)

_EPOCH = datetime.min.replace(tzinfo=timezone.utc)


def _new_id() -> str:
    return str(uuid.uuid4())


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class LoanStore:
    """In-memory store for loans, their installments and payments.

    Multi-record writes (loan creation, payment recording, deletion) run
    under one lock and compute every change before mutating anything.
    """

    loans: dict[str, Loan] = field(default_factory=dict)
    installments: dict[str, Installment] = field(default_factory=dict)
    payments: dict[str, Payment] = field(default_factory=dict)

    id_factory: Callable[[], str] = field(default=_new_id, repr=False)
    clock: Callable[[], datetime] = field(default=_utc_now, repr=False)

    # Relationship indexes
    _loan_installments: dict[str, list[str]] = field(default_factory=dict)
    _loan_payments: dict[str, list[str]] = field(default_factory=dict)

    _lock: threading.RLock = field(default_factory=threading.RLock, repr=False, compare=False)

    def create_loan(
        self,
        name: str,
        terms: LoanTerms,
        concept: str | None = None,
        created_at: datetime | None = None,
    ) -> Loan:
        """Create a loan and its installment schedule.

        Nothing is stored if the terms are invalid.

        Raises
        ------
        ValidationError
            If the debtor name is empty or the terms are malformed.
        """
        if not name or not name.strip():
            raise ValidationError("Debtor name is required")

        terms = normalize_terms(terms)
        schedule = generate_schedule(terms)

        with self._lock:
            timestamp = created_at or self.clock()
            loan = Loan(
                loan_id=self.id_factory(),
                name=name.strip(),
                terms=terms,
                concept=concept.strip() if concept and concept.strip() else None,
                created_at=timestamp,
            )
            self.add_loan(loan)
            for entry in schedule:
                self.add_installment(
                    Installment.from_schedule(entry, loan.loan_id, self.id_factory(), created_at=timestamp)
                )

        logger.info(
            "Created loan for %s: %s to return in %d installment(s)",
            loan.name,
            terms.amount_to_return,
            len(schedule),
            extra={"loan_id": loan.loan_id},
        )
        return loan

    def add_loan(self, loan: Loan) -> None:
        """Add a loan record to the store."""
        with self._lock:
            if loan.loan_id in self.loans:
                raise InvalidEntityStateError(f"Loan {loan.loan_id} already exists")

            self.loans[loan.loan_id] = loan
            self._loan_installments[loan.loan_id] = []
            self._loan_payments[loan.loan_id] = []

    def add_installment(self, installment: Installment) -> None:
        """Add an installment record to the store."""
        with self._lock:
            if installment.loan_id not in self.loans:
                raise ReferentialIntegrityError(f"Loan {installment.loan_id} not found")

            siblings = self.get_loan_installments(installment.loan_id)
            if any(inst.number == installment.number for inst in siblings):
                raise InvalidEntityStateError(
                    f"Loan {installment.loan_id} already has installment {installment.number}"
                )

            if installment.created_at is None:
                installment.created_at = self.clock()
            self.installments[installment.installment_id] = installment
            self._loan_installments[installment.loan_id].append(installment.installment_id)

    def add_payment(self, payment: Payment) -> None:
        """Add a payment record to the store."""
        with self._lock:
            if payment.loan_id not in self.loans:
                raise ReferentialIntegrityError(f"Loan {payment.loan_id} not found")

            self.payments[payment.payment_id] = payment
            self._loan_payments[payment.loan_id].append(payment.payment_id)

    def record_payment(
        self,
        loan_id: str,
        amount: Amount,
        notes: str | None = None,
        paid_at: datetime | None = None,
    ) -> Payment:
        """Record a payment against a loan.

        The payment raises the loan's ``amount_returned`` and is spread over
        the installments, oldest unpaid first, so ``amount_returned`` stays
        equal to the sum of ``amount_paid``.

        Parameters
        ----------
        loan_id : str
            Loan the payment applies to.
        amount : Amount
            Payment amount, at most the pending balance.
        notes : str | None
            Optional free-text note.
        paid_at : datetime | None
            Payment time (defaults to now).

        Returns
        -------
        Payment
            The stored payment.

        Raises
        ------
        EntityNotFoundError
            If the loan does not exist.
        InvalidEntityStateError
            If the loan is already fully paid, or its installments cannot
            absorb the whole payment.
        ValidationError
            If the amount is not positive or exceeds the pending balance.
        """
        value = validate_payment_amount(amount)

        with self._lock:
            loan = self.get_loan(loan_id)
            pending = loan.pending_amount
            if pending <= 0:
                raise InvalidEntityStateError(f"Loan {loan_id} is already paid")
            if value > pending:
                raise ValidationError(f"Payment {value} exceeds pending amount {pending}")

            installments = self.get_loan_installments(loan_id)
            allocations = allocate_payment(installments, value)
            allocated = sum((a.applied for a in allocations), Decimal("0.00"))
            if allocated != value:
                raise InvalidEntityStateError(
                    f"Loan {loan_id} installments can only take {allocated} of payment {value}"
                )

            timestamp = paid_at or self.clock()
            payment = Payment(
                payment_id=self.id_factory(),
                loan_id=loan_id,
                amount=value,
                paid_at=timestamp,
                notes=notes.strip() if notes and notes.strip() else None,
            )

            by_number = {inst.number: inst for inst in installments}
            for allocation in allocations:
                inst = by_number[allocation.installment_number]
                inst.amount_paid = allocation.amount_paid
                inst.status = allocation.status
                inst.updated_at = timestamp

            loan.amount_returned += value
            loan.status = (
                LoanStatus.PAID if loan.amount_returned >= loan.amount_to_return else LoanStatus.PARTIAL
            )
            loan.updated_at = timestamp
            self.add_payment(payment)

        logger.info(
            "Recorded payment of %s across %d installment(s); %s pending",
            value,
            len(allocations),
            loan.pending_amount,
            extra={"loan_id": loan_id, "payment_id": payment.payment_id},
        )
        return payment

    def delete_loan(self, loan_id: str) -> None:
        """Delete a loan together with its installments and payments."""
        with self._lock:
            self.get_loan(loan_id)
            installment_ids = self._loan_installments.pop(loan_id, [])
            payment_ids = self._loan_payments.pop(loan_id, [])
            for installment_id in installment_ids:
                del self.installments[installment_id]
            for payment_id in payment_ids:
                del self.payments[payment_id]
            del self.loans[loan_id]

        logger.info(
            "Deleted loan with %d installment(s) and %d payment(s)",
            len(installment_ids),
            len(payment_ids),
            extra={"loan_id": loan_id},
        )

    # Query methods: hold the lock and return list snapshots
    def get_loan(self, loan_id: str) -> Loan:
        """Get a loan by ID."""
        with self._lock:
            try:
                return self.loans[loan_id]
            except KeyError:
                raise EntityNotFoundError(f"Loan {loan_id} not found") from None

    def list_loans(self) -> list[Loan]:
        """All loans, most recently created first."""
        with self._lock:
            loans = list(self.loans.values())
        return sorted(loans, key=lambda loan: loan.created_at or _EPOCH, reverse=True)

    def get_loan_installments(self, loan_id: str) -> list[Installment]:
        """Get all installments for a loan, ordered by number."""
        with self._lock:
            installments = [self.installments[iid] for iid in self._loan_installments.get(loan_id, [])]
        return sorted(installments, key=lambda inst: inst.number)

    def get_loan_payments(self, loan_id: str) -> list[Payment]:
        """Get all payments for a loan, newest first."""
        with self._lock:
            payments = [self.payments[pid] for pid in self._loan_payments.get(loan_id, [])]
        return sorted(payments, key=lambda p: p.paid_at, reverse=True)

    def loan_status(self, loan_id: str, today: DateLike) -> LoanDisplayStatus:
        """Live display status of a loan."""
        with self._lock:
            return self._resolve(self.get_loan(loan_id), today)

    def loans_with_status(self, today: DateLike) -> list[tuple[Loan, LoanDisplayStatus]]:
        """Every loan with its live status, most recently created first.

        Loans and statuses are read in one pass under the lock, so a loan
        deleted mid-render is either fully listed or absent.
        """
        with self._lock:
            return [(loan, self._resolve(loan, today)) for loan in self.list_loans()]

    def installment_statuses(
        self, loan_id: str, today: DateLike
    ) -> list[tuple[Installment, InstallmentStatus]]:
        """Installments of a loan paired with their live status."""
        with self._lock:
            self.get_loan(loan_id)
            return [
                (inst, resolve_installment_status(inst, today))
                for inst in self.get_loan_installments(loan_id)
            ]

    def all_installment_statuses(
        self, today: DateLike
    ) -> list[tuple[Loan, Installment, InstallmentStatus]]:
        """Every installment with its loan and live status, in one snapshot."""
        with self._lock:
            return [
                (loan, inst, resolve_installment_status(inst, today))
                for loan in self.list_loans()
                for inst in self.get_loan_installments(loan.loan_id)
            ]

    def total_paid(self, loan_id: str) -> Decimal:
        """Sum of payments recorded against a loan."""
        return sum((p.amount for p in self.get_loan_payments(loan_id)), Decimal("0.00"))

    def summary(self) -> dict[str, int]:
        """Return summary counts of all entities."""
        with self._lock:
            return {
                "loans": len(self.loans),
                "installments": len(self.installments),
                "payments": len(self.payments),
            }

    def _resolve(self, loan: Loan, today: DateLike) -> LoanDisplayStatus:
        return resolve_loan_status(
            loan.status,
            self.get_loan_installments(loan.loan_id),
            loan.amount_returned,
            loan.amount_to_return,
            today,
        )
