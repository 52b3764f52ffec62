"""Tests for the in-memory loan store."""

import threading
from datetime import date, datetime, timedelta, timezone
from decimal import Decimal

import pytest

from loan_tracker.exceptions import (
    EntityNotFoundError,
    InvalidEntityStateError,
    LoanTrackerError,
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
from loan_tracker.portfolio import search_loans, summarize_portfolio, upcoming_installments
from loan_tracker.store import LoanStore


class TestCreateLoan:
    """Tests for loan creation."""

    def test_creates_loan_and_schedule(self, store: LoanStore, weekly_terms: LoanTerms, fixed_now: datetime) -> None:
        loan = store.create_loan("  Ana Torres ", weekly_terms, concept=" Mercadería ")

        assert loan.loan_id == "id-0001"
        assert loan.name == "Ana Torres"
        assert loan.concept == "Mercadería"
        assert loan.status == LoanStatus.ACTIVE
        assert loan.amount_returned == Decimal("0")
        assert loan.pending_amount == Decimal("100.00")
        assert loan.created_at == fixed_now

        installments = store.get_loan_installments(loan.loan_id)
        assert [i.number for i in installments] == [1, 2, 3]
        assert [i.amount for i in installments] == [
            Decimal("33.33"),
            Decimal("33.33"),
            Decimal("33.34"),
        ]
        assert all(i.status == InstallmentStatus.PENDING for i in installments)
        assert all(i.amount_paid == 0 for i in installments)
        assert store.summary() == {"loans": 1, "installments": 3, "payments": 0}

    def test_blank_concept_becomes_none(self, store: LoanStore, single_terms: LoanTerms) -> None:
        loan = store.create_loan("Bruno", single_terms, concept="   ")
        assert loan.concept is None

    def test_explicit_created_at(self, store: LoanStore, single_terms: LoanTerms) -> None:
        created = datetime(2024, 1, 1, tzinfo=timezone.utc)
        loan = store.create_loan("Bruno", single_terms, created_at=created)

        assert loan.created_at == created
        assert store.get_loan_installments(loan.loan_id)[0].created_at == created

    @pytest.mark.parametrize("name", ["", "   "])
    def test_requires_name(self, store: LoanStore, single_terms: LoanTerms, name: str) -> None:
        with pytest.raises(ValidationError, match="name"):
            store.create_loan(name, single_terms)
        assert store.summary() == {"loans": 0, "installments": 0, "payments": 0}

    def test_invalid_terms_store_nothing(self, store: LoanStore) -> None:
        terms = LoanTerms(
            principal=Decimal("100"),
            amount_to_return=Decimal("120"),
            start_date=date(2024, 6, 1),
            payment_mode="installments",
            frequency="weekly",
            installment_count=0,
        )

        with pytest.raises(ValidationError):
            store.create_loan("Ana", terms)
        assert store.summary() == {"loans": 0, "installments": 0, "payments": 0}


class TestIntegrity:
    """Tests for referential integrity checks."""

    def test_installment_for_unknown_loan(self, store: LoanStore) -> None:
        inst = Installment("inst-1", "missing", 1, date(2024, 6, 8), Decimal("10"))

        with pytest.raises(ReferentialIntegrityError):
            store.add_installment(inst)

    def test_payment_for_unknown_loan(self, store: LoanStore, fixed_now: datetime) -> None:
        with pytest.raises(ReferentialIntegrityError):
            store.add_payment(Payment("pay-1", "missing", Decimal("10"), fixed_now))

    def test_duplicate_installment_number(self, store: LoanStore, weekly_terms: LoanTerms) -> None:
        loan = store.create_loan("Ana", weekly_terms)
        duplicate = Installment("inst-x", loan.loan_id, 2, date(2024, 6, 15), Decimal("10"))

        with pytest.raises(InvalidEntityStateError):
            store.add_installment(duplicate)

    def test_duplicate_loan(self, store: LoanStore, single_terms: LoanTerms) -> None:
        loan = store.create_loan("Ana", single_terms)

        with pytest.raises(InvalidEntityStateError):
            store.add_loan(Loan(loan.loan_id, "Other", single_terms))

    def test_add_installment_sets_created_at(self, store: LoanStore, single_terms: LoanTerms, fixed_now: datetime) -> None:
        store.add_loan(Loan("loan-1", "Ana", single_terms))
        store.add_installment(Installment("inst-1", "loan-1", 1, date(2024, 7, 1), Decimal("600")))

        assert store.installments["inst-1"].created_at == fixed_now

    def test_get_unknown_loan(self, store: LoanStore) -> None:
        with pytest.raises(EntityNotFoundError):
            store.get_loan("missing")

    def test_not_found_is_tracker_error(self) -> None:
        assert issubclass(EntityNotFoundError, LoanTrackerError)
        assert issubclass(ReferentialIntegrityError, EntityNotFoundError)


class TestRecordPayment:
    """Tests for recording payments."""

    def test_partial_payment(self, store: LoanStore, weekly_terms: LoanTerms, fixed_now: datetime) -> None:
        loan = store.create_loan("Ana", weekly_terms)

        payment = store.record_payment(loan.loan_id, "50.00", notes=" efectivo ")

        assert payment.amount == Decimal("50.00")
        assert payment.notes == "efectivo"
        assert payment.paid_at == fixed_now
        assert loan.amount_returned == Decimal("50.00")
        assert loan.pending_amount == Decimal("50.00")
        assert loan.status == LoanStatus.PARTIAL
        assert loan.updated_at == fixed_now

        installments = store.get_loan_installments(loan.loan_id)
        assert [i.amount_paid for i in installments] == [
            Decimal("33.33"),
            Decimal("16.67"),
            Decimal("0"),
        ]
        assert [i.status for i in installments] == [
            InstallmentStatus.PAID,
            InstallmentStatus.PARTIAL,
            InstallmentStatus.PENDING,
        ]

    def test_full_payment_marks_paid(self, store: LoanStore, weekly_terms: LoanTerms) -> None:
        loan = store.create_loan("Ana", weekly_terms)

        store.record_payment(loan.loan_id, Decimal("100.00"))

        assert loan.status == LoanStatus.PAID
        assert loan.pending_amount == 0
        assert all(i.status == InstallmentStatus.PAID for i in store.get_loan_installments(loan.loan_id))

        with pytest.raises(InvalidEntityStateError, match="already paid"):
            store.record_payment(loan.loan_id, "1.00")

    def test_overpayment_rejected_without_changes(self, store: LoanStore, weekly_terms: LoanTerms) -> None:
        loan = store.create_loan("Ana", weekly_terms)

        with pytest.raises(ValidationError, match="exceeds pending"):
            store.record_payment(loan.loan_id, "100.01")

        assert loan.amount_returned == 0
        assert loan.status == LoanStatus.ACTIVE
        assert store.get_loan_payments(loan.loan_id) == []
        assert all(i.amount_paid == 0 for i in store.get_loan_installments(loan.loan_id))

    @pytest.mark.parametrize("amount", ["0", "-5", "1.234", "abc"])
    def test_invalid_amount(self, store: LoanStore, weekly_terms: LoanTerms, amount: str) -> None:
        loan = store.create_loan("Ana", weekly_terms)

        with pytest.raises(ValidationError):
            store.record_payment(loan.loan_id, amount)
        assert store.summary()["payments"] == 0

    def test_unknown_loan(self, store: LoanStore) -> None:
        with pytest.raises(EntityNotFoundError):
            store.record_payment("missing", "10.00")

    def test_amount_returned_matches_installments(self, store: LoanStore, weekly_terms: LoanTerms) -> None:
        loan = store.create_loan("Ana", weekly_terms)
        for amount in ("10.00", "30.00", "0.01", "25.50"):
            store.record_payment(loan.loan_id, amount)

        installments = store.get_loan_installments(loan.loan_id)
        assert loan.amount_returned == sum(i.amount_paid for i in installments)
        assert store.total_paid(loan.loan_id) == Decimal("65.51")

    def test_payments_newest_first(self, store: LoanStore, weekly_terms: LoanTerms) -> None:
        loan = store.create_loan("Ana", weekly_terms)
        base = datetime(2024, 6, 10, tzinfo=timezone.utc)
        store.record_payment(loan.loan_id, "10.00", paid_at=base + timedelta(days=2))
        store.record_payment(loan.loan_id, "20.00", paid_at=base)
        store.record_payment(loan.loan_id, "30.00", paid_at=base + timedelta(days=1))

        amounts = [p.amount for p in store.get_loan_payments(loan.loan_id)]
        assert amounts == [Decimal("10.00"), Decimal("30.00"), Decimal("20.00")]

    def test_concurrent_payments_never_overpay(self, weekly_terms: LoanTerms) -> None:
        store = LoanStore()
        loan = store.create_loan("Ana", weekly_terms)
        errors = []

        def pay() -> None:
            try:
                store.record_payment(loan.loan_id, "10.00")
            except LoanTrackerError as e:
                errors.append(e)

        threads = [threading.Thread(target=pay) for _ in range(15)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert loan.amount_returned == Decimal("100.00")
        assert len(store.get_loan_payments(loan.loan_id)) == 10
        assert len(errors) == 5
        assert sum(i.amount_paid for i in store.get_loan_installments(loan.loan_id)) == Decimal("100.00")

    def test_dashboard_reads_during_writes(self, weekly_terms: LoanTerms, single_terms: LoanTerms, today: date) -> None:
        store = LoanStore()
        store.create_loan("Ana", weekly_terms)
        done = threading.Event()
        errors = []

        def churn() -> None:
            try:
                for _ in range(2000):
                    loan = store.create_loan("Bruno", single_terms)
                    store.record_payment(loan.loan_id, "50.00")
                    store.delete_loan(loan.loan_id)
            finally:
                done.set()

        def render() -> None:
            while not done.is_set():
                try:
                    summarize_portfolio(store, today)
                    search_loans(store, today, query="a", sort="pending")
                    upcoming_installments(store, today)
                except (RuntimeError, KeyError, LoanTrackerError) as e:
                    errors.append(e)
                    return

        threads = [threading.Thread(target=churn)] + [threading.Thread(target=render) for _ in range(3)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert errors == []
        assert store.summary() == {"loans": 1, "installments": 3, "payments": 0}

    def test_payment_without_schedule_rejected(self, store: LoanStore, single_terms: LoanTerms) -> None:
        store.add_loan(Loan("loan-x", "Ana", single_terms))

        with pytest.raises(InvalidEntityStateError, match="installments"):
            store.record_payment("loan-x", "5.00")

        loan = store.get_loan("loan-x")
        assert loan.amount_returned == 0
        assert loan.status == LoanStatus.ACTIVE
        assert store.get_loan_payments("loan-x") == []

    def test_payment_beyond_installments_rejected(self, store: LoanStore, single_terms: LoanTerms) -> None:
        store.add_loan(Loan("loan-x", "Ana", single_terms))
        store.add_installment(Installment("inst-1", "loan-x", 1, date(2024, 7, 1), Decimal("100.00")))

        with pytest.raises(InvalidEntityStateError):
            store.record_payment("loan-x", "150.00")

        assert store.installments["inst-1"].amount_paid == 0
        store.record_payment("loan-x", "100.00")
        assert store.get_loan("loan-x").amount_returned == Decimal("100.00")


class TestDeleteLoan:
    """Tests for cascading deletion."""

    def test_cascade(self, store: LoanStore, weekly_terms: LoanTerms, single_terms: LoanTerms) -> None:
        doomed = store.create_loan("Ana", weekly_terms)
        kept = store.create_loan("Bruno", single_terms)
        store.record_payment(doomed.loan_id, "20.00")
        store.record_payment(kept.loan_id, "100.00")

        store.delete_loan(doomed.loan_id)

        assert store.summary() == {"loans": 1, "installments": 1, "payments": 1}
        assert store.get_loan_installments(doomed.loan_id) == []
        assert store.get_loan_payments(doomed.loan_id) == []
        assert all(i.loan_id == kept.loan_id for i in store.installments.values())

    def test_unknown_loan(self, store: LoanStore) -> None:
        with pytest.raises(EntityNotFoundError):
            store.delete_loan("missing")


class TestQueries:
    """Tests for store queries and live status."""

    def test_loan_status_overdue_then_on_time(self, store: LoanStore, weekly_terms: LoanTerms, today: date) -> None:
        loan = store.create_loan("Ana", weekly_terms)

        assert store.loan_status(loan.loan_id, today) == LoanDisplayStatus.OVERDUE

        store.record_payment(loan.loan_id, "33.33")

        assert store.loan_status(loan.loan_id, today) == LoanDisplayStatus.ON_TIME
        assert store.loan_status(loan.loan_id, date(2024, 6, 16)) == LoanDisplayStatus.OVERDUE

    def test_partial_on_past_due_installment_is_overdue(self, store: LoanStore, weekly_terms: LoanTerms, today: date) -> None:
        loan = store.create_loan("Ana", weekly_terms)
        store.record_payment(loan.loan_id, "20.00")

        assert loan.status == LoanStatus.PARTIAL
        assert store.loan_status(loan.loan_id, today) == LoanDisplayStatus.OVERDUE

    def test_installment_statuses(self, store: LoanStore, weekly_terms: LoanTerms, today: date) -> None:
        loan = store.create_loan("Ana", weekly_terms)
        store.record_payment(loan.loan_id, "40.00")

        statuses = [status for _, status in store.installment_statuses(loan.loan_id, today)]
        assert statuses == [
            InstallmentStatus.PAID,
            InstallmentStatus.PARTIAL,
            InstallmentStatus.PENDING,
        ]

    def test_loans_with_status(self, store: LoanStore, weekly_terms: LoanTerms, single_terms: LoanTerms, today: date) -> None:
        store.create_loan("Ana", weekly_terms, created_at=datetime(2024, 6, 1, tzinfo=timezone.utc))
        store.create_loan("Bruno", single_terms, created_at=datetime(2024, 6, 2, tzinfo=timezone.utc))

        pairs = store.loans_with_status(today)

        assert [(loan.name, status) for loan, status in pairs] == [
            ("Bruno", LoanDisplayStatus.ON_TIME),
            ("Ana", LoanDisplayStatus.OVERDUE),
        ]

    def test_all_installment_statuses(self, store: LoanStore, weekly_terms: LoanTerms, today: date) -> None:
        loan = store.create_loan("Ana", weekly_terms)

        rows = store.all_installment_statuses(today)

        assert [(row[0].loan_id, row[1].number, row[2]) for row in rows] == [
            (loan.loan_id, 1, InstallmentStatus.OVERDUE),
            (loan.loan_id, 2, InstallmentStatus.PENDING),
            (loan.loan_id, 3, InstallmentStatus.PENDING),
        ]

    def test_installment_statuses_unknown_loan(self, store: LoanStore, today: date) -> None:
        with pytest.raises(EntityNotFoundError):
            store.installment_statuses("missing", today)

    def test_list_loans_newest_first(self, store: LoanStore, single_terms: LoanTerms) -> None:
        for day, name in ((3, "Carla"), (1, "Ana"), (2, "Bruno")):
            store.create_loan(name, single_terms, created_at=datetime(2024, 6, day, tzinfo=timezone.utc))

        assert [loan.name for loan in store.list_loans()] == ["Carla", "Bruno", "Ana"]

    def test_unknown_loan_has_no_installments(self, store: LoanStore) -> None:
        assert store.get_loan_installments("missing") == []
        assert store.total_paid("missing") == Decimal("0")
