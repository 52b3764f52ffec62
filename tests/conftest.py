"""Pytest configuration and fixtures."""

import itertools
from datetime import date, datetime, timezone
from decimal import Decimal

import pytest

from loan_tracker.models import Frequency, LoanTerms, PaymentMode
from loan_tracker.store import LoanStore


@pytest.fixture
def today() -> date:
    """Fixed reference date for status checks."""
    return date(2024, 6, 15)


@pytest.fixture
def weekly_terms() -> LoanTerms:
    """100.00 over 3 weekly installments, due 06-08, 06-15 and 06-22."""
    return LoanTerms(
        principal=Decimal("80.00"),
        amount_to_return=Decimal("100.00"),
        start_date=date(2024, 6, 1),
        payment_mode=PaymentMode.INSTALLMENTS,
        frequency=Frequency.WEEKLY,
        installment_count=3,
    )


@pytest.fixture
def single_terms() -> LoanTerms:
    """600.00 in a single payment due 2024-07-01."""
    return LoanTerms(
        principal=Decimal("500.00"),
        amount_to_return=Decimal("600.00"),
        start_date=date(2024, 6, 1),
        payment_mode=PaymentMode.SINGLE,
        term_days=30,
    )


@pytest.fixture
def fixed_now() -> datetime:
    return datetime(2024, 6, 15, 17, 0, tzinfo=timezone.utc)


@pytest.fixture
def store(fixed_now: datetime) -> LoanStore:
    """Fresh store with sequential IDs and a fixed clock."""
    counter = itertools.count(1)
    return LoanStore(
        id_factory=lambda: f"id-{next(counter):04d}",
        clock=lambda: fixed_now,
    )
