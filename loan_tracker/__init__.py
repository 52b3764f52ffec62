"""Loan schedule generation and live status resolution."""

from loan_tracker.dates import DateProvider
from loan_tracker.exceptions import InvalidInputError, LoanTrackerError, ValidationError
from loan_tracker.models import (
    Frequency,
    Installment,
    InstallmentStatus,
    Loan,
    LoanDisplayStatus,
    LoanStatus,
    LoanTerms,
    Payment,
    PaymentMode,
    ScheduledInstallment,
)
from loan_tracker.schedule import generate_schedule
from loan_tracker.status import resolve_installment_status, resolve_loan_status

__version__ = "0.1.0"

__all__ = [
    "DateProvider",
    "Frequency",
    "Installment",
    "InstallmentStatus",
    "InvalidInputError",
    "Loan",
    "LoanDisplayStatus",
    "LoanStatus",
    "LoanTerms",
    "LoanTrackerError",
    "Payment",
    "PaymentMode",
    "ScheduledInstallment",
    "ValidationError",
    "generate_schedule",
    "resolve_installment_status",
    "resolve_loan_status",
]
