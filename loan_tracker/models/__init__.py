"""Domain models for loan tracking."""

from loan_tracker.models.enums import (
    Frequency,
    InstallmentStatus,
    LoanDisplayStatus,
    LoanStatus,
    PaymentMode,
)
from loan_tracker.models.loan import (
    Installment,
    Loan,
    LoanTerms,
    Payment,
    ScheduledInstallment,
)

__all__ = [
    "Frequency",
    "Installment",
    "InstallmentStatus",
    "Loan",
    "LoanDisplayStatus",
    "LoanStatus",
    "LoanTerms",
    "Payment",
    "PaymentMode",
    "ScheduledInstallment",
]
