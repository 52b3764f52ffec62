"""In-memory record store for loans, installments and payments."""

from loan_tracker.store.loans import LoanStore

__all__ = ["LoanStore"]
