"""Synthetic data generators."""

from loan_tracker.generators.base import BaseGenerator
from loan_tracker.generators.loan import LoanGenerator

__all__ = ["BaseGenerator", "LoanGenerator"]
