"""Enumeration types for loan-tracker entities.

Values are the lowercase strings persisted by the record store, so a
stored status string and the matching member compare equal.
"""

from enum import Enum


class PaymentMode(str, Enum):
    SINGLE = "single"
    INSTALLMENTS = "installments"


class Frequency(str, Enum):
    DAILY = "daily"
    WEEKLY = "weekly"
    BIWEEKLY = "biweekly"


class LoanStatus(str, Enum):
    """Stored (advisory) loan status."""

    ACTIVE = "active"
    PAID = "paid"
    OVERDUE = "overdue"
    PARTIAL = "partial"


class LoanDisplayStatus(str, Enum):
    """Loan status recomputed from amounts and due dates."""

    PAID = "paid"
    OVERDUE = "overdue"
    PARTIAL = "partial"
    ON_TIME = "on_time"

    @property
    def label(self) -> str:
        return _LOAN_LABELS[self]

    @property
    def variant(self) -> str:
        return _VARIANTS.get(self.value, "default")


class InstallmentStatus(str, Enum):
    PENDING = "pending"
    PAID = "paid"
    PARTIAL = "partial"
    OVERDUE = "overdue"

    @property
    def label(self) -> str:
        return _INSTALLMENT_LABELS[self]

    @property
    def variant(self) -> str:
        return _VARIANTS.get(self.value, "default")


_LOAN_LABELS = {
    LoanDisplayStatus.PAID: "Pagado",
    LoanDisplayStatus.OVERDUE: "Vencido",
    LoanDisplayStatus.PARTIAL: "Parcial",
    LoanDisplayStatus.ON_TIME: "Al día",
}

_INSTALLMENT_LABELS = {
    InstallmentStatus.PAID: "Pagado",
    InstallmentStatus.PARTIAL: "Parcial",
    InstallmentStatus.OVERDUE: "Vencido",
    InstallmentStatus.PENDING: "Pendiente",
}

# Badge variants shared by loan and installment statuses
_VARIANTS = {
    "paid": "success",
    "overdue": "danger",
    "partial": "warning",
}
