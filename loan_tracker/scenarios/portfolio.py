"""Sample portfolio scenario: loans with a realistic repayment history."""

from __future__ import annotations

import logging
import random
from datetime import date, datetime, time, timedelta
from decimal import Decimal
from typing import Any

from loan_tracker.config import TrackerConfig
from loan_tracker.dates import DateLike, format_date, to_calendar_date
from loan_tracker.generators import LoanGenerator
from loan_tracker.models import Loan
from loan_tracker.money import to_money
from loan_tracker.portfolio import summarize_portfolio
from loan_tracker.sinks.serialization import serialize_value
from loan_tracker.store import LoanStore

logger = logging.getLogger(__name__)


class SamplePortfolioScenario:
    """Generate a loan portfolio with payment behavior.

    This scenario creates:
    - Loans started within the last ``history_days`` days
    - Payments on installments already due:
        - Full payments
        - Partial payments
        - Debtors who stop paying (leaving the loan overdue)
    """

    def __init__(
        self,
        num_loans: int = 25,
        payment_rate: float = 0.70,
        full_payment_rate: float = 0.75,
        history_days: int = 90,
        today: DateLike | None = None,
        seed: int | None = None,
        *,
        config: TrackerConfig | None = None,
    ) -> None:
        """Initialize sample portfolio scenario.

        Parameters
        ----------
        num_loans : int
            Number of loans to generate.
        payment_rate : float
            Share of loans whose debtor has made any payment (0.0 to 1.0).
        full_payment_rate : float
            Chance that a due installment is paid in full rather than
            partly or not at all.
        history_days : int
            How far back loan start dates may go.
        today : DateLike | None
            Reference date; defaults to today in the configured zone.
        seed : int | None
            Random seed for reproducibility.
        config : TrackerConfig | None
            Optional configuration (time zone, term options).
        """
        self.config = config or TrackerConfig()
        self.num_loans = num_loans
        self.payment_rate = payment_rate
        self.full_payment_rate = full_payment_rate
        self.history_days = history_days
        self.seed = seed
        self.today = to_calendar_date(today) if today is not None else self.config.date_provider().today()

        self.store = LoanStore()
        self._loan_gen = LoanGenerator(seed=seed, options=self.config.terms)

    def generate(self) -> LoanStore:
        """Generate loans and their payments.

        Returns
        -------
        LoanStore
            Store populated with loans, installments and payments.
        """
        logger.info(
            "Generating sample portfolio: %d loans up to %s",
            self.num_loans,
            format_date(self.today),
        )

        for _ in range(self.num_loans):
            start = self.today - timedelta(days=random.randint(0, self.history_days))
            loan = self._loan_gen.generate(self.store, start, created_at=self._at_noon(start))
            if random.random() < self.payment_rate:
                self._apply_payments(loan)

        logger.info(
            "Generated %d loans with %d installments and %d payments",
            len(self.store.loans),
            len(self.store.installments),
            len(self.store.payments),
        )
        return self.store

    def _apply_payments(self, loan: Loan) -> None:
        """Pay installments already due, oldest first, until the debtor stops.

        Payments are allocated oldest unpaid first, so paying an installment
        in full means settling any arrears left by earlier partial payments.
        """
        installments = self.store.get_loan_installments(loan.loan_id)
        for inst in installments:
            if inst.due_date > self.today:
                break

            owed = sum(
                (i.outstanding for i in installments if i.number <= inst.number),
                Decimal("0.00"),
            )
            roll = random.random()
            if roll < self.full_payment_rate:
                amount = owed
            elif roll < self.full_payment_rate + (1 - self.full_payment_rate) / 2:
                share = Decimal(str(round(random.uniform(0.2, 0.8), 2)))
                amount = to_money(inst.outstanding * share)
            else:
                break

            if amount <= 0:
                continue
            self.store.record_payment(loan.loan_id, amount, paid_at=self._at_noon(inst.due_date))

    def _at_noon(self, day: date) -> datetime:
        zone = self.config.date_provider().zone
        return datetime.combine(day, time(12), tzinfo=zone)

    def export(self, sinks: list[Any]) -> None:
        """Export generated data to sinks.

        Parameters
        ----------
        sinks : list[Any]
            List of sink instances (JsonFileSink, ConsoleSink).
        """
        for sink in sinks:
            sink.write_batch("loans", self.store.list_loans())
            sink.write_batch("installments", list(self.store.installments.values()))
            sink.write_batch("payments", list(self.store.payments.values()))

        logger.info("Exported sample portfolio to %d sinks", len(sinks))

    def get_portfolio_summary(self) -> dict[str, Any]:
        """Get dashboard figures for the generated portfolio.

        Returns
        -------
        dict[str, Any]
            Portfolio summary with amounts as decimal strings.
        """
        summary = summarize_portfolio(self.store, self.today)
        return {
            "today": format_date(self.today),
            "total_loans": summary.loan_count,
            "total_pending": serialize_value(summary.total_pending),
            "capital_outstanding": serialize_value(summary.capital_outstanding),
            "expected_profit": serialize_value(summary.expected_profit),
            "overdue_total": serialize_value(summary.overdue_total),
            "overdue_loans": summary.overdue_count,
            "loan_status_distribution": {
                status.value: count for status, count in summary.status_counts.items()
            },
        }
