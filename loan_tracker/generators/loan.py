"""Synthetic loan generator for demos and fixtures."""

import random
from datetime import date, datetime
from decimal import Decimal

from loan_tracker.config import TermOptions
from loan_tracker.generators.base import BaseGenerator
from loan_tracker.models import Frequency, Loan, LoanTerms, PaymentMode
from loan_tracker.money import to_money
from loan_tracker.store import LoanStore


class LoanGenerator(BaseGenerator):
    """Generate realistic informal loans between acquaintances."""

    CONCEPTS = [
        "Compra de mercadería",
        "Pago de alquiler",
        "Emergencia médica",
        "Útiles escolares",
        "Reparación de moto",
        "Capital de trabajo",
        "Viaje familiar",
        None,
    ]

    # Flat profit on top of the amount lent
    PROFIT_RATES = (
        Decimal("0.10"),
        Decimal("0.15"),
        Decimal("0.20"),
        Decimal("0.25"),
        Decimal("0.30"),
    )

    SINGLE_PAYMENT_SHARE = 0.4

    def __init__(
        self,
        seed: int | None = None,
        options: TermOptions | None = None,
    ) -> None:
        super().__init__(seed)
        self.options = options or TermOptions()

    def generate_terms(self, start_date: date) -> LoanTerms:
        """Generate loan terms starting on ``start_date``.

        Parameters
        ----------
        start_date : date
            Day the money was lent.

        Returns
        -------
        LoanTerms
            Terms using the configured term options.
        """
        principal = Decimal(random.randint(4, 100) * 50)
        amount_to_return = to_money(principal * (1 + random.choice(self.PROFIT_RATES)))

        if random.random() < self.SINGLE_PAYMENT_SHARE:
            return LoanTerms(
                principal=principal,
                amount_to_return=amount_to_return,
                start_date=start_date,
                payment_mode=PaymentMode.SINGLE,
                term_days=random.choice(self.options.single_payment_days),
            )

        frequency = random.choice(list(Frequency))
        if frequency == Frequency.DAILY:
            count = random.choice(self.options.daily_installments)
        elif frequency == Frequency.WEEKLY:
            count = random.choice(self.options.weekly_installments)
        else:
            count = random.choice(self.options.biweekly_installments)

        return LoanTerms(
            principal=principal,
            amount_to_return=amount_to_return,
            start_date=start_date,
            payment_mode=PaymentMode.INSTALLMENTS,
            frequency=frequency,
            installment_count=min(count, self.options.max_installments),
        )

    def generate(
        self,
        store: LoanStore,
        start_date: date,
        created_at: datetime | None = None,
    ) -> Loan:
        """Generate a loan with its schedule and add it to the store."""
        return store.create_loan(
            name=self.fake.name(),
            terms=self.generate_terms(start_date),
            concept=random.choice(self.CONCEPTS),
            created_at=created_at,
        )
