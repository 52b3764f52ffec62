"""Shared setup for the synthetic loan generators."""

from __future__ import annotations

import random
from abc import ABC

from faker import Faker


class BaseGenerator(ABC):
    """Hold a Faker instance for debtor names.

    Term amounts and payment behavior are drawn from the module-level
    ``random`` state, so seeding here also fixes the scenario's choices.

    Parameters
    ----------
    seed : int | None
        Seed for both Faker and ``random``; None leaves them unseeded.
    locale : str
        Faker locale. ``es_MX`` gives Spanish names close to the Lima
        borrowers the tracker is used with.
    """

    def __init__(
        self,
        seed: int | None = None,
        locale: str = "es_MX",
    ) -> None:
        self.fake = Faker(locale)
        if seed is not None:
            self.fake.seed_instance(seed)
            random.seed(seed)
