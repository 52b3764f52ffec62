"""Scenarios for generating realistic loan portfolios."""

from loan_tracker.scenarios.portfolio import SamplePortfolioScenario

__all__ = ["SamplePortfolioScenario"]
