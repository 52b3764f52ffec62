#!/usr/bin/env python3
"""Generate a sample loan portfolio and print its dashboard.

Usage:
    python scripts/generate_sample_portfolio.py --loans 30 --seed 42
    python scripts/generate_sample_portfolio.py --output local/ --pretty
"""

import argparse
import logging
import sys

from loan_tracker.config import TrackerConfig
from loan_tracker.exceptions import LoanTrackerError
from loan_tracker.logging import setup_logging
from loan_tracker.money import format_currency
from loan_tracker.portfolio import (
    installments_due_on,
    search_loans,
    summarize_portfolio,
    upcoming_installments,
)
from loan_tracker.scenarios import SamplePortfolioScenario
from loan_tracker.sinks import ConsoleSink, JsonFileSink

logger = logging.getLogger(__name__)


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Generate a sample loan portfolio")
    parser.add_argument("--loans", type=int, default=25, help="Number of loans (default: 25)")
    parser.add_argument("--seed", type=int, default=None, help="Random seed")
    parser.add_argument("--today", default=None, help="Reference date YYYY-MM-DD (default: today in Lima)")
    parser.add_argument("--output", default=None, help="Write JSON files to this directory")
    parser.add_argument("--pretty", action="store_true", help="Pretty-print JSON output")
    parser.add_argument("--console", action="store_true", help="Dump records to stdout")
    return parser.parse_args(argv)


def print_dashboard(scenario: SamplePortfolioScenario, config: TrackerConfig) -> None:
    store = scenario.store
    today = scenario.today
    symbol = config.currency_symbol
    summary = summarize_portfolio(store, today)

    print(f"\nDashboard for {today.isoformat()}")
    print("=" * 60)
    print(f"  Loans:               {summary.loan_count}")
    print(f"  Total pending:       {format_currency(summary.total_pending, symbol)}")
    print(f"  Capital outstanding: {format_currency(summary.capital_outstanding, symbol)}")
    print(f"  Expected profit:     {format_currency(summary.expected_profit, symbol)}")
    print(
        f"  Overdue:             {summary.overdue_count} loan(s), "
        f"{format_currency(summary.overdue_total, symbol)}"
    )
    for status, count in summary.status_counts.items():
        print(f"    {status.label:<12} {count}")

    due_today = installments_due_on(store, today)
    print(f"\nDue today ({len(due_today)})")
    for item in due_today:
        print(
            f"  {item.debtor:<30} #{item.installment.number:<3} "
            f"{format_currency(item.outstanding, symbol)}  [{item.status.label}]"
        )

    upcoming = upcoming_installments(store, today, limit=config.upcoming_limit)
    print(f"\nUpcoming ({len(upcoming)})")
    for item in upcoming:
        print(
            f"  {item.installment.due_date.isoformat()}  {item.debtor:<30} "
            f"{format_currency(item.outstanding, symbol)}"
        )

    print("\nLargest balances")
    for loan, status in search_loans(store, today, sort="pending")[:10]:
        print(f"  {loan.name:<30} {format_currency(loan.pending_amount, symbol):>14}  [{status.label}]")


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv)
    config = TrackerConfig.from_env()
    setup_logging(config.log_level, config.log_format)

    try:
        scenario = SamplePortfolioScenario(
            num_loans=args.loans,
            today=args.today,
            seed=args.seed if args.seed is not None else config.seed,
            config=config,
        )
        scenario.generate()
    except LoanTrackerError as e:
        logger.error("Could not generate portfolio: %s", e)
        return 1

    sinks = []
    if args.output:
        sinks.append(JsonFileSink(args.output, pretty=args.pretty))
    if args.console:
        sinks.append(ConsoleSink(pretty=args.pretty, max_records=5))
    if sinks:
        scenario.export(sinks)
        for sink in sinks:
            sink.close()

    print_dashboard(scenario, config)
    return 0


if __name__ == "__main__":
    sys.exit(main())
