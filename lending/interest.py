"""
interest.py - Interest Accrual Engine

Computes the interest every investment earned over an accrual period,
credits it to the investors' wallets and records an InterestPayment per
investment.

Key Formulas:
    daily_rate      = monthly_rate * 12 / 365
    effective_start = max(investment date, period start, loan start)
    days            = floor(period_end - effective_start in days) + 1
    interest        = amount * daily_rate * days     (0 if days <= 0)

The day count is inclusive on both ends: investing on the last day of the
period earns one day of interest. Interest is computed at full precision
and rounded to pennies only when it is credited.

Accrual never fails for business reasons. Every investment receives a
payment record for the period, zero amounts included. Running the same
period twice records (and credits) it twice.
"""

from __future__ import annotations
from calendar import monthrange
from dataclasses import replace
from datetime import datetime, timedelta
from decimal import Decimal
from typing import Dict, List

from .core import (
    Money, Period, InvestorId, Investment, InterestPayment,
    MONTHS_PER_YEAR, DAYS_PER_YEAR,
)
from .world import (
    WorldState,
    get_investor, get_loan_and_tranche,
)


ONE_DAY = timedelta(days=1)


def convert_monthly_to_daily_interest_rate(monthly_interest_rate: Decimal) -> Decimal:
    """Convert a monthly rate to a daily one on a 365-day year."""
    return monthly_interest_rate * Decimal(MONTHS_PER_YEAR) / Decimal(DAYS_PER_YEAR)


def accrual_days(investment_date: datetime, loan_start: datetime, period: Period) -> int:
    """
    Number of days an investment earns interest within a period.

    Counts from the latest of the investment date, the period start and the
    loan start, through the period end, inclusive. May be zero or negative
    when the investment was made after the period ended.
    """
    period_start, period_end = period
    effective_start = max(investment_date, period_start, loan_start)
    return (period_end - effective_start) // ONE_DAY + 1


def calculate_interest_for_investment(
    state: WorldState,
    investment: Investment,
    period: Period,
) -> Money:
    """
    Unrounded interest earned by one investment over a period.

    Raises:
        NotFound: if the investment's tranche does not exist
    """
    loan, tranche = get_loan_and_tranche(state, investment.tranche_id)
    daily_interest_rate = convert_monthly_to_daily_interest_rate(tranche.monthly_interest_rate)
    days = accrual_days(investment.date, loan.start_date, period)
    if days <= 0:
        # Invested after the period ended
        return Money.zero()
    return investment.amount * daily_interest_rate * Decimal(days)


def round_to_pennies(amount: Money) -> Money:
    return amount.round_to_cents()


def produce_interest_for_investments(state: WorldState, period: Period) -> WorldState:
    """
    Accrue interest for every investment over a period.

    Each investment's interest is rounded to pennies, credited to its
    investor's wallet and recorded as an InterestPayment. Investments are
    processed in insertion order; wallets only receive sums, so the
    resulting balances do not depend on the order.

    The run builds one new snapshot: the investors map is copied once with
    every credited wallet, payments are appended in one go, and loans and
    investments are shared with the input.

    Args:
        state: Current snapshot (never modified)
        period: (start, end), inclusive on both ends

    Returns:
        The new snapshot with wallets credited and payments appended.

    Raises:
        NotFound: if an investment references a missing investor or tranche
    """
    period = tuple(period)
    credits: Dict[InvestorId, Money] = {}
    payments: List[InterestPayment] = []
    for investment in state.investments.values():
        interest = round_to_pennies(calculate_interest_for_investment(state, investment, period))
        credits[investment.investor_id] = credits.get(investment.investor_id, Money.zero()) + interest
        payments.append(InterestPayment(investment.id, period, interest))

    credited = {}
    for investor_id, credit in credits.items():
        investor = get_investor(state, investor_id)
        if credit:
            credited[investor_id] = replace(investor, wallet=investor.wallet + credit)
    return replace(
        state,
        investors={**state.investors, **credited} if credited else state.investors,
        interest_payments=state.interest_payments + tuple(payments),
    )


def monthly_periods(start: datetime, end: datetime) -> List[Period]:
    """
    Split [start, end] into calendar-month accrual periods.

    The first period begins at `start` and the last ends at `end`; every
    other period runs from the first to the last day of its month.

    Raises:
        ValueError: If end is before start

    Example:
        monthly_periods(datetime(2015, 10, 15), datetime(2015, 12, 10))
        # [(2015-10-15, 2015-10-31), (2015-11-01, 2015-11-30),
        #  (2015-12-01, 2015-12-10)]
    """
    if end < start:
        raise ValueError(f"Period end {end} is before start {start}")

    periods: List[Period] = []
    current = start
    while current <= end:
        last_day = monthrange(current.year, current.month)[1]
        month_end = current.replace(day=last_day)
        period_end = min(month_end, end)
        periods.append((current, period_end))
        current = (month_end + ONE_DAY).replace(
            hour=0, minute=0, second=0, microsecond=0
        )
    return periods
