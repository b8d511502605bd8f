"""
fixtures.py - Reference lending book used across the tests

Plain builder functions, so hypothesis tests can call them directly and
conftest.py can wrap them as pytest fixtures. Every call returns fresh
values; there is no shared module state.
"""

from datetime import datetime
from decimal import Decimal
from typing import Callable, Iterator
import uuid

from lending import (
    Money, InvestorId, LoanId, TrancheId, InvestmentId,
    Investor, Tranche, Loan, Investment, WorldState,
    TRANCHE_A, TRANCHE_B,
)


LONDON = LoanId("London")
BRISTOL = LoanId("Bristol")
RICH = InvestorId("Rich")
POOR = InvestorId("Poor")

LONDON_A = TrancheId(LONDON, TRANCHE_A)
LONDON_B = TrancheId(LONDON, TRANCHE_B)
BRISTOL_A = TrancheId(BRISTOL, TRANCHE_A)


def london_tranche_a() -> Tranche:
    return Tranche(LONDON_A, Decimal("0.009"), Money("100000"), Money("0"))


def london_tranche_b() -> Tranche:
    return Tranche(LONDON_B, Decimal("0.02"), Money("500"), Money("0"))


def bristol_tranche_a() -> Tranche:
    return Tranche(BRISTOL_A, Decimal("0.011"), Money("60000"), Money("0"))


def london_loan() -> Loan:
    return Loan.of(LONDON, datetime(2018, 6, 20), london_tranche_a(), london_tranche_b())


def bristol_loan() -> Loan:
    return Loan.of(BRISTOL, datetime(2018, 9, 5), bristol_tranche_a())


def rich_investor() -> Investor:
    return Investor(RICH, Money("10000.00"))


def poor_investor() -> Investor:
    return Investor(POOR, Money("500.00"))


def reference_state() -> WorldState:
    """Two investors, two loans, nothing invested yet."""
    return WorldState.from_entities(
        investors=[rich_investor(), poor_investor()],
        loans=[london_loan(), bristol_loan()],
    )


DEFAULT_INVESTMENT_ID = InvestmentId(uuid.UUID("00000000-0000-0000-0000-000000000001"))


def default_investment(**overrides) -> Investment:
    """Rich invests 500 into London/A on 2018-10-01."""
    fields = dict(
        id=DEFAULT_INVESTMENT_ID,
        investor_id=RICH,
        tranche_id=LONDON_A,
        amount=Money("500"),
        date=datetime(2018, 10, 1),
    )
    fields.update(overrides)
    return Investment(**fields)


def sequential_ids(start: int = 1) -> Callable[[], InvestmentId]:
    """Deterministic id factory: 1, 2, 3, ..."""
    counter: Iterator[int] = iter(range(start, 10**9))
    return lambda: InvestmentId(uuid.UUID(int=next(counter)))
