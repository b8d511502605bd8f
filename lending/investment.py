"""
investment.py - Investment Engine

Validates a proposed investment against a WorldState snapshot and, if it is
acceptable, applies it as one new snapshot.

Validation order is fixed and short-circuits on the first failure:
    1. amount <= 0                       -> CannotInvestZeroOrLess
    2. amount > investor wallet          -> InvestorDoesNotHaveEnoughMoneyToInvest
    3. amount > tranche available        -> TrancheDoesNotHaveSpaceForInvestment
    4. date before loan start            -> CannotInvestBeforeLoanStart
    5. investment id already recorded    -> DuplicateInvestmentDetected

Applying an investment debits the wallet, moves the amount from the
tranche's available to its invested total and records the investment.
Either all three happen or none do. A refused investment returns the input
snapshot untouched together with the reason.

Business-rule failures are values. A dangling investor or tranche reference
is a data inconsistency and raises NotFound.
"""

from __future__ import annotations
from dataclasses import replace
from datetime import datetime
from typing import Callable, Optional

from .core import (
    Money, InvestorId, TrancheId, InvestmentId, Investment,
    InvestmentError, InvestmentResult,
    CannotInvestZeroOrLess,
    InvestorDoesNotHaveEnoughMoneyToInvest,
    TrancheDoesNotHaveSpaceForInvestment,
    CannotInvestBeforeLoanStart,
    DuplicateInvestmentDetected,
)
from .world import (
    WorldState,
    get_investor, get_loan_and_tranche,
    update_investor, update_tranche, add_investment,
)


def new_investment(
    investor_id: InvestorId,
    amount: Money,
    tranche_id: TrancheId,
    date: datetime,
    id_factory: Callable[[], InvestmentId] = InvestmentId.generate,
) -> Investment:
    """
    Mint an investment with a fresh id, ready for make_investment().

    Args:
        investor_id: Who is investing
        amount: How much (converted to Money if needed)
        tranche_id: Where the money goes
        date: When the investment is made
        id_factory: Supplies the new InvestmentId (random UUID by default)

    Returns:
        A new Investment. Nothing is validated until make_investment().
    """
    return Investment(
        id=id_factory(),
        investor_id=investor_id,
        tranche_id=tranche_id,
        amount=amount if isinstance(amount, Money) else Money(amount),
        date=date,
    )


def validate_investment(state: WorldState, investment: Investment) -> Optional[InvestmentError]:
    """
    Run the validation checks in order and return the first failure.

    Returns:
        None if the investment may be applied, otherwise the error value.

    Raises:
        NotFound: if the investor or the tranche does not exist
    """
    investor = get_investor(state, investment.investor_id)
    loan, tranche = get_loan_and_tranche(state, investment.tranche_id)
    amount = investment.amount

    if not amount.is_positive():
        return CannotInvestZeroOrLess(investor.id, amount)
    if amount > investor.wallet:
        return InvestorDoesNotHaveEnoughMoneyToInvest()
    if amount > tranche.available:
        return TrancheDoesNotHaveSpaceForInvestment()
    if investment.date < loan.start_date:
        return CannotInvestBeforeLoanStart()
    if investment.id in state.investments:
        return DuplicateInvestmentDetected()
    return None


def _adjust_investor_wallet(state: WorldState, investor_id: InvestorId, amount: Money) -> WorldState:
    return update_investor(
        state, investor_id,
        lambda investor: replace(investor, wallet=investor.wallet + amount),
    )


def _adjust_tranche_invested(state: WorldState, tranche_id: TrancheId, amount: Money) -> WorldState:
    return update_tranche(
        state, tranche_id,
        lambda tranche: replace(
            tranche,
            available=tranche.available - amount,
            invested=tranche.invested + amount,
        ),
    )


def make_investment(state: WorldState, investment: Investment) -> InvestmentResult:
    """
    Validate and apply one investment.

    Args:
        state: Current snapshot (never modified)
        investment: Proposed investment with a caller-supplied id

    Returns:
        InvestmentResult with the new snapshot, or with the untouched input
        snapshot and the first failed check.

    Raises:
        NotFound: if the investor or the tranche does not exist

    Example:
        investment = new_investment(InvestorId("Rich"), Money("500"),
                                    TrancheId(LoanId("London"), "A"),
                                    datetime(2018, 10, 1))
        result = make_investment(state, investment)
        if result.ok:
            state = result.state
    """
    error = validate_investment(state, investment)
    if error is not None:
        return InvestmentResult(state, error)

    updated = _adjust_investor_wallet(state, investment.investor_id, -investment.amount)
    updated = _adjust_tranche_invested(updated, investment.tranche_id, investment.amount)
    # Duplicate ids were refused by validate_investment(), so this cannot fail.
    return add_investment(updated, investment)
