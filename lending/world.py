"""
world.py - Immutable World State Snapshot

WorldState bundles every entity of the lending book into one frozen value.
All functions in this module are pure: readers take a snapshot and return
an entity, writers take a snapshot and return a NEW snapshot. No function
mutates its input.

Updates copy the top-level mapping they touch and share every other entity
with the previous snapshot, so holding on to old snapshots is cheap and
safe.

Lookups raise NotFound for missing entities rather than KeyError.
"""

from __future__ import annotations
from dataclasses import dataclass, field, replace
from decimal import Decimal
from typing import Any, Callable, Dict, Iterable, Mapping, Optional, Tuple

from .core import (
    Money, Period,
    InvestorId, LoanId, TrancheId, InvestmentId,
    Investor, Tranche, Loan, Investment, InterestPayment,
    NotFound, DuplicateInvestmentDetected, InvestmentResult,
    _freeze,
)


@dataclass(frozen=True, slots=True)
class WorldState:
    """
    The complete immutable picture of the lending book at one logical time.

    Attributes:
        investors: InvestorId -> Investor
        loans: LoanId -> Loan
        investments: InvestmentId -> Investment (insertion ordered)
        interest_payments: Payment history, oldest first
    """
    investors: Mapping[InvestorId, Investor] = field(default_factory=dict)
    loans: Mapping[LoanId, Loan] = field(default_factory=dict)
    investments: Mapping[InvestmentId, Investment] = field(default_factory=dict)
    interest_payments: Tuple[InterestPayment, ...] = ()

    # Holds read-only maps, so a snapshot is not hashable.
    __hash__ = None

    def __post_init__(self):
        object.__setattr__(self, 'investors', _freeze(self.investors))
        object.__setattr__(self, 'loans', _freeze(self.loans))
        object.__setattr__(self, 'investments', _freeze(self.investments))
        if not isinstance(self.interest_payments, tuple):
            object.__setattr__(self, 'interest_payments', tuple(self.interest_payments))

    @classmethod
    def empty(cls) -> WorldState:
        return cls()

    @classmethod
    def from_entities(
        cls,
        investors: Iterable[Investor] = (),
        loans: Iterable[Loan] = (),
        investments: Iterable[Investment] = (),
    ) -> WorldState:
        """Build a snapshot keyed by each entity's own id."""
        return cls(
            investors={i.id: i for i in investors},
            loans={loan.id: loan for loan in loans},
            investments={i.id: i for i in investments},
        )

    def __repr__(self) -> str:
        return (f"WorldState({len(self.investors)} investors, {len(self.loans)} loans, "
                f"{len(self.investments)} investments, "
                f"{len(self.interest_payments)} interest payments)")


# ============================================================================
# READ ACCESSORS
# ============================================================================

def get_investor(state: WorldState, investor_id: InvestorId) -> Investor:
    try:
        return state.investors[investor_id]
    except KeyError:
        raise NotFound("Investor", investor_id) from None


def get_loan(state: WorldState, loan_id: LoanId) -> Loan:
    try:
        return state.loans[loan_id]
    except KeyError:
        raise NotFound("Loan", loan_id) from None


def get_loan_and_tranche(state: WorldState, tranche_id: TrancheId) -> Tuple[Loan, Tranche]:
    """
    Resolve a compound tranche id into its loan and tranche.

    Raises:
        NotFound: if the loan, or the named tranche within it, does not exist
    """
    loan = get_loan(state, tranche_id.loan_id)
    try:
        tranche = loan.tranches[tranche_id.name]
    except KeyError:
        raise NotFound("Tranche", tranche_id) from None
    return loan, tranche


def get_tranche(state: WorldState, tranche_id: TrancheId) -> Tranche:
    return get_loan_and_tranche(state, tranche_id)[1]


def get_investment(state: WorldState, investment_id: InvestmentId) -> Investment:
    try:
        return state.investments[investment_id]
    except KeyError:
        raise NotFound("Investment", investment_id) from None


def get_interest_payments(state: WorldState, investment_id: InvestmentId) -> Tuple[InterestPayment, ...]:
    """All payments recorded for one investment, oldest first."""
    return tuple(p for p in state.interest_payments if p.investment_id == investment_id)


def get_interest_payment_amount(
    state: WorldState,
    investment_id: InvestmentId,
    period: Period,
) -> Money:
    """
    Amount paid to an investment for an exact accrual period.

    Duplicate runs over the same period are not prevented; the first
    recorded payment wins.

    Raises:
        NotFound: if no payment matches both the investment and the period
    """
    period = tuple(period)
    for payment in state.interest_payments:
        if payment.investment_id == investment_id and payment.period == period:
            return payment.amount
    raise NotFound("InterestPayment", (investment_id, period))


# ============================================================================
# UPDATE HELPERS (return new snapshots)
# ============================================================================

def _with_entry(mapping: Mapping, key: Any, value: Any) -> Dict:
    updated = dict(mapping)
    updated[key] = value
    return updated


def update_investor(
    state: WorldState,
    investor_id: InvestorId,
    fn: Callable[[Investor], Investor],
) -> WorldState:
    investor = fn(get_investor(state, investor_id))
    return replace(state, investors=_with_entry(state.investors, investor_id, investor))


def update_loan(
    state: WorldState,
    loan_id: LoanId,
    fn: Callable[[Loan], Loan],
) -> WorldState:
    loan = fn(get_loan(state, loan_id))
    return replace(state, loans=_with_entry(state.loans, loan_id, loan))


def update_tranche(
    state: WorldState,
    tranche_id: TrancheId,
    fn: Callable[[Tranche], Tranche],
) -> WorldState:
    """Replace one tranche within its loan, keeping the loan's other tranches."""
    _, tranche = get_loan_and_tranche(state, tranche_id)
    updated = fn(tranche)
    return update_loan(
        state, tranche_id.loan_id,
        lambda loan: replace(loan, tranches=_with_entry(loan.tranches, tranche_id.name, updated)),
    )


def add_investment(state: WorldState, investment: Investment) -> InvestmentResult:
    if investment.id in state.investments:
        return InvestmentResult(state, DuplicateInvestmentDetected())
    return InvestmentResult(
        replace(state, investments=_with_entry(state.investments, investment.id, investment))
    )


def add_interest_payment(state: WorldState, payment: InterestPayment) -> WorldState:
    """Append a payment to the history (oldest first)."""
    return replace(state, interest_payments=state.interest_payments + (payment,))


def add_investor(state: WorldState, investor: Investor) -> WorldState:
    """
    Register a new investor.

    Raises:
        ValueError: If the investor is already registered
    """
    if investor.id in state.investors:
        raise ValueError(f"Investor {investor.id} already registered")
    return replace(state, investors=_with_entry(state.investors, investor.id, investor))


def add_loan(state: WorldState, loan: Loan) -> WorldState:
    """
    Register a new loan together with its tranches.

    Raises:
        ValueError: If the loan is already registered
    """
    if loan.id in state.loans:
        raise ValueError(f"Loan {loan.id} already registered")
    return replace(state, loans=_with_entry(state.loans, loan.id, loan))


# ============================================================================
# CONSERVATION
# ============================================================================

def _sum(amounts: Iterable[Money]) -> Money:
    total = Money.zero()
    for amount in amounts:
        total = total + amount
    return total


def _tranches(state: WorldState) -> Iterable[Tranche]:
    for loan_id in sorted(state.loans):
        yield from state.loans[loan_id].tranches.values()


def total_wallets(state: WorldState) -> Money:
    return _sum(state.investors[i].wallet for i in sorted(state.investors))


def total_invested(state: WorldState) -> Money:
    return _sum(t.invested for t in _tranches(state))


def total_available(state: WorldState) -> Money:
    return _sum(t.available for t in _tranches(state))


def total_interest_paid(state: WorldState) -> Money:
    return _sum(p.amount for p in state.interest_payments)


def verify_conservation(
    state: WorldState,
    expected_total: Optional[Money] = None,
    tolerance: Decimal = Decimal("0"),
) -> Dict[str, Any]:
    """
    Check that investing and accrual neither create nor destroy money.

    Investing moves money from a wallet into a tranche, so
    wallets + invested is unchanged by it. Accrual credits wallets and
    records the same amount in the payment history, so
        total = wallets + invested - interest_paid
    is constant across every engine operation.

    Args:
        state: Snapshot to check
        expected_total: The total of an earlier snapshot. If omitted the
            check only reports the current total.
        tolerance: Maximum allowed absolute difference

    Returns:
        Dict with keys:
        - 'valid': bool - True if the total matches (or nothing was expected)
        - 'total': Money - wallets + invested - interest_paid
        - 'expected': Money or None
        - 'difference': Money - total - expected (zero if nothing was expected)

    Example:
        before = verify_conservation(state)['total']
        state = produce_interest_for_investments(state, period)
        assert verify_conservation(state, before)['valid']
    """
    total = total_wallets(state) + total_invested(state) - total_interest_paid(state)
    if expected_total is None:
        return {'valid': True, 'total': total, 'expected': None, 'difference': Money.zero()}
    difference = total - expected_total
    return {
        'valid': abs(difference.amount) <= tolerance,
        'total': total,
        'expected': expected_total,
        'difference': difference,
    }
