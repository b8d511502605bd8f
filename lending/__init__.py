"""
lending - Peer-to-Peer Lending Ledger

Investors place money into tranches of loans; interest accrued daily is
periodically credited back to their wallets. The whole book is an
immutable WorldState snapshot transformed by pure functions.

Usage:
    from datetime import datetime
    from decimal import Decimal
    from lending import (
        Money, InvestorId, LoanId, TrancheId, Investor, Tranche, Loan,
        WorldState, new_investment, make_investment,
        produce_interest_for_investments, get_investor,
    )

    london = LoanId("London")
    state = WorldState.from_entities(
        investors=[Investor(InvestorId("alice"), Money("1000"))],
        loans=[Loan.of(london, datetime(2018, 6, 20),
                       Tranche(TrancheId(london, "A"), Decimal("0.009"), Money("100000")))],
    )

    investment = new_investment(InvestorId("alice"), Money("500"),
                                TrancheId(london, "A"), datetime(2018, 10, 1))
    result = make_investment(state, investment)
    if result.ok:
        state = result.state

    state = produce_interest_for_investments(
        state, (datetime(2018, 10, 1), datetime(2018, 10, 31)))
    get_investor(state, InvestorId("alice")).wallet
"""

# Core types
from .core import (
    Money,
    Period,
    InvestorId,
    LoanId,
    TrancheId,
    InvestmentId,
    Investor,
    Tranche,
    Loan,
    Investment,
    InterestPayment,
    LendingError,
    NotFound,
    InvestmentRejected,
    StaleSnapshot,
    InvestmentError,
    CannotInvestZeroOrLess,
    InvestorDoesNotHaveEnoughMoneyToInvest,
    TrancheDoesNotHaveSpaceForInvestment,
    CannotInvestBeforeLoanStart,
    DuplicateInvestmentDetected,
    InvestmentResult,
    TRANCHE_A,
    TRANCHE_B,
    MONEY_DECIMAL_PLACES,
    MONEY_ROUNDING,
    MONTHS_PER_YEAR,
    DAYS_PER_YEAR,
)

# World state
from .world import (
    WorldState,
    get_investor,
    get_loan,
    get_loan_and_tranche,
    get_tranche,
    get_investment,
    get_interest_payments,
    get_interest_payment_amount,
    add_investment,
    add_interest_payment,
    add_investor,
    add_loan,
    total_wallets,
    total_invested,
    total_available,
    total_interest_paid,
    verify_conservation,
)

# Investment engine
from .investment import (
    new_investment,
    validate_investment,
    make_investment,
)

# Interest accrual engine
from .interest import (
    convert_monthly_to_daily_interest_rate,
    accrual_days,
    calculate_interest_for_investment,
    round_to_pennies,
    produce_interest_for_investments,
    monthly_periods,
)

# Book
from .book import LoanBook, BookEntry

__all__ = [
    # Core
    'Money', 'Period', 'InvestorId', 'LoanId', 'TrancheId', 'InvestmentId',
    'Investor', 'Tranche', 'Loan', 'Investment', 'InterestPayment',
    'LendingError', 'NotFound', 'InvestmentRejected', 'StaleSnapshot',
    'InvestmentError', 'CannotInvestZeroOrLess', 'InvestorDoesNotHaveEnoughMoneyToInvest',
    'TrancheDoesNotHaveSpaceForInvestment', 'CannotInvestBeforeLoanStart',
    'DuplicateInvestmentDetected', 'InvestmentResult',
    'TRANCHE_A', 'TRANCHE_B', 'MONEY_DECIMAL_PLACES', 'MONEY_ROUNDING',
    'MONTHS_PER_YEAR', 'DAYS_PER_YEAR',
    # World state
    'WorldState', 'get_investor', 'get_loan', 'get_loan_and_tranche', 'get_tranche',
    'get_investment', 'get_interest_payments', 'get_interest_payment_amount',
    'add_investment', 'add_interest_payment', 'add_investor', 'add_loan',
    'total_wallets', 'total_invested', 'total_available', 'total_interest_paid',
    'verify_conservation',
    # Investment engine
    'new_investment', 'validate_investment', 'make_investment',
    # Interest accrual engine
    'convert_monthly_to_daily_interest_rate', 'accrual_days',
    'calculate_interest_for_investment', 'round_to_pennies',
    'produce_interest_for_investments', 'monthly_periods',
    # Book
    'LoanBook', 'BookEntry',
]

__version__ = '1.0.0'
