#!/usr/bin/env python3
"""
demo.py - Interactive Tutorial: Learn the Lending Book Step by Step

A walkthrough of a peer-to-peer lending book. Each step builds on the
previous one. Press Enter to advance.

WHAT YOU'LL LEARN:
  1-3:  Foundation  - Snapshots, investors, loans and tranches
  4-6:  Investing   - Accepted and rejected investments, untouched snapshots
  7-8:  Interest    - One month of accrual, day counting and rounding
  9:    Checks      - Conservation and the audit log

Run:
    python demo.py           # Interactive mode (press Enter for each step)
    python demo.py --quick   # Run all steps without pausing
"""

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
import sys

from lending import (
    LoanBook,
    Money, InvestorId, LoanId, TrancheId,
    Investor, Tranche, Loan,
    TRANCHE_A, TRANCHE_B,
    make_investment, new_investment,
    convert_monthly_to_daily_interest_rate, accrual_days,
    get_investor, get_tranche, get_loan,
)


# ============================================================================
# CONFIGURATION
# ============================================================================

@dataclass
class DemoConfig:
    """Configuration for the tutorial. Modify these to experiment."""
    loan_start: datetime = datetime(2015, 10, 1)
    tranche_size: Decimal = Decimal("1000")
    rate_a: Decimal = Decimal("0.03")
    rate_b: Decimal = Decimal("0.06")
    starting_wallet: Decimal = Decimal("1000")
    accrual_period: tuple = (datetime(2015, 10, 1), datetime(2015, 10, 31))


CONFIG = DemoConfig()

LOAN = LoanId("TestLoan")
TRANCHE_ID_A = TrancheId(LOAN, TRANCHE_A)
TRANCHE_ID_B = TrancheId(LOAN, TRANCHE_B)
INVESTORS = [InvestorId(f"Investor{n}") for n in range(1, 5)]

# Global state for interactive mode
QUICK_MODE = "--quick" in sys.argv


def wait_for_enter():
    """Pause for user input unless in quick mode."""
    if not QUICK_MODE:
        input("\n[Press Enter to continue...]")


def step_header(number: int, title: str, objective: str):
    """Print a step header with learning objective."""
    print(f"\n{'='*70}")
    print(f"STEP {number}: {title}")
    print(f"{'='*70}")
    print(f"\nObjective: {objective}\n")


def section_header(text: str):
    """Print a section header within a step."""
    print(f"\n--- {text} ---\n")


def show_wallets(book: LoanBook):
    for investor_id in INVESTORS:
        print(f"  {str(investor_id):<10} wallet = {get_investor(book.state, investor_id).wallet}")


def show_tranches(book: LoanBook):
    for tranche_id in (TRANCHE_ID_A, TRANCHE_ID_B):
        tranche = get_tranche(book.state, tranche_id)
        print(f"  {str(tranche_id):<12} available = {str(tranche.available):<8} invested = {tranche.invested}")


# ============================================================================
# PHASE 1: FOUNDATION (Steps 1-3)
# ============================================================================

def step_01_empty_book():
    """Create an empty book and look at its snapshot."""
    step_header(1, "The Empty Book",
        "Understand that all data lives in an immutable WorldState snapshot.")

    print("""
    A WorldState snapshot holds four things:

    1. INVESTORS         - who has money in their wallet
    2. LOANS             - what can be invested in, split into tranches
    3. INVESTMENTS       - who put how much into which tranche
    4. INTEREST PAYMENTS - what has been paid out, period by period

    Snapshots never change. Every operation returns a new one.
    A LoanBook holds the current snapshot and applies writes one at a time.
    """)

    wait_for_enter()

    print(">>> book = LoanBook('tutorial')")
    book = LoanBook("tutorial", verbose=True)
    print(f"\n{book!r}")
    return book


def step_02_register_investors(book: LoanBook):
    """Register four investors with the same wallet."""
    step_header(2, "Investors",
        "Register investors. Each has a wallet of Money.")

    for investor_id in INVESTORS:
        book.register_investor(Investor(investor_id, Money(CONFIG.starting_wallet)))

    section_header("Duplicate registration")
    try:
        book.register_investor(Investor(INVESTORS[0], Money("1")))
    except ValueError as e:
        print(f"  Refused: {e}")
    return book


def step_03_register_loan(book: LoanBook):
    """Register a loan with two tranches."""
    step_header(3, "Loans and Tranches",
        "A loan is split into tranches, each with its own monthly rate and capacity.")

    loan = Loan.of(
        LOAN, CONFIG.loan_start,
        Tranche(TRANCHE_ID_A, CONFIG.rate_a, Money(CONFIG.tranche_size)),
        Tranche(TRANCHE_ID_B, CONFIG.rate_b, Money(CONFIG.tranche_size)),
    )
    book.register_loan(loan)

    section_header("Tranches")
    show_tranches(book)
    print(f"\n  Loan starts on {get_loan(book.state, LOAN).start_date:%Y-%m-%d}")
    return book


# ============================================================================
# PHASE 2: INVESTING (Steps 4-6)
# ============================================================================

def step_04_first_investment(book: LoanBook):
    """Investor1 fills tranche A."""
    step_header(4, "An Accepted Investment",
        "An investment moves money from a wallet into a tranche.")

    print(">>> book.invest(Investor1, Money('1000'), TestLoan/A, 2015-10-03)")
    result = book.invest(INVESTORS[0], Money("1000"), TRANCHE_ID_A, datetime(2015, 10, 3))
    print(f"\n  ok = {result.ok}")

    section_header("After")
    show_wallets(book)
    show_tranches(book)
    return book


def step_05_rejections(book: LoanBook):
    """Two investments that break the rules."""
    step_header(5, "Rejected Investments",
        "Business-rule failures come back as error values, not exceptions.")

    print(">>> book.invest(Investor2, Money('1'), TestLoan/A, 2015-10-04)")
    result = book.invest(INVESTORS[1], Money("1"), TRANCHE_ID_A, datetime(2015, 10, 4))
    print(f"  error = {result.error}")

    print("\n>>> book.invest(Investor3, Money('500'), TestLoan/B, 2015-10-10)")
    result = book.invest(INVESTORS[2], Money("500"), TRANCHE_ID_B, datetime(2015, 10, 10))
    print(f"  ok = {result.ok}")

    print("\n>>> book.invest(Investor4, Money('1100'), TestLoan/B, 2015-10-25)")
    result = book.invest(INVESTORS[3], Money("1100"), TRANCHE_ID_B, datetime(2015, 10, 25))
    print(f"  error = {result.error}")

    section_header("Checks run in order")
    print("""
    1. amount must be positive
    2. the investor's wallet must cover the amount
    3. the tranche must have space for the amount
    4. the date must not be before the loan start
    5. the investment id must not already be recorded

    The first failing check is the one reported.
    """)
    return book


def step_06_pure_engine(book: LoanBook):
    """Call the engine directly on a snapshot."""
    step_header(6, "Snapshots Are Never Modified",
        "A refused investment hands back the exact snapshot it was given.")

    snapshot = book.state
    investment = new_investment(INVESTORS[1], Money("-5"), TRANCHE_ID_B, datetime(2015, 10, 12))
    result = make_investment(snapshot, investment)
    print(f"  error                 = {result.error}")
    print(f"  result.state is input = {result.state is snapshot}")
    print(f"  book version          = {book.version}")
    return book


# ============================================================================
# PHASE 3: INTEREST (Steps 7-8)
# ============================================================================

def step_07_day_counting(book: LoanBook):
    """Show how days and daily rates are computed."""
    step_header(7, "Counting Days",
        "Interest runs from the latest of investment date, period start and loan start.")

    period = CONFIG.accrual_period
    for investor_id, tranche_id, date in [
        (INVESTORS[0], TRANCHE_ID_A, datetime(2015, 10, 3)),
        (INVESTORS[2], TRANCHE_ID_B, datetime(2015, 10, 10)),
    ]:
        tranche = get_tranche(book.state, tranche_id)
        days = accrual_days(date, CONFIG.loan_start, period)
        daily = convert_monthly_to_daily_interest_rate(tranche.monthly_interest_rate)
        print(f"  {str(investor_id):<10} {days:>3} days at {tranche.monthly_interest_rate} x 12 / 365"
              f" = {daily:.8f} per day")
    return book


def step_08_accrual(book: LoanBook):
    """Run one month of interest."""
    step_header(8, "Accruing Interest",
        "Each investment's interest is rounded to pennies and credited to its investor.")

    payments = book.accrue_interest(CONFIG.accrual_period)

    section_header("Payments")
    for payment in payments:
        investor_id = book.state.investments[payment.investment_id].investor_id
        print(f"  {str(investor_id):<10} {payment.amount}")

    section_header("Wallets")
    show_wallets(book)
    return book


# ============================================================================
# PHASE 4: CHECKS (Step 9)
# ============================================================================

def step_09_conservation(book: LoanBook):
    """Prove nothing was created or lost."""
    step_header(9, "Conservation and the Log",
        "Wallets + invested - interest paid never changes.")

    expected = Money(CONFIG.starting_wallet) * len(INVESTORS)
    result = book.verify_conservation(expected)
    print(f"  total      = {result['total']}")
    print(f"  expected   = {result['expected']}")
    print(f"  valid      = {result['valid']}")

    section_header("Audit log")
    for entry in book.log:
        print(f"  #{entry.sequence:<3} v{entry.version:<3} {entry.kind:<18} {entry.detail}")
    return book


def main():
    """Run the complete tutorial."""
    print("=" * 70)
    print("       LENDING BOOK - INTERACTIVE TUTORIAL")
    print("=" * 70)

    if QUICK_MODE:
        print("Running in QUICK mode (no pauses)")
    else:
        print("Running in INTERACTIVE mode (press Enter to advance)")

    wait_for_enter()

    book = step_01_empty_book()
    wait_for_enter()

    for step in (
        step_02_register_investors,
        step_03_register_loan,
        step_04_first_investment,
        step_05_rejections,
        step_06_pure_engine,
        step_07_day_counting,
        step_08_accrual,
        step_09_conservation,
    ):
        book = step(book)
        wait_for_enter()

    print("\n" + "=" * 70)
    print("       TUTORIAL COMPLETE!")
    print("=" * 70)
    print("""
    Next steps:
      - See lending/investment.py and lending/interest.py for the engines
      - Run tests: pytest tests/
    """)


if __name__ == "__main__":
    main()
