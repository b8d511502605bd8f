"""
book.py - Stateful Holder of the Current Lending Snapshot

The engines in investment.py and interest.py are pure: they take a snapshot
and return a new one. Something has to hold the "current" snapshot and make
sure writes are applied one at a time against it. LoanBook is that single
writer.

Key responsibilities:
    - Holds the current WorldState and a version number
    - Applies investments and accrual runs, replacing the snapshot only on success
    - Rejects writes based on a stale version (optimistic concurrency)
    - Keeps an audit log of every applied or rejected operation
"""

from __future__ import annotations
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional, Tuple

from .core import (
    Money, Period,
    InvestorId, TrancheId, InvestmentId,
    Investor, Loan, Investment, InterestPayment,
    InvestmentResult, StaleSnapshot,
)
from .world import WorldState, add_investor, add_loan, verify_conservation
from .investment import make_investment, new_investment
from .interest import produce_interest_for_investments, monthly_periods


# Audit log entry kinds
ENTRY_REGISTER_INVESTOR = "REGISTER_INVESTOR"
ENTRY_REGISTER_LOAN = "REGISTER_LOAN"
ENTRY_INVESTMENT = "INVESTMENT"
ENTRY_REJECTED = "REJECTED"
ENTRY_ACCRUAL = "ACCRUAL"


@dataclass(frozen=True, slots=True)
class BookEntry:
    """
    One line of the book's audit log.

    Attributes:
        sequence: Monotonic position in the log
        kind: One of the ENTRY_* constants
        detail: Human-readable description
        version: Book version after the entry (unchanged for rejections)
    """
    sequence: int
    kind: str
    detail: str
    version: int


class LoanBook:
    """
    Single-writer holder of the current WorldState.

    Thread Safety:
        Not thread-safe. Each writer should own its LoanBook; readers may
        share any snapshot returned by `state` freely.

    Example:
        book = LoanBook("main", verbose=False)
        book.register_investor(Investor(InvestorId("alice"), Money("1000")))
        book.register_loan(Loan.of(LoanId("London"), datetime(2018, 6, 20),
                                   Tranche(TrancheId(LoanId("London"), "A"),
                                           Decimal("0.009"), Money("100000"))))
        result = book.invest(InvestorId("alice"), Money("500"),
                             TrancheId(LoanId("London"), "A"), datetime(2018, 10, 1))
        book.accrue_interest((datetime(2018, 10, 1), datetime(2018, 10, 31)))
    """

    def __init__(
        self,
        name: str,
        state: Optional[WorldState] = None,
        verbose: bool = True,
        id_factory: Callable[[], InvestmentId] = InvestmentId.generate,
    ):
        """
        Create a loan book.

        Args:
            name: Book identifier
            state: Starting snapshot (default: empty)
            verbose: Print one line per operation (default: True)
            id_factory: Supplies ids for investments minted by invest()
        """
        self.name = name
        self._state: WorldState = state if state is not None else WorldState.empty()
        self._version: int = 0
        self.verbose = verbose
        self.id_factory = id_factory
        self.log: List[BookEntry] = []

    @property
    def state(self) -> WorldState:
        """The current snapshot."""
        return self._state

    @property
    def version(self) -> int:
        """Incremented every time the snapshot is replaced."""
        return self._version

    # ========================================================================
    # INTERNALS
    # ========================================================================

    def _check_version(self, expected_version: Optional[int]) -> None:
        if expected_version is not None and expected_version != self._version:
            raise StaleSnapshot(
                f"Book {self.name} is at version {self._version}, "
                f"write was based on version {expected_version}"
            )

    def _commit(self, state: WorldState, kind: str, detail: str) -> None:
        self._state = state
        self._version += 1
        self._record(kind, detail)

    def _record(self, kind: str, detail: str) -> None:
        self.log.append(BookEntry(len(self.log), kind, detail, self._version))
        if self.verbose:
            print(f"[{self.name} v{self._version}] {kind}: {detail}")

    # ========================================================================
    # REGISTRATION
    # ========================================================================

    def register_investor(self, investor: Investor) -> None:
        """
        Raises:
            ValueError: If the investor is already registered
        """
        self._commit(
            add_investor(self._state, investor),
            ENTRY_REGISTER_INVESTOR, f"{investor.id} wallet={investor.wallet}",
        )

    def register_loan(self, loan: Loan) -> None:
        """
        Raises:
            ValueError: If the loan is already registered
        """
        tranches = ", ".join(sorted(loan.tranches))
        self._commit(
            add_loan(self._state, loan),
            ENTRY_REGISTER_LOAN, f"{loan.id} start={loan.start_date:%Y-%m-%d} tranches=[{tranches}]",
        )

    # ========================================================================
    # INVESTING
    # ========================================================================

    def submit(self, investment: Investment, expected_version: Optional[int] = None) -> InvestmentResult:
        """
        Apply an investment to the current snapshot.

        Args:
            investment: Proposed investment
            expected_version: If given, the version the caller validated
                against. A mismatch means another write landed first.

        Returns:
            The engine's InvestmentResult. The book's snapshot is replaced
            only when the result is ok.

        Raises:
            StaleSnapshot: If expected_version is not the current version
            NotFound: If the investor or tranche does not exist
        """
        self._check_version(expected_version)
        result = make_investment(self._state, investment)
        summary = f"{investment.investor_id} {investment.amount} -> {investment.tranche_id} on {investment.date:%Y-%m-%d}"
        if result.ok:
            self._commit(result.state, ENTRY_INVESTMENT, summary)
        else:
            self._record(ENTRY_REJECTED, f"{summary}: {result.error}")
        return result

    def invest(
        self,
        investor_id: InvestorId,
        amount: Money,
        tranche_id: TrancheId,
        date: datetime,
        expected_version: Optional[int] = None,
    ) -> InvestmentResult:
        """Mint a new investment with the book's id factory and submit it."""
        investment = new_investment(investor_id, amount, tranche_id, date, self.id_factory)
        return self.submit(investment, expected_version)

    # ========================================================================
    # INTEREST
    # ========================================================================

    def accrue_interest(self, period: Period, expected_version: Optional[int] = None) -> Tuple[InterestPayment, ...]:
        """
        Run interest accrual for one period.

        Returns:
            The payments recorded by this run.
        """
        self._check_version(expected_version)
        recorded_before = len(self._state.interest_payments)
        state = produce_interest_for_investments(self._state, period)
        payments = state.interest_payments[recorded_before:]
        total = Money.zero()
        for payment in payments:
            total = total + payment.amount
        start, end = period
        self._commit(
            state, ENTRY_ACCRUAL,
            f"{start:%Y-%m-%d}..{end:%Y-%m-%d} {len(payments)} payments total={total}",
        )
        return payments

    def accrue_monthly(self, start: datetime, end: datetime) -> Tuple[InterestPayment, ...]:
        """Run accrual month by month over [start, end]."""
        payments: Tuple[InterestPayment, ...] = ()
        for period in monthly_periods(start, end):
            payments += self.accrue_interest(period)
        return payments

    # ========================================================================
    # CHECKS
    # ========================================================================

    def verify_conservation(self, expected_total: Optional[Money] = None) -> Dict[str, Any]:
        """See world.verify_conservation()."""
        return verify_conservation(self._state, expected_total)

    def __repr__(self) -> str:
        return f"LoanBook({self.name!r}, version={self._version}, {self._state!r})"
