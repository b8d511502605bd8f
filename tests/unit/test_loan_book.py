"""
test_loan_book.py - Unit tests for LoanBook

Tests:
- Registration and versioning
- submit()/invest(): snapshot replaced only on success
- Version checks (StaleSnapshot)
- Accrual runs and the audit log
- Verbose output
"""

import pytest
import uuid
from datetime import datetime
from decimal import Decimal

from lending import (
    LoanBook, Money, InvestorId, LoanId, TrancheId, InvestmentId,
    Investor, Tranche, Loan, WorldState,
    StaleSnapshot, NotFound,
    TrancheDoesNotHaveSpaceForInvestment,
    get_investor, get_tranche,
)
from lending.book import (
    ENTRY_REGISTER_INVESTOR, ENTRY_REGISTER_LOAN,
    ENTRY_INVESTMENT, ENTRY_REJECTED, ENTRY_ACCRUAL,
)

from tests.fixtures import RICH, POOR, LONDON_A, LONDON_B, default_investment


OCTOBER = (datetime(2018, 10, 1), datetime(2018, 10, 31))


class TestRegistration:

    def test_empty_book(self):
        book = LoanBook("empty", verbose=False)
        assert book.state == WorldState.empty()
        assert book.version == 0
        assert book.log == []

    def test_register_investor_and_loan(self):
        book = LoanBook("new", verbose=False)
        paris = LoanId("Paris")
        book.register_investor(Investor(InvestorId("alice"), Money("100")))
        book.register_loan(Loan.of(paris, datetime(2020, 1, 1),
                                   Tranche(TrancheId(paris, "A"), Decimal("0.01"), Money("50"))))
        assert book.version == 2
        assert [e.kind for e in book.log] == [ENTRY_REGISTER_INVESTOR, ENTRY_REGISTER_LOAN]
        assert get_investor(book.state, InvestorId("alice")).wallet == Money("100")

    def test_duplicate_registration_leaves_book_alone(self, book):
        before = book.state
        with pytest.raises(ValueError):
            book.register_investor(Investor(RICH, Money("1")))
        assert book.state is before
        assert book.version == 0


class TestInvesting:

    def test_invest_replaces_snapshot(self, book):
        before = book.state
        result = book.invest(RICH, Money("500"), LONDON_A, datetime(2018, 10, 1))
        assert result.ok
        assert book.state is result.state
        assert book.version == 1
        assert get_investor(book.state, RICH).wallet == Money("9500")
        assert get_investor(before, RICH).wallet == Money("10000")

    def test_invest_uses_id_factory(self, book):
        book.invest(RICH, Money("500"), LONDON_A, datetime(2018, 10, 1))
        assert InvestmentId(uuid.UUID(int=1)) in book.state.investments

    def test_rejection_keeps_snapshot(self, book):
        before = book.state
        result = book.invest(RICH, Money("501"), LONDON_B, datetime(2018, 10, 1))
        assert result.error == TrancheDoesNotHaveSpaceForInvestment()
        assert book.state is before
        assert book.version == 0
        assert book.log[-1].kind == ENTRY_REJECTED
        assert "TrancheDoesNotHaveSpaceForInvestment" in book.log[-1].detail

    def test_submit_with_current_version(self, book):
        assert book.submit(default_investment(), expected_version=0).ok
        assert book.version == 1

    def test_submit_with_stale_version(self, book):
        book.invest(RICH, Money("100"), LONDON_B, datetime(2018, 10, 1))
        with pytest.raises(StaleSnapshot):
            book.submit(default_investment(), expected_version=0)
        assert book.version == 1
        assert default_investment().id not in book.state.investments

    def test_stale_writer_cannot_overfill_tranche(self, book):
        # Both writers validated against version 0 where London/B had 500 free
        seen = book.version
        assert book.invest(RICH, Money("400"), LONDON_B, datetime(2018, 10, 1), expected_version=seen).ok
        with pytest.raises(StaleSnapshot):
            book.invest(POOR, Money("400"), LONDON_B, datetime(2018, 10, 1), expected_version=seen)
        assert get_tranche(book.state, LONDON_B).available == Money("100")

    def test_unknown_investor_raises(self, book):
        with pytest.raises(NotFound):
            book.invest(InvestorId("Nobody"), Money("1"), LONDON_A, datetime(2018, 10, 1))
        assert book.version == 0


class TestAccrual:

    def test_accrue_returns_new_payments(self, book):
        book.invest(RICH, Money("500"), LONDON_A, datetime(2018, 10, 1))
        payments = book.accrue_interest(OCTOBER)
        assert len(payments) == 1
        assert payments[0].period == OCTOBER
        assert book.version == 2
        assert book.log[-1].kind == ENTRY_ACCRUAL

    def test_second_run_returns_only_its_payments(self, book):
        book.invest(RICH, Money("500"), LONDON_A, datetime(2018, 10, 1))
        book.accrue_interest(OCTOBER)
        november = (datetime(2018, 11, 1), datetime(2018, 11, 30))
        payments = book.accrue_interest(november)
        assert [p.period for p in payments] == [november]
        assert len(book.state.interest_payments) == 2

    def test_accrue_stale_version(self, book):
        book.invest(RICH, Money("500"), LONDON_A, datetime(2018, 10, 1))
        with pytest.raises(StaleSnapshot):
            book.accrue_interest(OCTOBER, expected_version=0)

    def test_accrue_monthly(self, book):
        book.invest(RICH, Money("500"), LONDON_A, datetime(2018, 10, 1))
        payments = book.accrue_monthly(datetime(2018, 10, 1), datetime(2018, 12, 31))
        assert [p.period[0].month for p in payments] == [10, 11, 12]

    def test_conservation_across_operations(self, book):
        before = book.verify_conservation()['total']
        book.invest(RICH, Money("500"), LONDON_A, datetime(2018, 10, 1))
        book.invest(POOR, Money("250"), LONDON_B, datetime(2018, 10, 2))
        book.accrue_monthly(datetime(2018, 10, 1), datetime(2019, 3, 31))
        assert book.verify_conservation(before)['valid']


class TestAuditLog:

    def test_sequence_numbers(self, book):
        book.invest(RICH, Money("500"), LONDON_A, datetime(2018, 10, 1))
        book.invest(RICH, Money("-1"), LONDON_A, datetime(2018, 10, 1))
        book.accrue_interest(OCTOBER)
        assert [e.sequence for e in book.log] == [0, 1, 2]
        assert [e.kind for e in book.log] == [ENTRY_INVESTMENT, ENTRY_REJECTED, ENTRY_ACCRUAL]
        assert [e.version for e in book.log] == [1, 1, 2]


class TestVerbose:

    def test_prints_when_verbose(self, capsys):
        book = LoanBook("loud", verbose=True)
        book.register_investor(Investor(InvestorId("alice"), Money("100")))
        out = capsys.readouterr().out
        assert "REGISTER_INVESTOR" in out
        assert "alice" in out

    def test_silent_when_not_verbose(self, book, capsys):
        book.invest(RICH, Money("500"), LONDON_A, datetime(2018, 10, 1))
        assert capsys.readouterr().out == ""

    def test_repr(self, book):
        assert "version=0" in repr(book)
