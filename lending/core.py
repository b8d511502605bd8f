"""
Core types for the peer-to-peer lending ledger.

This module provides the foundational data structures of the lending system:
1. Configuration: decimal context and constants
2. Money: a Decimal wrapper that only mixes with other Money
3. Identifiers: InvestorId, LoanId, TrancheId, InvestmentId
4. Immutable entities: Investor, Tranche, Loan, Investment, InterestPayment
5. Exceptions: LendingError and its subclasses
6. Investment error values and InvestmentResult

Entities are frozen dataclasses. Nothing in this module mutates state;
every change to the lending book is expressed as a new WorldState snapshot
(see world.py).
"""

from __future__ import annotations
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal, ROUND_HALF_EVEN, getcontext
from types import MappingProxyType
from typing import Any, Mapping, Optional, Tuple, TYPE_CHECKING
import uuid

if TYPE_CHECKING:
    from .world import WorldState


# ============================================================================
# DECIMAL CONTEXT CONFIGURATION
# ============================================================================
#
# Interest is computed at full precision and rounded to pennies only as the
# final step, so the global context must carry enough digits for
# amount * rate * days without intermediate rounding.
#
# PRECONDITION: No other code should modify the global Decimal context.
#
_LENDING_DECIMAL_CONTEXT = getcontext()
_LENDING_DECIMAL_CONTEXT.prec = 50
_LENDING_DECIMAL_CONTEXT.rounding = ROUND_HALF_EVEN


# ============================================================================
# CONSTANTS
# ============================================================================

# Money is settled in pennies.
MONEY_DECIMAL_PLACES = 2
MONEY_ROUNDING = ROUND_HALF_EVEN

# Day-count basis for converting a monthly rate into a daily one.
MONTHS_PER_YEAR = 12
DAYS_PER_YEAR = 365

# Tranche names seen in practice (strings, not enum: a loan may carry any
# finite set of named tranches).
TRANCHE_A = "A"
TRANCHE_B = "B"

# An accrual period (start, end), inclusive on both ends.
Period = Tuple[datetime, datetime]


def _to_decimal(value: Any, what: str) -> Decimal:
    if isinstance(value, bool):
        raise TypeError(f"{what} must be numeric, got bool")
    if not isinstance(value, Decimal):
        value = Decimal(str(value))
    if value.is_nan() or value.is_infinite():
        raise ValueError(f"{what} must be finite, got {value}")
    return value


def _freeze(mapping: Optional[Mapping]) -> Mapping:
    """
    Copy a mapping into a read-only view. Entities inside are shared.

    A mapping that is already a read-only view is returned as is, so an
    update shares every map it did not touch with the previous snapshot.
    """
    if isinstance(mapping, MappingProxyType):
        return mapping
    return MappingProxyType(dict(mapping or {}))


# ============================================================================
# MONEY
# ============================================================================

@dataclass(frozen=True, slots=True, order=True)
class Money:
    """
    An exact monetary amount.

    Money is kept apart from plain decimals (rates, day counts) so the two
    cannot be mixed by accident:
        Money + Money      -> Money
        Money * Decimal    -> Money    (scaling by a rate or a count)
        Money * Money      -> TypeError
        Money + Decimal    -> TypeError

    Values given as int, str or float are converted through str() so that
    Money(0.1) == Money("0.1").
    """
    amount: Decimal

    def __post_init__(self):
        if isinstance(self.amount, Money):
            object.__setattr__(self, 'amount', self.amount.amount)
        else:
            object.__setattr__(self, 'amount', _to_decimal(self.amount, "Money amount"))

    @classmethod
    def zero(cls) -> Money:
        return cls(Decimal("0"))

    def __add__(self, other: Money) -> Money:
        if not isinstance(other, Money):
            return NotImplemented
        return Money(self.amount + other.amount)

    def __sub__(self, other: Money) -> Money:
        if not isinstance(other, Money):
            return NotImplemented
        return Money(self.amount - other.amount)

    def __neg__(self) -> Money:
        return Money(-self.amount)

    def __mul__(self, factor) -> Money:
        if isinstance(factor, Money):
            raise TypeError("Cannot multiply Money by Money")
        if isinstance(factor, bool) or not isinstance(factor, (Decimal, int)):
            return NotImplemented
        return Money(self.amount * Decimal(factor))

    __rmul__ = __mul__

    def __bool__(self) -> bool:
        return bool(self.amount)

    def is_positive(self) -> bool:
        return self.amount > 0

    def is_negative(self) -> bool:
        return self.amount < 0

    def round_to_cents(self) -> Money:
        """Round to MONEY_DECIMAL_PLACES using banker's rounding."""
        quantizer = Decimal(10) ** -MONEY_DECIMAL_PLACES
        return Money(self.amount.quantize(quantizer, rounding=MONEY_ROUNDING))

    def __str__(self) -> str:
        return str(self.amount)

    def __repr__(self) -> str:
        return f"Money('{self.amount}')"


# ============================================================================
# IDENTIFIERS
# ============================================================================

@dataclass(frozen=True, slots=True, order=True)
class InvestorId:
    value: str

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True, slots=True, order=True)
class LoanId:
    value: str

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True, slots=True, order=True)
class TrancheId:
    """Compound identifier: a named tranche within a loan."""
    loan_id: LoanId
    name: str

    def __post_init__(self):
        if not self.name or not self.name.strip():
            raise ValueError("Tranche name cannot be empty")

    def __str__(self) -> str:
        return f"{self.loan_id}/{self.name}"


@dataclass(frozen=True, slots=True, order=True)
class InvestmentId:
    value: uuid.UUID

    @classmethod
    def generate(cls) -> InvestmentId:
        """Mint a fresh random identifier."""
        return cls(uuid.uuid4())

    def __str__(self) -> str:
        return str(self.value)


# ============================================================================
# ENTITIES
# ============================================================================

@dataclass(frozen=True, slots=True)
class Investor:
    """
    Someone holding money to invest.

    Attributes:
        id: Investor identifier
        wallet: Uninvested money (interest is credited here)
    """
    id: InvestorId
    wallet: Money

    def __post_init__(self):
        if not isinstance(self.wallet, Money):
            object.__setattr__(self, 'wallet', Money(self.wallet))


@dataclass(frozen=True, slots=True)
class Tranche:
    """
    A named slice of a loan with its own rate and capacity.

    Every accepted investment moves the same amount from available to
    invested, so available + invested is constant for a tranche.

    Attributes:
        id: Compound tranche identifier
        monthly_interest_rate: Plain decimal rate (e.g. 0.009 for 0.9% a month)
        available: Capacity still open for investment
        invested: Total invested so far
    """
    id: TrancheId
    monthly_interest_rate: Decimal
    available: Money
    invested: Money = Money(Decimal("0"))

    def __post_init__(self):
        if isinstance(self.monthly_interest_rate, Money):
            raise TypeError("Tranche monthly_interest_rate is a rate, not Money")
        object.__setattr__(
            self, 'monthly_interest_rate',
            _to_decimal(self.monthly_interest_rate, "Tranche monthly_interest_rate"),
        )
        if not isinstance(self.available, Money):
            object.__setattr__(self, 'available', Money(self.available))
        if not isinstance(self.invested, Money):
            object.__setattr__(self, 'invested', Money(self.invested))
        if self.available.is_negative():
            raise ValueError(f"Tranche {self.id} available cannot be negative: {self.available}")
        if self.invested.is_negative():
            raise ValueError(f"Tranche {self.id} invested cannot be negative: {self.invested}")


@dataclass(frozen=True, slots=True)
class Loan:
    """
    A fundable instrument starting on a given date, split into tranches.

    Attributes:
        id: Loan identifier
        start_date: No investment may be dated before this
        tranches: Tranche name -> Tranche (read-only)
    """
    id: LoanId
    start_date: datetime
    tranches: Mapping[str, Tranche]

    # Holds a read-only map, so a loan is not hashable.
    __hash__ = None

    def __post_init__(self):
        if not self.tranches:
            raise ValueError(f"Loan {self.id} must have at least one tranche")
        for name, tranche in self.tranches.items():
            if tranche.id != TrancheId(self.id, name):
                raise ValueError(
                    f"Tranche {tranche.id} is filed under {self.id}/{name}"
                )
        object.__setattr__(self, 'tranches', _freeze(self.tranches))

    @classmethod
    def of(cls, loan_id: LoanId, start_date: datetime, *tranches: Tranche) -> Loan:
        """Build a loan keyed by each tranche's own name."""
        return cls(loan_id, start_date, {t.id.name: t for t in tranches})


@dataclass(frozen=True, slots=True)
class Investment:
    """
    An immutable placement of money by an investor into a tranche.

    Amounts are not validated here; make_investment() reports a bad amount
    as an error value.
    """
    id: InvestmentId
    investor_id: InvestorId
    tranche_id: TrancheId
    amount: Money
    date: datetime

    def __post_init__(self):
        if not isinstance(self.amount, Money):
            object.__setattr__(self, 'amount', Money(self.amount))


@dataclass(frozen=True, slots=True)
class InterestPayment:
    """Interest credited to one investment for one accrual period."""
    investment_id: InvestmentId
    period: Period
    amount: Money

    def __post_init__(self):
        object.__setattr__(self, 'period', tuple(self.period))


# ============================================================================
# EXCEPTIONS
# ============================================================================

class LendingError(Exception):
    """Base exception for all lending-related errors."""
    pass


class NotFound(LendingError):
    """Raised when a referenced investor, loan, tranche, investment or payment does not exist."""

    def __init__(self, entity: str, key: Any):
        super().__init__(f"{entity} {key} not found")
        self.entity = entity
        self.key = key


class InvestmentRejected(LendingError):
    """Raised by InvestmentResult.unwrap() when the investment was refused."""

    def __init__(self, error: InvestmentError):
        super().__init__(f"Investment rejected: {error}")
        self.error = error


class StaleSnapshot(LendingError):
    """Raised when a write is based on a snapshot that is no longer current."""
    pass


# ============================================================================
# INVESTMENT ERRORS (values, not exceptions)
# ============================================================================

@dataclass(frozen=True, slots=True)
class InvestmentError:
    """Base of the closed set of reasons an investment can be refused."""

    def __str__(self) -> str:
        return type(self).__name__


@dataclass(frozen=True, slots=True)
class CannotInvestZeroOrLess(InvestmentError):
    investor_id: InvestorId
    amount: Money

    def __str__(self) -> str:
        return f"CannotInvestZeroOrLess({self.investor_id}, {self.amount})"


@dataclass(frozen=True, slots=True)
class InvestorDoesNotHaveEnoughMoneyToInvest(InvestmentError):
    pass


@dataclass(frozen=True, slots=True)
class TrancheDoesNotHaveSpaceForInvestment(InvestmentError):
    pass


@dataclass(frozen=True, slots=True)
class CannotInvestBeforeLoanStart(InvestmentError):
    pass


@dataclass(frozen=True, slots=True)
class DuplicateInvestmentDetected(InvestmentError):
    pass


@dataclass(frozen=True, slots=True)
class InvestmentResult:
    """
    Outcome of an investment attempt.

    On success `state` is the new snapshot and `error` is None. On failure
    `state` is the untouched input snapshot and `error` says why.
    """
    state: WorldState
    error: Optional[InvestmentError] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    def unwrap(self) -> WorldState:
        """Return the new snapshot, or raise InvestmentRejected."""
        if self.error is not None:
            raise InvestmentRejected(self.error)
        return self.state
