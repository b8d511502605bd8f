"""
conftest.py - Shared pytest fixtures for lending tests

Wraps the builders in tests/fixtures.py:
- The reference snapshot (Rich/Poor, London/Bristol)
- The default investment
- A quiet LoanBook seeded with the reference snapshot
"""

import pytest

from lending import LoanBook

from tests.fixtures import (
    reference_state,
    default_investment,
    sequential_ids,
)


@pytest.fixture
def state():
    """Reference snapshot with nothing invested."""
    return reference_state()


@pytest.fixture
def investment():
    """Rich invests 500 into London/A on 2018-10-01."""
    return default_investment()


@pytest.fixture
def book():
    """Quiet book over the reference snapshot with deterministic ids."""
    return LoanBook("test", reference_state(), verbose=False, id_factory=sequential_ids())
