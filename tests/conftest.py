"""
Shared fixtures for the statement_intel test suite.
"""
from datetime import date

import pytest

from statement_intel.classification.registry import load_default_rules
from statement_intel.common.models import Transaction
from statement_intel.core.normalizer import transaction_hash


@pytest.fixture(scope="session")
def default_rules():
    """The packaged UK provider rule set."""
    return load_default_rules()


@pytest.fixture
def make_transaction():
    """Factory for transactions with a fingerprint derived like the parsers do."""
    def _make(day, description, amount, internal_id=None, owner_id="user-1", balance=None):
        return Transaction(
            date=day,
            description=description,
            amount=amount,
            balance=balance,
            hash=transaction_hash(owner_id, amount, description),
            internal_id=internal_id,
        )
    return _make


@pytest.fixture
def british_gas_transactions(make_transaction):
    """Three monthly British Gas direct debits."""
    return [
        make_transaction(date(2024, 1, 1), "DD BRITISH GAS", -45.00, internal_id=0),
        make_transaction(date(2024, 2, 1), "DD BRITISH GAS", -45.50, internal_id=1),
        make_transaction(date(2024, 3, 1), "DD BRITISH GAS", -44.80, internal_id=2),
    ]


@pytest.fixture
def lloyds_statement():
    """Plain-text statement with three British Gas debits and one salary credit."""
    return b"""Lloyds Bank
Account Number: 12345678
Statement Period: 01/01/2024 to 31/03/2024
01/01/2024 DD BRITISH GAS -45.00
15/01/2024 SALARY ACME LTD +2,500.00
01/02/2024 DD BRITISH GAS -45.50
01/03/2024 DD BRITISH GAS -44.80
"""
