"""
Shared pytest configuration and fixtures for all tests.

Key fixtures:
- entities: namespace of sample entity classes (dataclass and SQLAlchemy
  declarative) shared by the builder and repository suites.
"""

import sys
from datetime import datetime
from pathlib import Path
from types import SimpleNamespace
from typing import Optional

import pytest
from sqlalchemy import Column, Integer, Numeric, String
from sqlalchemy.orm import declarative_base

# Add project root to sys.path to enable importing project modules
# This allows tests to import from 'core', 'sql', 'models', etc. without installation
project_root = Path(__file__).parent.parent
if str(project_root) not in sys.path:
    sys.path.insert(0, str(project_root))

from models.metadata import column, projection, table  # noqa: E402


def pytest_configure(config):
    """Register custom markers for test categorization."""
    config.addinivalue_line("markers", "unit: Unit tests - isolated function-level tests")
    config.addinivalue_line("markers", "integration: Integration tests - component interactions")
    config.addinivalue_line("markers", "smoke: Smoke tests - basic functionality checks")
    config.addinivalue_line("markers", "edge_case: Edge case tests - boundary conditions")
    config.addinivalue_line("markers", "regression: Regression tests - previously fixed bugs")


# ====================
# Sample entities
# ====================

@table("table_1")
class Table1:
    id: Optional[int] = column("id", primary_key=True)
    created_date: Optional[datetime] = column("created_date")
    address: Optional[str] = column("address")
    name: Optional[str] = column("name")


@table("table_2")
class Table2:
    id: Optional[int] = column("id", primary_key=True)
    table_1_id: Optional[int] = column("table_1_id")
    created_date: Optional[datetime] = column("created_date")
    contact_number: Optional[str] = column("contact_number")
    location: Optional[str] = column("location")


@table("table_3")
class Table3:
    id: Optional[int] = column("id", primary_key=True)
    table_2_id: Optional[int] = column("table_2_id")
    amount: Optional[float] = column("amount")
    label: Optional[str] = column("label")


@table("accounts")
class Account:
    id: Optional[int] = column("id", primary_key=True)
    table_1_id: Optional[int] = column("table_1_id")
    status: Optional[str] = column("status")


@projection
class ReturnClass:
    id: Optional[int] = column("id")
    created_date: Optional[datetime] = column("created_date", source=Table2)
    address: Optional[str] = column("address")
    contact_number: Optional[str] = column("contact_number")
    location: Optional[str] = column("location")


@projection
class MainFirstReturn:
    id: Optional[int] = column("id")
    created_date: Optional[datetime] = column("created_date")


@projection
class RenamedReturn:
    identifier: Optional[int] = column("id")
    created: Optional[datetime] = column("created_date")
    Name: Optional[str] = column("name")


@projection
class AmountReturn:
    id: Optional[int] = column("id")
    amount: Optional[float] = column("amount")


@projection
class UnresolvableReturn:
    id: Optional[int] = column("id")
    missing: Optional[str] = column("does_not_exist")


@table("x")
class ShortName:
    id: Optional[int] = column("id", primary_key=True)


class Unmapped:
    id = None


Base = declarative_base()


class Customer(Base):
    __tablename__ = 'customers'

    customer_id = Column('id', Integer, primary_key=True)
    full_name = Column('name', String(100))


class Invoice(Base):
    __tablename__ = 'invoices'

    id = Column(Integer, primary_key=True)
    customer_id = Column(Integer)
    total = Column(Numeric(12, 2), info={'source': Customer})


@pytest.fixture
def entities():
    """Namespace of the sample entity classes."""
    return SimpleNamespace(
        Table1=Table1,
        Table2=Table2,
        Table3=Table3,
        Account=Account,
        ReturnClass=ReturnClass,
        MainFirstReturn=MainFirstReturn,
        RenamedReturn=RenamedReturn,
        AmountReturn=AmountReturn,
        UnresolvableReturn=UnresolvableReturn,
        ShortName=ShortName,
        Unmapped=Unmapped,
        Customer=Customer,
        Invoice=Invoice,
    )
