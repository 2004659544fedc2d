"""
Pytest fixtures for the Leasehold backend test suite.

Provides:
- An in-memory SQLite database, created and dropped around every test
- A TestClient bound to the same session as the test
- Factories for users, tenants, units and leases
- Bearer-token helpers for admin and tenant callers
"""
import os

# Must be set before config/database are imported
os.environ["DATABASE_URL"] = "sqlite://"
os.environ.setdefault("JWT_SECRET", "test-secret")

from datetime import date
from decimal import Decimal
from itertools import count

import pytest
from fastapi.testclient import TestClient

from auth import create_access_token, hash_password
from database import SessionLocal, engine, get_session, init_db
from models import Base, Lease, LeaseStatus, LeaseType, Property, Tenant, Unit, UnitStatus, User, UserRole
from services.accounting_service import Receipt

_sequence = count(1)


class FakeAccountingAdapter:
     """In-memory accounting sink recording every receipt it is asked for."""

     def __init__(self, connected: bool = True, error: Exception = None):
          self.connected = connected
          self.error = error
          self.receipts = []

     def is_connected(self) -> bool:
          return self.connected

     def record_receipt(self, payer_name, amount, iso_date, memo=None):
          if self.error is not None:
               raise self.error
          receipt = Receipt(id=str(100 + len(self.receipts)), txn_date=iso_date, total_amount=Decimal(str(amount)))
          self.receipts.append({"payer_name": payer_name, "amount": amount, "iso_date": iso_date, "memo": memo})
          return receipt


# =============================================================================
# Database
# =============================================================================


@pytest.fixture
def db():
     init_db()
     session = SessionLocal()
     try:
          yield session
     finally:
          session.rollback()
          session.close()
          Base.metadata.drop_all(bind=engine)


# =============================================================================
# Factories
# =============================================================================


@pytest.fixture
def make_user(db):
     def _make_user(role=UserRole.TENANT, email=None, password="secret123", first_name="Test", last_name="User"):
          user = User(
               email=email or f"user{next(_sequence)}@example.com",
               password=hash_password(password),
               first_name=first_name,
               last_name=last_name,
               role=role,
          )
          db.add(user)
          db.commit()
          return user
     return _make_user


@pytest.fixture
def make_tenant(db, make_user):
     def _make_tenant(first_name="Jane", last_name="Doe", business_name=None, email=None):
          user = make_user(UserRole.TENANT, email=email, first_name=first_name, last_name=last_name)
          tenant = Tenant(user_id=user.id, business_name=business_name)
          db.add(tenant)
          db.commit()
          return tenant
     return _make_tenant


@pytest.fixture
def make_unit(db):
     def _make_unit(unit_number=None, property_name="Himalayan Plaza", status=UnitStatus.VACANT):
          prop = Property(name=property_name)
          db.add(prop)
          db.flush()
          unit = Unit(property_id=prop.id, unit_number=unit_number or f"U-{next(_sequence)}", status=status)
          db.add(unit)
          db.commit()
          return unit
     return _make_unit


@pytest.fixture
def make_lease(db):
     """Create a lease through the service so unit/tenant bookkeeping runs."""
     from services.lease_service import LeaseService

     def _make_lease(
          tenant,
          unit,
          monthly_rent="2000.00",
          start_date=date(2025, 1, 1),
          end_date=date(2026, 12, 31),
          lease_type=LeaseType.COMMERCIAL,
     ):
          lease = LeaseService.create_lease(
               db,
               tenant_id=tenant.id,
               unit_id=unit.id,
               start_date=start_date,
               end_date=end_date,
               monthly_rent=Decimal(monthly_rent),
               lease_type=lease_type,
          )
          db.commit()
          return lease
     return _make_lease


@pytest.fixture
def active_lease(make_tenant, make_unit, make_lease) -> Lease:
     lease = make_lease(make_tenant(), make_unit())
     assert lease.status == LeaseStatus.ACTIVE
     return lease


# =============================================================================
# API
# =============================================================================


@pytest.fixture
def accounting():
     return FakeAccountingAdapter()


@pytest.fixture
def client(db, accounting):
     from main import app
     from routers.payments import get_accounting_adapter

     def _override_session():
          try:
               yield db
               db.commit()
          except Exception:
               db.rollback()
               raise

     app.dependency_overrides[get_session] = _override_session
     app.dependency_overrides[get_accounting_adapter] = lambda: accounting
     with TestClient(app, raise_server_exceptions=False) as test_client:
          yield test_client
     app.dependency_overrides.clear()


def token_for(user: User) -> str:
     tenant_id = user.tenant.id if user.tenant else None
     return create_access_token({"id": user.id, "role": user.role.value, "tenant_id": tenant_id})


def auth_header(user: User) -> dict:
     return {"Authorization": f"Bearer {token_for(user)}"}


@pytest.fixture
def admin(make_user) -> User:
     return make_user(UserRole.ADMIN, first_name="Admin")


@pytest.fixture
def admin_headers(admin) -> dict:
     return auth_header(admin)


@pytest.fixture
def tenant_headers():
     """Headers for a tenant: tenant_headers(tenant)."""
     def _tenant_headers(tenant: Tenant) -> dict:
          return auth_header(tenant.user)
     return _tenant_headers
