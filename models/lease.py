import enum
from datetime import date, timedelta
from typing import Optional

from sqlalchemy import Column, Integer, String, Numeric, Date, Text, ForeignKey, Enum, Index, text
from sqlalchemy.orm import relationship
from .base import Base, TimestampMixin


class LeaseType(str, enum.Enum):
     RESIDENTIAL = "RESIDENTIAL"
     COMMERCIAL = "COMMERCIAL"


class LeaseStatus(str, enum.Enum):
     """Stored lease state. EXPIRED and TERMINATED are terminal."""
     ACTIVE = "ACTIVE"
     EXPIRED = "EXPIRED"
     TERMINATED = "TERMINATED"


_ACTIVE_ONLY = text("status = 'ACTIVE'")


class Lease(TimestampMixin, Base):
     """
     Lease model - rental agreement between a tenant and a unit.

     monthly_rent is the current authoritative rent. It is written when the
     lease is created and afterwards only by applying a LeaseEscalation.
     """
     __tablename__ = "leases"
     __table_args__ = (
          # At most one ACTIVE lease per unit
          Index(
               "uq_leases_unit_active",
               "unit_id",
               unique=True,
               mssql_where=_ACTIVE_ONLY,
               postgresql_where=_ACTIVE_ONLY,
               sqlite_where=_ACTIVE_ONLY,
          ),
     )

     id = Column(Integer, primary_key=True, autoincrement=True)
     tenant_id = Column(Integer, ForeignKey("tenants.id"), nullable=False, index=True)
     unit_id = Column(Integer, ForeignKey("units.id"), nullable=False, index=True)

     lease_type = Column(
          Enum(LeaseType, name="lease_type", native_enum=False, create_constraint=True),
          default=LeaseType.RESIDENTIAL,
          nullable=False,
     )

     # Lease period
     start_date = Column(Date, nullable=False)
     end_date = Column(Date, nullable=False)

     # Pricing
     monthly_rent = Column(Numeric(12, 2), nullable=False)
     deposit_amount = Column(Numeric(12, 2), nullable=True)

     document_url = Column(String(500), nullable=True)
     notes = Column(Text, nullable=True)

     status = Column(
          Enum(LeaseStatus, name="lease_status", native_enum=False, create_constraint=True),
          default=LeaseStatus.ACTIVE,
          nullable=False,
          index=True,
     )

     # Relationships
     tenant = relationship("Tenant", back_populates="leases")
     unit = relationship("Unit", back_populates="leases")
     escalations = relationship(
          "LeaseEscalation",
          back_populates="lease",
          cascade="all, delete-orphan",
          order_by="LeaseEscalation.effective_date",
     )
     insurance_records = relationship(
          "InsuranceRecord",
          back_populates="lease",
          cascade="all, delete-orphan",
          order_by="InsuranceRecord.expiration_date",
     )
     payments = relationship(
          "Payment",
          back_populates="lease",
          cascade="all, delete-orphan",
          order_by="Payment.date.desc()",
     )

     def __repr__(self):
          return f"<Lease(id={self.id}, unit_id={self.unit_id}, tenant_id={self.tenant_id}, status='{self.status}')>"

     @property
     def is_active(self) -> bool:
          return self.status == LeaseStatus.ACTIVE

     @property
     def is_commercial(self) -> bool:
          return self.lease_type == LeaseType.COMMERCIAL

     def days_left(self, today: Optional[date] = None) -> int:
          """Days left until end_date; negative once the end date has passed."""
          today = today or date.today()
          return (self.end_date - today).days

     def expired_on(self, today: Optional[date] = None) -> bool:
          """Still stored as ACTIVE but the end date has passed."""
          today = today or date.today()
          return self.is_active and self.end_date < today

     def expiring_within(self, today: Optional[date] = None, window_days: int = 60) -> bool:
          """ACTIVE and ending within the next window_days days, inclusive."""
          today = today or date.today()
          return self.is_active and today <= self.end_date <= today + timedelta(days=window_days)
