import enum

from sqlalchemy import Column, Integer, String, Numeric, Date, DateTime, Boolean, ForeignKey, Enum
from sqlalchemy.orm import relationship
from .base import Base, TimestampMixin


class InsuranceType(str, enum.Enum):
     LIABILITY = "LIABILITY"
     PROPERTY = "PROPERTY"
     WORKERS_COMP = "WORKERS_COMP"


class InsuranceRecord(TimestampMixin, Base):
     """
     Certificate of insurance held against a (usually commercial) lease.

     Records start unverified whether a tenant or an admin enters them, and
     only an admin can verify. Expired records stay; their state is derived
     from expiration_date at read time.
     """

     id = Column(Integer, primary_key=True, autoincrement=True)
     lease_id = Column(Integer, ForeignKey("leases.id", ondelete="CASCADE"), nullable=False, index=True)

     insurance_type = Column(
          Enum(InsuranceType, name="insurance_type", native_enum=False, create_constraint=True),
          default=InsuranceType.LIABILITY,
          nullable=False,
     )
     carrier = Column(String(255), nullable=True)
     policy_number = Column(String(100), nullable=True)
     coverage_amount = Column(Numeric(14, 2), nullable=True)
     effective_date = Column(Date, nullable=False)
     expiration_date = Column(Date, nullable=False, index=True)
     document_url = Column(String(500), nullable=True)
     beneficiary_name = Column(String(255), nullable=False)  # Set by the system

     # Review
     verified = Column(Boolean, default=False, nullable=False)
     verified_at = Column(DateTime, nullable=True)
     reminder_sent = Column(Boolean, default=False, nullable=False)
     reminder_sent_at = Column(DateTime, nullable=True)

     # Relationships
     lease = relationship("Lease", back_populates="insurance_records")

     def __repr__(self):
          return (
               f"<InsuranceRecord(id={self.id}, lease_id={self.lease_id}, "
               f"expires={self.expiration_date}, verified={self.verified})>"
          )
