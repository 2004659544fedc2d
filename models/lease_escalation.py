"""
LeaseEscalation model - a scheduled change to a lease's monthly rent.

new_monthly_rent is fixed when the escalation is scheduled. Applying it copies
that value onto the lease; applied only ever moves from False to True.
"""
import enum

from sqlalchemy import Column, Integer, Numeric, Date, DateTime, Boolean, Text, ForeignKey, Enum, func
from sqlalchemy.orm import relationship
from .base import Base


class IncreaseType(str, enum.Enum):
     PERCENTAGE = "PERCENTAGE"
     FIXED_AMOUNT = "FIXED_AMOUNT"
     CPI = "CPI"  # Entered manually, no formula


class LeaseEscalation(Base):

     id = Column(Integer, primary_key=True, autoincrement=True)
     lease_id = Column(Integer, ForeignKey("leases.id", ondelete="CASCADE"), nullable=False, index=True)

     effective_date = Column(Date, nullable=False, index=True)
     new_monthly_rent = Column(Numeric(12, 2), nullable=False)
     increase_type = Column(
          Enum(IncreaseType, name="increase_type", native_enum=False, create_constraint=True),
          nullable=False,
     )
     increase_value = Column(Numeric(12, 2), nullable=True)  # NULL for CPI

     applied = Column(Boolean, default=False, nullable=False)
     applied_at = Column(DateTime, nullable=True)
     notes = Column(Text, nullable=True)

     created_at = Column(DateTime, server_default=func.now(), nullable=False)

     # Relationships
     lease = relationship("Lease", back_populates="escalations")

     def __repr__(self):
          return (
               f"<LeaseEscalation(id={self.id}, lease_id={self.lease_id}, "
               f"new_monthly_rent={self.new_monthly_rent}, applied={self.applied})>"
          )
