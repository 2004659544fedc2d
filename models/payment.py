"""
Payment model - rent received against a lease.

Payments are never edited; a wrong entry is deleted and recorded again.
"""
from sqlalchemy import Column, Integer, String, Numeric, Date, DateTime, Text, ForeignKey, func
from sqlalchemy.orm import relationship
from .base import Base


class Payment(Base):

     id = Column(Integer, primary_key=True, autoincrement=True)
     lease_id = Column(Integer, ForeignKey("leases.id", ondelete="CASCADE"), nullable=False, index=True)

     amount = Column(Numeric(12, 2), nullable=False)
     date = Column(Date, nullable=False, index=True)
     method = Column(String(20), nullable=True)  # CASH, CHECK, ACH, CARD, OTHER
     reference = Column(String(255), nullable=True)
     notes = Column(Text, nullable=True)

     created_at = Column(DateTime, server_default=func.now(), nullable=False)

     # Relationships
     lease = relationship("Lease", back_populates="payments")

     def __repr__(self):
          return f"<Payment(id={self.id}, lease_id={self.lease_id}, amount={self.amount}, date={self.date})>"
