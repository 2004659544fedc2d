from sqlalchemy import Column, Integer, String, Date, ForeignKey
from sqlalchemy.orm import relationship
from .base import Base, TimestampMixin


class Tenant(TimestampMixin, Base):
     """
     Tenant model - extended profile for users with role=TENANT.
     unit_id points at the unit of the tenant's most recent lease.
     """
     __tablename__ = "tenants"

     id = Column(Integer, primary_key=True, autoincrement=True)
     user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, unique=True)
     unit_id = Column(Integer, ForeignKey("units.id"), nullable=True, index=True)

     phone = Column(String(50), nullable=True)
     business_name = Column(String(255), nullable=True)  # Commercial tenants
     move_in_date = Column(Date, nullable=True)

     # Emergency contact
     emergency_contact_name = Column(String(200), nullable=True)
     emergency_contact_phone = Column(String(50), nullable=True)

     # Relationships
     user = relationship("User", back_populates="tenant")
     unit = relationship("Unit", back_populates="tenants")
     leases = relationship("Lease", back_populates="tenant")

     @property
     def display_name(self) -> str:
          """Name used on receipts: business name for commercial tenants."""
          if self.business_name:
               return self.business_name
          return self.user.full_name if self.user else f"Tenant {self.id}"

     def __repr__(self):
          return f"<Tenant(id={self.id}, user_id={self.user_id}, unit_id={self.unit_id})>"
