import enum

from sqlalchemy import Column, Integer, String, Numeric, Text, ForeignKey, Enum
from sqlalchemy.orm import relationship
from .base import Base, TimestampMixin


class UnitStatus(str, enum.Enum):
     """Occupancy state of a unit. OCCUPIED is owned by the lease lifecycle."""
     VACANT = "VACANT"
     OCCUPIED = "OCCUPIED"
     MAINTENANCE = "MAINTENANCE"


class Unit(TimestampMixin, Base):
     """
     Unit model - individual rentable space within a property.
     """

     id = Column(Integer, primary_key=True, autoincrement=True)
     property_id = Column(Integer, ForeignKey("properties.id", ondelete="CASCADE"), nullable=False, index=True)

     unit_number = Column(String(50), nullable=False)
     rent_price = Column(Numeric(12, 2), nullable=True)  # Asking rent, informational
     size = Column(Numeric(10, 2), nullable=True)
     description = Column(Text, nullable=True)
     status = Column(
          Enum(UnitStatus, name="unit_status", native_enum=False, create_constraint=True),
          default=UnitStatus.VACANT,
          nullable=False,
          index=True,
     )

     # Relationships
     property = relationship("Property", back_populates="units")
     leases = relationship("Lease", back_populates="unit")
     tenants = relationship("Tenant", back_populates="unit")

     def __repr__(self):
          return f"<Unit(id={self.id}, unit_number='{self.unit_number}', status='{self.status}')>"
