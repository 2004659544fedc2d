import enum

from sqlalchemy import Column, Integer, String, Text, Enum
from sqlalchemy.orm import relationship
from .base import Base, TimestampMixin


class PropertyType(str, enum.Enum):
     RESIDENTIAL = "RESIDENTIAL"
     COMMERCIAL = "COMMERCIAL"


class Property(TimestampMixin, Base):
     """
     Property model - a building or commercial site holding units.
     """
     __tablename__ = "properties"

     id = Column(Integer, primary_key=True, autoincrement=True)
     name = Column(String(255), nullable=False)
     property_type = Column(
          Enum(PropertyType, name="property_type", native_enum=False, create_constraint=True),
          default=PropertyType.RESIDENTIAL,
          nullable=False,
     )

     # Address
     address = Column(String(255), nullable=True)
     city = Column(String(100), nullable=True)
     state = Column(String(100), nullable=True)
     zip_code = Column(String(20), nullable=True)

     description = Column(Text, nullable=True)

     # Relationships
     units = relationship("Unit", back_populates="property", cascade="all, delete-orphan")

     def __repr__(self):
          return f"<Property(id={self.id}, name='{self.name}')>"
