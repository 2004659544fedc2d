import enum

from sqlalchemy import Column, Integer, String, DateTime, Enum, func
from sqlalchemy.orm import relationship
from .base import Base


class UserRole(str, enum.Enum):
     """Role claim carried in the access token."""
     ADMIN = "ADMIN"
     TENANT = "TENANT"


class User(Base):
     """
     User model - central authentication table.
     Admins manage the portfolio; tenants get a Tenant profile.
     """
     __tablename__ = "users"

     id = Column(Integer, primary_key=True, autoincrement=True)
     email = Column(String(255), unique=True, nullable=False, index=True)
     password = Column(String(255), nullable=False)
     first_name = Column(String(100), nullable=False)
     last_name = Column(String(100), nullable=False)
     role = Column(
          Enum(UserRole, name="user_role", native_enum=False, create_constraint=True),
          default=UserRole.TENANT,
          nullable=False,
     )
     created_at = Column(DateTime, server_default=func.now(), nullable=False)

     # Relationships
     tenant = relationship("Tenant", back_populates="user", uselist=False)

     @property
     def full_name(self) -> str:
          return f"{self.first_name} {self.last_name}"

     def __repr__(self):
          return f"<User(id={self.id}, email='{self.email}', role='{self.role}')>"
