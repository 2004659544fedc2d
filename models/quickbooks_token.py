"""
QuickBooksToken model - OAuth2 tokens for the connected QuickBooks company.

One row per connected realm. Only the credential provider in
services.accounting_service reads or writes it.
"""
from datetime import datetime

from sqlalchemy import Column, Integer, String, Text, DateTime
from .base import Base, TimestampMixin


class QuickBooksToken(TimestampMixin, Base):
     __tablename__ = "quickbooks_tokens"

     id = Column(Integer, primary_key=True, autoincrement=True)
     realm_id = Column(String(64), nullable=False, unique=True)
     access_token = Column(Text, nullable=False)
     refresh_token = Column(Text, nullable=False)
     access_token_expires_at = Column(DateTime, nullable=False)
     refresh_token_expires_at = Column(DateTime, nullable=False)

     def access_token_expired(self, now: datetime) -> bool:
          return now >= self.access_token_expires_at

     def refresh_token_expired(self, now: datetime) -> bool:
          return now >= self.refresh_token_expires_at

     def __repr__(self):
          return f"<QuickBooksToken(id={self.id}, realm_id='{self.realm_id}')>"
