"""
Pydantic schemas for the QuickBooks connection endpoints.
"""
from typing import Optional
from pydantic import BaseModel


class ConnectResponse(BaseModel):
     authorization_url: str
     state: str


class AccountingStatusResponse(BaseModel):
     connected: bool
     company_name: Optional[str] = None
