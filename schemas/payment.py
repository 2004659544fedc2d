"""
Pydantic schemas for payment API.
"""
import datetime as dt
from decimal import Decimal
from typing import Optional
from pydantic import BaseModel, Field, ConfigDict


class PaymentCreate(BaseModel):
     """Request body for recording a payment."""

     lease_id: int = Field(..., gt=0, description="Lease the payment is for")
     amount: Decimal = Field(..., gt=0, max_digits=12, decimal_places=2)
     date: dt.date
     method: Optional[str] = Field(None, max_length=20, description="CASH, CHECK, ACH, CARD or OTHER")
     reference: Optional[str] = Field(None, max_length=255, description="Check number or processor reference")
     notes: Optional[str] = None

     model_config = ConfigDict(
          json_schema_extra={
               "example": {
                    "lease_id": 1,
                    "amount": 2000.00,
                    "date": "2026-02-01",
                    "method": "ACH",
                    "reference": "TRX-88213",
               }
          }
     )


class PaymentResponse(BaseModel):
     id: int
     lease_id: int
     amount: Decimal
     date: dt.date
     method: Optional[str] = None
     reference: Optional[str] = None
     notes: Optional[str] = None
     created_at: Optional[dt.datetime] = None

     # Set on create only
     accounting_receipt_id: Optional[str] = None

     model_config = ConfigDict(from_attributes=True)
