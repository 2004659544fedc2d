"""
Pydantic schemas for lease escalation requests and responses.
"""
from datetime import date, datetime
from decimal import Decimal
from typing import Optional, List
from pydantic import BaseModel, Field, ConfigDict, model_validator

from models import IncreaseType


class EscalationCreate(BaseModel):
     """
     Schema for scheduling an escalation.

     PERCENTAGE and FIXED_AMOUNT need increase_value; CPI needs new_monthly_rent.
     """
     lease_id: int = Field(..., gt=0)
     effective_date: date
     increase_type: IncreaseType
     increase_value: Optional[Decimal] = Field(None, max_digits=12, decimal_places=2)
     new_monthly_rent: Optional[Decimal] = Field(None, gt=0, max_digits=12, decimal_places=2)
     notes: Optional[str] = None

     model_config = ConfigDict(
          json_schema_extra={
               "example": {
                    "lease_id": 1,
                    "effective_date": "2027-01-01",
                    "increase_type": "PERCENTAGE",
                    "increase_value": 3,
               }
          }
     )

     @model_validator(mode="after")
     def check_inputs(self):
          if self.increase_type == IncreaseType.CPI:
               if self.new_monthly_rent is None:
                    raise ValueError("new_monthly_rent is required for CPI escalations")
          elif self.increase_value is None:
               raise ValueError("increase_value is required for this increase_type")
          return self


class EscalationUpdate(BaseModel):
     """Schema for editing a pending escalation."""
     effective_date: Optional[date] = None
     increase_type: Optional[IncreaseType] = None
     increase_value: Optional[Decimal] = Field(None, max_digits=12, decimal_places=2)
     new_monthly_rent: Optional[Decimal] = Field(None, gt=0, max_digits=12, decimal_places=2)
     notes: Optional[str] = None

     model_config = ConfigDict(extra="forbid")


class EscalationResponse(BaseModel):
     id: int
     lease_id: int
     effective_date: date
     new_monthly_rent: Decimal
     increase_type: IncreaseType
     increase_value: Optional[Decimal] = None
     applied: bool
     applied_at: Optional[datetime] = None
     notes: Optional[str] = None
     created_at: Optional[datetime] = None

     model_config = ConfigDict(from_attributes=True)


class ApplyDueResponse(BaseModel):
     applied_escalation_ids: List[int]
     count: int
