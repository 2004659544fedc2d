"""
Pydantic schemas for Lease API request/response validation.
"""
from datetime import date, datetime
from decimal import Decimal
from typing import Optional, List
from pydantic import BaseModel, Field, ConfigDict, model_validator

from models import LeaseStatus, LeaseType
from schemas.escalation import EscalationResponse
from schemas.insurance import InsuranceResponse, ComplianceResponse
from schemas.payment import PaymentResponse


class LeaseCreate(BaseModel):
     """Schema for creating a new lease."""
     tenant_id: int = Field(..., gt=0, description="Tenant ID (must exist)")
     unit_id: int = Field(..., gt=0, description="Unit ID (must exist)")
     lease_type: LeaseType = Field(default=LeaseType.RESIDENTIAL)
     start_date: date
     end_date: date
     monthly_rent: Decimal = Field(..., gt=0, max_digits=12, decimal_places=2)
     deposit_amount: Optional[Decimal] = Field(None, ge=0, max_digits=12, decimal_places=2)
     document_url: Optional[str] = Field(None, max_length=500)
     notes: Optional[str] = None

     model_config = ConfigDict(
          json_schema_extra={
               "example": {
                    "tenant_id": 1,
                    "unit_id": 3,
                    "lease_type": "COMMERCIAL",
                    "start_date": "2026-01-01",
                    "end_date": "2027-12-31",
                    "monthly_rent": 2000.00,
                    "deposit_amount": 4000.00,
               }
          }
     )

     @model_validator(mode="after")
     def check_period(self):
          if self.end_date <= self.start_date:
               raise ValueError("end_date must be after start_date")
          return self


class LeaseUpdate(BaseModel):
     """
     Schema for editing a lease.

     monthly_rent is not accepted: rent changes go through escalations.
     """
     lease_type: Optional[LeaseType] = None
     start_date: Optional[date] = None
     end_date: Optional[date] = None
     deposit_amount: Optional[Decimal] = Field(None, ge=0, max_digits=12, decimal_places=2)
     document_url: Optional[str] = Field(None, max_length=500)
     notes: Optional[str] = None
     status: Optional[LeaseStatus] = None

     model_config = ConfigDict(
          extra="forbid",
          json_schema_extra={"example": {"notes": "Renewal discussed", "status": "TERMINATED"}},
     )


class LeaseStatusChange(BaseModel):
     """Schema for expiring or terminating a lease."""
     status: LeaseStatus

     @model_validator(mode="after")
     def check_terminal(self):
          if self.status == LeaseStatus.ACTIVE:
               raise ValueError("status must be EXPIRED or TERMINATED")
          return self


class LeaseResponse(BaseModel):
     """Schema for lease response."""
     id: int
     tenant_id: int
     unit_id: int
     lease_type: LeaseType
     start_date: date
     end_date: date
     monthly_rent: Decimal
     deposit_amount: Optional[Decimal] = None
     document_url: Optional[str] = None
     notes: Optional[str] = None
     status: LeaseStatus
     created_at: Optional[datetime] = None

     # Derived at read time
     is_expired: bool = False
     is_expiring_soon: bool = False
     days_until_end: Optional[int] = None

     # Optional related data
     tenant_name: Optional[str] = None
     unit_number: Optional[str] = None
     property_name: Optional[str] = None

     model_config = ConfigDict(from_attributes=True)


class LeaseDetailResponse(LeaseResponse):
     """Lease with its escalations, insurance, payments and compliance."""
     escalations: List[EscalationResponse] = []
     insurance_records: List[InsuranceResponse] = []
     payments: List[PaymentResponse] = []
     compliance: Optional[ComplianceResponse] = None


class ExpireSweepResponse(BaseModel):
     expired_lease_ids: List[int]
     count: int
