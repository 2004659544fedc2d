"""
Pydantic schemas for insurance records and compliance status.
"""
from datetime import date, datetime
from decimal import Decimal
from typing import Optional
from pydantic import BaseModel, Field, ConfigDict, model_validator

from models import InsuranceType


class InsuranceCreate(BaseModel):
     """
     Schema for submitting a certificate of insurance.

     There is no beneficiary field; the system always sets it.
     """
     lease_id: int = Field(..., gt=0)
     insurance_type: InsuranceType = Field(default=InsuranceType.LIABILITY)
     carrier: Optional[str] = Field(None, max_length=255)
     policy_number: Optional[str] = Field(None, max_length=100)
     coverage_amount: Optional[Decimal] = Field(None, ge=0, max_digits=14, decimal_places=2)
     effective_date: date
     expiration_date: date
     document_url: Optional[str] = Field(None, max_length=500)

     model_config = ConfigDict(
          json_schema_extra={
               "example": {
                    "lease_id": 1,
                    "insurance_type": "LIABILITY",
                    "carrier": "Acme Mutual",
                    "policy_number": "GL-2026-0042",
                    "coverage_amount": 1000000,
                    "effective_date": "2026-01-01",
                    "expiration_date": "2027-01-01",
                    "document_url": "https://example.blob.core.windows.net/documents/coi.pdf",
               }
          }
     )

     @model_validator(mode="after")
     def check_period(self):
          if self.expiration_date <= self.effective_date:
               raise ValueError("expiration_date must be after effective_date")
          return self


class InsuranceUpdate(BaseModel):
     insurance_type: Optional[InsuranceType] = None
     carrier: Optional[str] = Field(None, max_length=255)
     policy_number: Optional[str] = Field(None, max_length=100)
     coverage_amount: Optional[Decimal] = Field(None, ge=0, max_digits=14, decimal_places=2)
     effective_date: Optional[date] = None
     expiration_date: Optional[date] = None
     document_url: Optional[str] = Field(None, max_length=500)

     # verified and beneficiary_name are rejected rather than ignored
     model_config = ConfigDict(extra="forbid")


class InsuranceResponse(BaseModel):
     id: int
     lease_id: int
     insurance_type: InsuranceType
     carrier: Optional[str] = None
     policy_number: Optional[str] = None
     coverage_amount: Optional[Decimal] = None
     effective_date: date
     expiration_date: date
     document_url: Optional[str] = None
     beneficiary_name: str
     verified: bool
     verified_at: Optional[datetime] = None
     reminder_sent: bool = False
     reminder_sent_at: Optional[datetime] = None

     model_config = ConfigDict(from_attributes=True)


class ComplianceResponse(BaseModel):
     """Derived insurance compliance for one lease."""
     lease_id: int
     has_valid_insurance: bool
     has_expired_insurance: bool
     has_expiring_insurance: bool
     record_count: int
     is_compliant: bool
     banner: str
     banner_label: str

     @classmethod
     def from_compliance(cls, lease_id: int, compliance) -> "ComplianceResponse":
          banner = compliance.banner
          return cls(
               lease_id=lease_id,
               has_valid_insurance=compliance.has_valid_insurance,
               has_expired_insurance=compliance.has_expired_insurance,
               has_expiring_insurance=compliance.has_expiring_insurance,
               record_count=compliance.record_count,
               is_compliant=compliance.is_compliant,
               banner=banner.value,
               banner_label=banner.label,
          )
