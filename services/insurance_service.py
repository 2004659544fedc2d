"""
Insurance Service - certificates of insurance and compliance status.

Compliance is never stored. It is derived from a lease's records and the
current date each time it is read:

- valid:    a verified record that expires after today
- expired:  a record that expired today or earlier
- expiring: a record that expires within the next 30 days

The three flags are independent; the banner shown to users picks one by
priority: expired, then expiring soon, then "Insurance Required" (no valid
record, which includes having none at all), then compliant.
"""
import enum
import logging
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import Iterable, Optional

from sqlalchemy.orm import Session

import config
from models import InsuranceRecord, InsuranceType, Lease
from services.exceptions import NotFoundError, ValidationError
from utils.email import send_insurance_reminder_email

logger = logging.getLogger(__name__)

# Tenants and admins may edit these; beneficiary and verification are system-owned
EDITABLE_FIELDS = (
     "insurance_type",
     "carrier",
     "policy_number",
     "coverage_amount",
     "effective_date",
     "expiration_date",
     "document_url",
)


class ComplianceBanner(str, enum.Enum):
     EXPIRED = "EXPIRED"
     EXPIRING_SOON = "EXPIRING_SOON"
     REQUIRED = "REQUIRED"
     COMPLIANT = "COMPLIANT"

     @property
     def label(self) -> str:
          return {
               ComplianceBanner.EXPIRED: "Insurance Expired",
               ComplianceBanner.EXPIRING_SOON: "Insurance Expiring Soon",
               ComplianceBanner.REQUIRED: "Insurance Required",
               ComplianceBanner.COMPLIANT: "Insurance Compliant",
          }[self]


@dataclass(frozen=True)
class InsuranceCompliance:
     has_valid_insurance: bool
     has_expired_insurance: bool
     has_expiring_insurance: bool
     record_count: int

     @property
     def is_compliant(self) -> bool:
          return self.has_valid_insurance

     @property
     def banner(self) -> ComplianceBanner:
          if self.has_expired_insurance:
               return ComplianceBanner.EXPIRED
          if self.has_expiring_insurance:
               return ComplianceBanner.EXPIRING_SOON
          if not self.has_valid_insurance:
               return ComplianceBanner.REQUIRED
          return ComplianceBanner.COMPLIANT


def compute_compliance(
     records: Iterable[InsuranceRecord],
     today: Optional[date] = None,
     window_days: int = config.INSURANCE_EXPIRING_WINDOW_DAYS,
) -> InsuranceCompliance:
     """Derive a lease's insurance compliance from its records as of ``today``."""
     today = today or date.today()
     horizon = today + timedelta(days=window_days)
     records = list(records)

     return InsuranceCompliance(
          has_valid_insurance=any(r.verified and r.expiration_date > today for r in records),
          has_expired_insurance=any(r.expiration_date <= today for r in records),
          has_expiring_insurance=any(today < r.expiration_date <= horizon for r in records),
          record_count=len(records),
     )


def _validate_period(effective_date: Optional[date], expiration_date: Optional[date]) -> None:
     if effective_date is None or expiration_date is None:
          raise ValidationError("effective_date and expiration_date are required")
     if expiration_date <= effective_date:
          raise ValidationError("expiration_date must be after effective_date")


class InsuranceService:
     """Service class for insurance record business logic."""

     @staticmethod
     def get_record(db: Session, record_id: int) -> InsuranceRecord:
          record = db.get(InsuranceRecord, record_id)
          if record is None:
               raise NotFoundError(f"Insurance record with ID {record_id} not found")
          return record

     @staticmethod
     def list_records(
          db: Session,
          lease_ids: Optional[Iterable[int]] = None,
          lease_id: Optional[int] = None,
          expiring_soon: bool = False,
          today: Optional[date] = None,
     ) -> list[InsuranceRecord]:
          """
          List insurance records ordered by expiration date.

          Args:
               lease_ids: restrict to these leases (tenant callers); None means all
               expiring_soon: only records expiring within the window, including
                    ones that already expired
          """
          query = db.query(InsuranceRecord)
          if lease_ids is not None:
               lease_ids = list(lease_ids)
               if not lease_ids:
                    return []
               query = query.filter(InsuranceRecord.lease_id.in_(lease_ids))
          if lease_id is not None:
               query = query.filter(InsuranceRecord.lease_id == lease_id)
          if expiring_soon:
               today = today or date.today()
               horizon = today + timedelta(days=config.INSURANCE_EXPIRING_WINDOW_DAYS)
               query = query.filter(InsuranceRecord.expiration_date <= horizon)
          return query.order_by(InsuranceRecord.expiration_date, InsuranceRecord.id).all()

     @staticmethod
     def submit_insurance(
          db: Session,
          lease_id: int,
          effective_date: date,
          expiration_date: date,
          insurance_type: InsuranceType = InsuranceType.LIABILITY,
          carrier: Optional[str] = None,
          policy_number: Optional[str] = None,
          coverage_amount=None,
          document_url: Optional[str] = None,
     ) -> InsuranceRecord:
          """
          Record a certificate of insurance against a lease.

          The record starts unverified and the beneficiary is always the
          property owner, whatever the caller sent.
          """
          _validate_period(effective_date, expiration_date)
          if coverage_amount is not None and coverage_amount < 0:
               raise ValidationError("coverage_amount cannot be negative")

          if db.get(Lease, lease_id) is None:
               raise NotFoundError(f"Lease with ID {lease_id} not found")

          record = InsuranceRecord(
               lease_id=lease_id,
               insurance_type=insurance_type or InsuranceType.LIABILITY,
               carrier=carrier,
               policy_number=policy_number,
               coverage_amount=coverage_amount,
               effective_date=effective_date,
               expiration_date=expiration_date,
               document_url=document_url,
               beneficiary_name=config.INSURANCE_BENEFICIARY_NAME,
               verified=False,
          )
          db.add(record)
          db.flush()
          logger.info("Insurance record %s submitted for lease %s", record.id, lease_id)
          return record

     @staticmethod
     def update_record(db: Session, record_id: int, changes: dict, by_admin: bool = True) -> InsuranceRecord:
          """
          Edit a record's certificate details.

          A tenant changing any field of a verified record sends it back for
          review (verified and verified_at are cleared). Admin edits keep the
          verification.
          """
          forbidden = set(changes) - set(EDITABLE_FIELDS)
          if forbidden:
               raise ValidationError(f"Fields cannot be edited: {', '.join(sorted(forbidden))}")

          record = InsuranceService.get_record(db, record_id)
          _validate_period(
               changes.get("effective_date") or record.effective_date,
               changes.get("expiration_date") or record.expiration_date,
          )
          changed = False
          for field, value in changes.items():
               if value is None and field in ("insurance_type", "effective_date", "expiration_date"):
                    continue
               if getattr(record, field) != value:
                    changed = True
               setattr(record, field, value)

          if changed and record.verified and not by_admin:
               record.verified = False
               record.verified_at = None
               logger.info("Insurance record %s edited by tenant; verification cleared", record_id)
          db.flush()
          return record

     @staticmethod
     def verify_insurance(db: Session, record_id: int, now: Optional[datetime] = None) -> InsuranceRecord:
          """Mark a record verified. Verifying again keeps the first timestamp."""
          record = InsuranceService.get_record(db, record_id)
          if not record.verified:
               record.verified = True
               record.verified_at = now or datetime.utcnow()
               db.flush()
               logger.info("Insurance record %s verified", record_id)
          return record

     @staticmethod
     def delete_record(db: Session, record_id: int) -> None:
          record = InsuranceService.get_record(db, record_id)
          db.delete(record)
          db.flush()

     @staticmethod
     def send_expiration_reminder(db: Session, record_id: int, now: Optional[datetime] = None) -> InsuranceRecord:
          """
          Email the tenant that a certificate needs renewing and stamp the record.

          Raises:
               ExternalServiceError: the email provider rejected the message
          """
          record = InsuranceService.get_record(db, record_id)
          tenant = record.lease.tenant
          user = tenant.user if tenant else None
          if user is None or not user.email:
               raise ValidationError(f"No email address on file for insurance record {record_id}")

          send_insurance_reminder_email(
               to_email=user.email,
               tenant_name=user.full_name,
               expiration_date=record.expiration_date,
               beneficiary_name=record.beneficiary_name,
          )
          record.reminder_sent = True
          record.reminder_sent_at = now or datetime.utcnow()
          db.flush()
          logger.info("Expiration reminder sent for insurance record %s", record_id)
          return record

     @staticmethod
     def lease_compliance(lease: Lease, today: Optional[date] = None) -> InsuranceCompliance:
          return compute_compliance(lease.insurance_records, today)
