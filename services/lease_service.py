"""
Lease Service - lease lifecycle and unit occupancy.

Rules kept here:
- a unit hosts at most one ACTIVE lease; creating a lease supersedes
  (expires) whatever lease was active on the unit;
- Unit.status is OCCUPIED exactly when an ACTIVE lease references the unit,
  and is recomputed after every transition that can change that;
- monthly_rent is never edited here after creation (see EscalationService);
- EXPIRED and TERMINATED are terminal.

Methods flush but never commit; the request session commits or rolls back
the whole sequence as one unit.
"""
import logging
from datetime import date
from decimal import Decimal
from typing import Iterable, Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from models import Lease, LeaseStatus, LeaseType, Tenant, Unit, UnitStatus
from services.exceptions import ConflictError, NotFoundError, ValidationError

logger = logging.getLogger(__name__)

TERMINAL_STATUSES = (LeaseStatus.EXPIRED, LeaseStatus.TERMINATED)

# Fields a plain lease edit may touch; monthly_rent is not one of them
EDITABLE_FIELDS = ("lease_type", "start_date", "end_date", "deposit_amount", "document_url", "notes")


def _validate_terms(start_date: Optional[date], end_date: Optional[date], monthly_rent=None, deposit_amount=None) -> None:
     if start_date is None or end_date is None:
          raise ValidationError("start_date and end_date are required")
     if end_date <= start_date:
          raise ValidationError("end_date must be after start_date")
     if monthly_rent is not None and Decimal(str(monthly_rent)) <= 0:
          raise ValidationError("monthly_rent must be greater than zero")
     if deposit_amount is not None and Decimal(str(deposit_amount)) < 0:
          raise ValidationError("deposit_amount cannot be negative")


class LeaseService:
     """Service class for lease lifecycle business logic."""

     @staticmethod
     def get_lease(db: Session, lease_id: int) -> Lease:
          lease = db.get(Lease, lease_id)
          if lease is None:
               raise NotFoundError(f"Lease with ID {lease_id} not found")
          return lease

     @staticmethod
     def list_leases(
          db: Session,
          status: Optional[LeaseStatus] = None,
          unit_id: Optional[int] = None,
          tenant_id: Optional[int] = None,
          lease_ids: Optional[Iterable[int]] = None,
     ) -> list[Lease]:
          """
          List leases, newest first.

          Args:
               lease_ids: restrict to these ids (tenant callers); None means no restriction
          """
          query = db.query(Lease)
          if lease_ids is not None:
               lease_ids = list(lease_ids)
               if not lease_ids:
                    return []
               query = query.filter(Lease.id.in_(lease_ids))
          if status is not None:
               query = query.filter(Lease.status == status)
          if unit_id is not None:
               query = query.filter(Lease.unit_id == unit_id)
          if tenant_id is not None:
               query = query.filter(Lease.tenant_id == tenant_id)
          return query.order_by(Lease.created_at.desc(), Lease.id.desc()).all()

     @staticmethod
     def create_lease(
          db: Session,
          tenant_id: int,
          unit_id: int,
          start_date: date,
          end_date: date,
          monthly_rent: Decimal,
          lease_type: LeaseType = LeaseType.RESIDENTIAL,
          deposit_amount: Optional[Decimal] = None,
          document_url: Optional[str] = None,
          notes: Optional[str] = None,
     ) -> Lease:
          """
          Create a new ACTIVE lease on a unit.

          Steps, all in the caller's transaction:
          1. Lock the unit and expire any lease currently ACTIVE on it
          2. Insert the new ACTIVE lease
          3. Point the tenant at the unit (unit_id, move_in_date)
          4. Mark the unit OCCUPIED

          If the tenant moves in from another unit, that unit's occupancy is
          recomputed from its own leases.

          Raises:
               ValidationError: missing or inconsistent terms
               NotFoundError: tenant or unit doesn't exist
               ConflictError: a concurrent request activated a lease on the unit first
          """
          if tenant_id is None or unit_id is None or monthly_rent is None:
               raise ValidationError("tenant_id, unit_id and monthly_rent are required")
          _validate_terms(start_date, end_date, monthly_rent, deposit_amount)

          tenant = db.get(Tenant, tenant_id)
          if tenant is None:
               raise NotFoundError(f"Tenant with ID {tenant_id} not found")

          # Row lock serialises lease creation per unit where the backend supports it
          unit = db.query(Unit).filter(Unit.id == unit_id).with_for_update().first()
          if unit is None:
               raise NotFoundError(f"Unit with ID {unit_id} not found")

          superseded = (
               db.query(Lease)
               .filter(Lease.unit_id == unit_id, Lease.status == LeaseStatus.ACTIVE)
               .with_for_update()
               .all()
          )
          for previous in superseded:
               previous.status = LeaseStatus.EXPIRED
               logger.info("Lease %s superseded on unit %s", previous.id, unit_id)
          # The expiry must reach the database before the insert hits the unique index
          db.flush()

          lease = Lease(
               tenant_id=tenant_id,
               unit_id=unit_id,
               lease_type=lease_type or LeaseType.RESIDENTIAL,
               start_date=start_date,
               end_date=end_date,
               monthly_rent=monthly_rent,
               deposit_amount=deposit_amount,
               document_url=document_url,
               notes=notes,
               status=LeaseStatus.ACTIVE,
          )
          db.add(lease)
          try:
               db.flush()
          except IntegrityError as exc:
               raise ConflictError(
                    f"Unit {unit_id} already has an active lease; reload and retry"
               ) from exc

          previous_unit_id = tenant.unit_id
          tenant.unit_id = unit_id
          tenant.move_in_date = start_date
          unit.status = UnitStatus.OCCUPIED
          db.flush()

          if previous_unit_id is not None and previous_unit_id != unit_id:
               LeaseService.sync_unit_occupancy(db, previous_unit_id)

          logger.info("Lease %s created for tenant %s on unit %s", lease.id, tenant_id, unit_id)
          return lease

     @staticmethod
     def update_lease(db: Session, lease_id: int, changes: dict) -> Lease:
          """
          Apply a plain edit to a lease.

          monthly_rent is rejected: rent only changes through an escalation.
          A status value is routed through change_status.
          """
          if "monthly_rent" in changes:
               raise ValidationError("monthly_rent can only be changed by applying an escalation")

          lease = LeaseService.get_lease(db, lease_id)

          unknown = set(changes) - set(EDITABLE_FIELDS) - {"status"}
          if unknown:
               raise ValidationError(f"Fields cannot be edited: {', '.join(sorted(unknown))}")

          start_date = changes.get("start_date") or lease.start_date
          end_date = changes.get("end_date") or lease.end_date
          _validate_terms(start_date, end_date, deposit_amount=changes.get("deposit_amount"))

          for field in EDITABLE_FIELDS:
               if field in changes and changes[field] is not None:
                    setattr(lease, field, changes[field])
          # Nullable free-text fields may be cleared explicitly
          for field in ("document_url", "notes", "deposit_amount"):
               if field in changes and changes[field] is None:
                    setattr(lease, field, None)

          status = changes.get("status")
          if status is not None:
               LeaseService.change_status(db, lease_id, LeaseStatus(status))

          db.flush()
          return lease

     @staticmethod
     def change_status(db: Session, lease_id: int, status: LeaseStatus) -> Lease:
          """
          Move an ACTIVE lease to EXPIRED or TERMINATED.

          Setting the status a lease already has is a no-op. Leaving a
          terminal status is rejected; leases are never resurrected.
          """
          lease = LeaseService.get_lease(db, lease_id)
          if lease.status == status:
               return lease
          if status == LeaseStatus.ACTIVE or lease.status in TERMINAL_STATUSES:
               raise ConflictError(
                    f"Lease {lease_id} is {lease.status.value} and cannot become {status.value}"
               )

          lease.status = status
          db.flush()
          LeaseService.sync_unit_occupancy(db, lease.unit_id)
          logger.info("Lease %s marked %s", lease_id, status.value)
          return lease

     @staticmethod
     def expire_lease(db: Session, lease_id: int) -> Lease:
          return LeaseService.change_status(db, lease_id, LeaseStatus.EXPIRED)

     @staticmethod
     def terminate_lease(db: Session, lease_id: int) -> Lease:
          return LeaseService.change_status(db, lease_id, LeaseStatus.TERMINATED)

     @staticmethod
     def delete_lease(db: Session, lease_id: int) -> None:
          """
          Delete a lease with its escalations, insurance records and payments,
          then recompute the unit's occupancy.
          """
          lease = LeaseService.get_lease(db, lease_id)
          unit_id = lease.unit_id
          db.delete(lease)
          db.flush()
          LeaseService.sync_unit_occupancy(db, unit_id)
          logger.info("Lease %s deleted", lease_id)

     @staticmethod
     def expire_ended_leases(db: Session, today: Optional[date] = None) -> list[Lease]:
          """
          Expire every ACTIVE lease whose end date has passed.

          Intended for a scheduled job; display code keeps using the lazy
          Lease.expired_on() predicate in between runs.

          Returns:
               The leases that were expired
          """
          today = today or date.today()
          ended = (
               db.query(Lease)
               .filter(Lease.status == LeaseStatus.ACTIVE, Lease.end_date < today)
               .all()
          )
          for lease in ended:
               lease.status = LeaseStatus.EXPIRED
          db.flush()

          for unit_id in {lease.unit_id for lease in ended}:
               LeaseService.sync_unit_occupancy(db, unit_id)

          if ended:
               logger.info("Expired %d ended lease(s)", len(ended))
          return ended

     @staticmethod
     def sync_unit_occupancy(db: Session, unit_id: int) -> Optional[Unit]:
          """
          Recompute Unit.status from the unit's leases.

          OCCUPIED when an ACTIVE lease exists. Otherwise an OCCUPIED unit
          becomes VACANT; MAINTENANCE is left alone.
          """
          unit = db.get(Unit, unit_id)
          if unit is None:
               return None

          has_active = (
               db.query(Lease.id)
               .filter(Lease.unit_id == unit_id, Lease.status == LeaseStatus.ACTIVE)
               .first()
               is not None
          )
          if has_active:
               unit.status = UnitStatus.OCCUPIED
          elif unit.status == UnitStatus.OCCUPIED:
               unit.status = UnitStatus.VACANT
               logger.info("Unit %s is now vacant", unit_id)
          db.flush()
          return unit

     @staticmethod
     def update_unit_status(db: Session, unit_id: int, status: UnitStatus) -> Unit:
          """
          Manual unit status edit (e.g. VACANT <-> MAINTENANCE).

          Occupancy belongs to the lease lifecycle: OCCUPIED cannot be set by
          hand, and a unit with an ACTIVE lease cannot be changed at all.
          """
          unit = db.get(Unit, unit_id)
          if unit is None:
               raise NotFoundError(f"Unit with ID {unit_id} not found")
          if status == UnitStatus.OCCUPIED:
               raise ConflictError("Units become occupied only by creating a lease")

          has_active = (
               db.query(Lease.id)
               .filter(Lease.unit_id == unit_id, Lease.status == LeaseStatus.ACTIVE)
               .first()
               is not None
          )
          if has_active:
               raise ConflictError(f"Unit {unit_id} has an active lease; end the lease first")

          unit.status = status
          db.flush()
          return unit
