"""
Escalation Service - scheduled rent increases.

An escalation's target rent is computed when it is scheduled, against the
lease's rent at that moment. Applying it later copies that stored target onto
the lease even if an earlier escalation has changed the rent in between;
recompute_escalation() is the explicit way to refresh a pending target.

Applying is the only path, besides lease creation, that writes
Lease.monthly_rent.
"""
import logging
from datetime import date, datetime
from decimal import Decimal, ROUND_HALF_UP
from typing import Optional

from sqlalchemy.orm import Session

from models import IncreaseType, Lease, LeaseEscalation, LeaseStatus
from services.exceptions import ConflictError, NotFoundError, ValidationError

logger = logging.getLogger(__name__)

CENTS = Decimal("0.01")


def _to_decimal(value) -> Decimal:
     return value if isinstance(value, Decimal) else Decimal(str(value))


def compute_new_monthly_rent(
     current_rent,
     increase_type: IncreaseType,
     increase_value=None,
     new_monthly_rent=None,
) -> Decimal:
     """
     Target rent for an escalation.

     PERCENTAGE:    current_rent * (1 + increase_value / 100)
     FIXED_AMOUNT:  current_rent + increase_value
     CPI:           new_monthly_rent as supplied; there is no formula

     The result is rounded half-up to cents and must be positive.
     """
     increase_type = IncreaseType(increase_type)

     if increase_type == IncreaseType.CPI:
          if new_monthly_rent is None:
               raise ValidationError("new_monthly_rent is required for CPI escalations")
          result = _to_decimal(new_monthly_rent)
     else:
          if increase_value is None:
               raise ValidationError(f"increase_value is required for {increase_type.value} escalations")
          current = _to_decimal(current_rent)
          value = _to_decimal(increase_value)
          if increase_type == IncreaseType.PERCENTAGE:
               result = current * (1 + value / Decimal(100))
          else:
               result = current + value

     result = result.quantize(CENTS, rounding=ROUND_HALF_UP)
     if result <= 0:
          raise ValidationError("Escalated monthly rent must be greater than zero")
     return result


def _resolve_target(current_rent, increase_type, increase_value, new_monthly_rent) -> Decimal:
     """
     Compute the target, checking a caller-supplied figure against the formula
     for PERCENTAGE and FIXED_AMOUNT.
     """
     target = compute_new_monthly_rent(current_rent, increase_type, increase_value, new_monthly_rent)
     if IncreaseType(increase_type) != IncreaseType.CPI and new_monthly_rent is not None:
          supplied = _to_decimal(new_monthly_rent).quantize(CENTS, rounding=ROUND_HALF_UP)
          if supplied != target:
               raise ValidationError(
                    f"new_monthly_rent {supplied} does not match the computed rent {target}"
               )
     return target


class EscalationService:
     """Service class for lease escalation business logic."""

     @staticmethod
     def get_escalation(db: Session, escalation_id: int) -> LeaseEscalation:
          escalation = db.get(LeaseEscalation, escalation_id)
          if escalation is None:
               raise NotFoundError(f"Escalation with ID {escalation_id} not found")
          return escalation

     @staticmethod
     def list_escalations(db: Session, lease_id: Optional[int] = None) -> list[LeaseEscalation]:
          query = db.query(LeaseEscalation)
          if lease_id is not None:
               query = query.filter(LeaseEscalation.lease_id == lease_id)
          return query.order_by(LeaseEscalation.effective_date, LeaseEscalation.id).all()

     @staticmethod
     def schedule_escalation(
          db: Session,
          lease_id: int,
          effective_date: date,
          increase_type: IncreaseType,
          increase_value: Optional[Decimal] = None,
          new_monthly_rent: Optional[Decimal] = None,
          notes: Optional[str] = None,
     ) -> LeaseEscalation:
          """
          Schedule a rent change on an ACTIVE lease.

          Args:
               increase_value: percent or amount; ignored (stored NULL) for CPI
               new_monthly_rent: required for CPI; for the other types it must
                    match the computed figure when given

          Raises:
               ValidationError: missing effective_date or escalation inputs
               NotFoundError: lease doesn't exist
               ConflictError: lease is no longer ACTIVE
          """
          if effective_date is None:
               raise ValidationError("effective_date is required")
          if increase_type is None:
               raise ValidationError("increase_type is required")
          increase_type = IncreaseType(increase_type)

          lease = db.get(Lease, lease_id)
          if lease is None:
               raise NotFoundError(f"Lease with ID {lease_id} not found")
          if lease.status != LeaseStatus.ACTIVE:
               raise ConflictError(f"Lease {lease_id} is {lease.status.value}; escalations need an active lease")

          target = _resolve_target(lease.monthly_rent, increase_type, increase_value, new_monthly_rent)

          escalation = LeaseEscalation(
               lease_id=lease_id,
               effective_date=effective_date,
               increase_type=increase_type,
               increase_value=None if increase_type == IncreaseType.CPI else increase_value,
               new_monthly_rent=target,
               applied=False,
               notes=notes,
          )
          db.add(escalation)
          db.flush()
          logger.info(
               "Escalation %s scheduled on lease %s: %s -> %s from %s",
               escalation.id, lease_id, lease.monthly_rent, target, effective_date,
          )
          return escalation

     @staticmethod
     def apply_escalation(db: Session, escalation_id: int, now: Optional[datetime] = None) -> LeaseEscalation:
          """
          Apply an escalation: mark it applied and set the lease's rent to its target.

          The applied flag is flipped with a conditional UPDATE (applied = false
          in the WHERE clause), so of two racing requests exactly one wins and
          the other gets a ConflictError. The lease row is locked first so rent
          writes on one lease serialise.

          Raises:
               NotFoundError: escalation doesn't exist
               ConflictError: already applied, or the lease is no longer ACTIVE
          """
          escalation = EscalationService.get_escalation(db, escalation_id)
          if escalation.applied:
               raise ConflictError(f"Escalation {escalation_id} has already been applied")

          lease = (
               db.query(Lease)
               .filter(Lease.id == escalation.lease_id)
               .with_for_update()
               .one()
          )
          if lease.status != LeaseStatus.ACTIVE:
               raise ConflictError(f"Lease {lease.id} is {lease.status.value}; cannot apply escalation")

          updated = (
               db.query(LeaseEscalation)
               .filter(LeaseEscalation.id == escalation_id, LeaseEscalation.applied == False)  # noqa: E712
               .update(
                    {LeaseEscalation.applied: True, LeaseEscalation.applied_at: now or datetime.utcnow()},
                    synchronize_session=False,
               )
          )
          if updated == 0:
               raise ConflictError(f"Escalation {escalation_id} has already been applied")

          previous_rent = lease.monthly_rent
          lease.monthly_rent = escalation.new_monthly_rent
          db.flush()
          db.refresh(escalation)

          logger.info(
               "Escalation %s applied to lease %s: %s -> %s",
               escalation_id, lease.id, previous_rent, lease.monthly_rent,
          )
          return escalation

     @staticmethod
     def apply_due_escalations(db: Session, today: Optional[date] = None) -> list[LeaseEscalation]:
          """
          Apply every pending escalation on an ACTIVE lease whose effective
          date has arrived, oldest first. Intended for a scheduled job.
          """
          today = today or date.today()
          due = (
               db.query(LeaseEscalation)
               .join(Lease, LeaseEscalation.lease_id == Lease.id)
               .filter(
                    LeaseEscalation.applied == False,  # noqa: E712
                    LeaseEscalation.effective_date <= today,
                    Lease.status == LeaseStatus.ACTIVE,
               )
               .order_by(LeaseEscalation.effective_date, LeaseEscalation.id)
               .all()
          )
          return [EscalationService.apply_escalation(db, escalation.id) for escalation in due]

     @staticmethod
     def update_escalation(db: Session, escalation_id: int, changes: dict) -> LeaseEscalation:
          """
          Edit a pending escalation. The target is recomputed against the
          lease's current rent whenever type, value or target change.
          """
          if "applied" in changes:
               raise ValidationError("Use the apply action to apply an escalation")

          escalation = EscalationService.get_escalation(db, escalation_id)
          if escalation.applied:
               raise ConflictError(f"Escalation {escalation_id} has already been applied and cannot be edited")

          if changes.get("effective_date") is not None:
               escalation.effective_date = changes["effective_date"]
          if "notes" in changes:
               escalation.notes = changes["notes"]

          if {"increase_type", "increase_value", "new_monthly_rent"} & set(changes):
               increase_type = IncreaseType(changes.get("increase_type") or escalation.increase_type)
               increase_value = changes.get("increase_value", escalation.increase_value)
               new_monthly_rent = changes.get("new_monthly_rent")
               if increase_type == IncreaseType.CPI and new_monthly_rent is None:
                    new_monthly_rent = escalation.new_monthly_rent

               escalation.new_monthly_rent = _resolve_target(
                    escalation.lease.monthly_rent, increase_type, increase_value, new_monthly_rent
               )
               escalation.increase_type = increase_type
               escalation.increase_value = None if increase_type == IncreaseType.CPI else increase_value

          db.flush()
          return escalation

     @staticmethod
     def recompute_escalation(db: Session, escalation_id: int) -> LeaseEscalation:
          """
          Refresh a pending PERCENTAGE / FIXED_AMOUNT target against the
          lease's current rent.
          """
          escalation = EscalationService.get_escalation(db, escalation_id)
          if escalation.applied:
               raise ConflictError(f"Escalation {escalation_id} has already been applied")
          if escalation.increase_type == IncreaseType.CPI:
               raise ValidationError("CPI escalations have no formula to recompute")

          escalation.new_monthly_rent = compute_new_monthly_rent(
               escalation.lease.monthly_rent, escalation.increase_type, escalation.increase_value
          )
          db.flush()
          return escalation

     @staticmethod
     def delete_escalation(db: Session, escalation_id: int) -> None:
          """
          Remove an escalation. An applied escalation's rent change stays on
          the lease; deleting is data cleanup, not an undo.
          """
          escalation = EscalationService.get_escalation(db, escalation_id)
          db.delete(escalation)
          db.flush()
