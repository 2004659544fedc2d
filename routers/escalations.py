# routers/escalations.py
"""
Lease escalation API routes.

Scheduling, editing and applying escalations is admin-only. Tenants can list
the escalations of their own leases.
"""
from typing import Optional, List
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from auth import accessible_lease_ids, authorize_lease_access, require_admin, require_tenant_or_admin
from database import get_session
from services.escalation_service import EscalationService
from schemas.escalation import EscalationCreate, EscalationUpdate, EscalationResponse, ApplyDueResponse

router = APIRouter(prefix="/api/escalations", tags=["escalations"])


@router.get(
     "",
     response_model=List[EscalationResponse],
     summary="List escalations"
)
def list_escalations(
     lease_id: Optional[int] = Query(None, description="Filter by lease ID"),
     db: Session = Depends(get_session),
     token: dict = Depends(require_tenant_or_admin)
):
     """
     **Role-based access:**
     - **Tenant**: escalations on own leases; a lease_id must be one of them.
     - **Admin**: All escalations.
     """
     allowed = accessible_lease_ids(db, token)
     if allowed is not None:
          if lease_id is None:
               escalations = []
               for own_lease_id in sorted(allowed):
                    escalations.extend(EscalationService.list_escalations(db, own_lease_id))
               return escalations
          authorize_lease_access(db, token, lease_id)
     return EscalationService.list_escalations(db, lease_id)


@router.post(
     "",
     response_model=EscalationResponse,
     status_code=status.HTTP_201_CREATED,
     summary="Schedule an escalation"
)
def create_escalation(
     escalation_data: EscalationCreate,
     db: Session = Depends(get_session),
     token: dict = Depends(require_admin)
):
     """
     Schedule a rent change on an active lease.

     - **PERCENTAGE**: increase_value is a percent of the current rent
     - **FIXED_AMOUNT**: increase_value is added to the current rent
     - **CPI**: new_monthly_rent is entered by hand
     """
     escalation = EscalationService.schedule_escalation(db, **escalation_data.model_dump())
     db.commit()
     db.refresh(escalation)
     return escalation


@router.post(
     "/apply-due",
     response_model=ApplyDueResponse,
     summary="Apply every escalation whose effective date has arrived"
)
def apply_due_escalations(
     db: Session = Depends(get_session),
     token: dict = Depends(require_admin)
):
     applied = EscalationService.apply_due_escalations(db)
     db.commit()
     return ApplyDueResponse(applied_escalation_ids=[e.id for e in applied], count=len(applied))


@router.get(
     "/{escalation_id}",
     response_model=EscalationResponse,
     summary="Get escalation by ID"
)
def get_escalation(
     escalation_id: int,
     db: Session = Depends(get_session),
     token: dict = Depends(require_admin)
):
     return EscalationService.get_escalation(db, escalation_id)


@router.patch(
     "/{escalation_id}",
     response_model=EscalationResponse,
     summary="Edit a pending escalation"
)
def update_escalation(
     escalation_id: int,
     escalation_data: EscalationUpdate,
     db: Session = Depends(get_session),
     token: dict = Depends(require_admin)
):
     escalation = EscalationService.update_escalation(
          db, escalation_id, escalation_data.model_dump(exclude_unset=True)
     )
     db.commit()
     db.refresh(escalation)
     return escalation


@router.post(
     "/{escalation_id}/apply",
     response_model=EscalationResponse,
     summary="Apply an escalation"
)
def apply_escalation(
     escalation_id: int,
     db: Session = Depends(get_session),
     token: dict = Depends(require_admin)
):
     """
     Set the lease's monthly rent to the escalation's target and mark it
     applied. Applying twice returns 409.
     """
     escalation = EscalationService.apply_escalation(db, escalation_id)
     db.commit()
     db.refresh(escalation)
     return escalation


@router.post(
     "/{escalation_id}/recompute",
     response_model=EscalationResponse,
     summary="Recompute a pending escalation against the current rent"
)
def recompute_escalation(
     escalation_id: int,
     db: Session = Depends(get_session),
     token: dict = Depends(require_admin)
):
     escalation = EscalationService.recompute_escalation(db, escalation_id)
     db.commit()
     db.refresh(escalation)
     return escalation


@router.delete(
     "/{escalation_id}",
     status_code=status.HTTP_204_NO_CONTENT,
     summary="Delete an escalation"
)
def delete_escalation(
     escalation_id: int,
     db: Session = Depends(get_session),
     token: dict = Depends(require_admin)
):
     EscalationService.delete_escalation(db, escalation_id)
     db.commit()
