# routers/leases.py
"""
Lease API routes.

Role-based access:
- Admin: create, edit, expire/terminate and delete leases; sees every lease
- Tenant: reads own leases and their insurance compliance only
"""
from datetime import date
from typing import Optional, List
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

import config
from auth import (
     accessible_lease_ids,
     authorize_lease_access,
     get_tenant_for_claims,
     require_admin,
     require_tenant_or_admin,
)
from database import get_session
from models import Lease, LeaseStatus
from services.lease_service import LeaseService
from services.insurance_service import InsuranceService
from schemas.lease import (
     LeaseCreate,
     LeaseUpdate,
     LeaseStatusChange,
     LeaseResponse,
     LeaseDetailResponse,
     ExpireSweepResponse,
)
from schemas.escalation import EscalationResponse
from schemas.insurance import ComplianceResponse, InsuranceResponse
from schemas.payment import PaymentResponse

router = APIRouter(prefix="/api/leases", tags=["leases"])


def build_lease_response(lease: Lease, today: Optional[date] = None) -> LeaseResponse:
     """Build LeaseResponse with read-time flags and related names."""
     today = today or date.today()
     response = LeaseResponse.model_validate(lease)
     response.is_expired = lease.expired_on(today)
     response.is_expiring_soon = lease.expiring_within(today, config.LEASE_EXPIRING_WINDOW_DAYS)
     response.days_until_end = lease.days_left(today)

     if lease.tenant:
          response.tenant_name = lease.tenant.display_name
     if lease.unit:
          response.unit_number = lease.unit.unit_number
          if lease.unit.property:
               response.property_name = lease.unit.property.name
     return response


def _build_lease_detail(lease: Lease, today: Optional[date] = None) -> LeaseDetailResponse:
     today = today or date.today()
     summary = build_lease_response(lease, today)
     return LeaseDetailResponse(
          **summary.model_dump(),
          escalations=[EscalationResponse.model_validate(e) for e in lease.escalations],
          insurance_records=[InsuranceResponse.model_validate(r) for r in lease.insurance_records],
          payments=[PaymentResponse.model_validate(p) for p in lease.payments],
          compliance=(
               ComplianceResponse.from_compliance(lease.id, InsuranceService.lease_compliance(lease, today))
               if lease.is_commercial
               else None
          ),
     )


@router.post(
     "",
     response_model=LeaseResponse,
     status_code=status.HTTP_201_CREATED,
     summary="Create a lease"
)
def create_lease(
     lease_data: LeaseCreate,
     db: Session = Depends(get_session),
     token: dict = Depends(require_admin)
):
     """
     Create an ACTIVE lease for a tenant on a unit.

     Any lease still active on the unit is expired first, the tenant is
     pointed at the unit and the unit is marked OCCUPIED.
     """
     lease = LeaseService.create_lease(db, **lease_data.model_dump())
     db.commit()
     db.refresh(lease)
     return build_lease_response(lease)


@router.get(
     "",
     response_model=List[LeaseResponse],
     summary="List leases"
)
def list_leases(
     status: Optional[LeaseStatus] = Query(None, description="Filter by status"),
     unit_id: Optional[int] = Query(None, description="Filter by unit ID"),
     tenant_id: Optional[int] = Query(None, description="Filter by tenant ID"),
     db: Session = Depends(get_session),
     token: dict = Depends(require_tenant_or_admin)
):
     """
     **Role-based access:**
     - **Tenant**: Only own leases (other filters still apply).
     - **Admin**: All leases.
     """
     leases = LeaseService.list_leases(
          db,
          status=status,
          unit_id=unit_id,
          tenant_id=tenant_id,
          lease_ids=accessible_lease_ids(db, token),
     )
     today = date.today()
     return [build_lease_response(lease, today) for lease in leases]


@router.get(
     "/mine",
     response_model=Optional[LeaseDetailResponse],
     summary="Get the logged-in tenant's current lease"
)
def get_my_lease(
     db: Session = Depends(get_session),
     token: dict = Depends(require_tenant_or_admin)
):
     """The tenant's ACTIVE lease, or their most recent one; null when none exists."""
     tenant = get_tenant_for_claims(db, token)
     leases = LeaseService.list_leases(db, tenant_id=tenant.id)
     if not leases:
          return None
     current = next((lease for lease in leases if lease.is_active), leases[0])
     return _build_lease_detail(current)


@router.post(
     "/expire-ended",
     response_model=ExpireSweepResponse,
     summary="Expire every active lease past its end date"
)
def expire_ended_leases(
     db: Session = Depends(get_session),
     token: dict = Depends(require_admin)
):
     expired = LeaseService.expire_ended_leases(db)
     db.commit()
     return ExpireSweepResponse(expired_lease_ids=[lease.id for lease in expired], count=len(expired))


@router.get(
     "/{lease_id}",
     response_model=LeaseDetailResponse,
     summary="Get lease by ID"
)
def get_lease(
     lease_id: int,
     db: Session = Depends(get_session),
     token: dict = Depends(require_tenant_or_admin)
):
     """Lease with escalations, insurance records, payments and, for commercial leases, compliance."""
     lease = authorize_lease_access(db, token, lease_id)
     return _build_lease_detail(lease)


@router.get(
     "/{lease_id}/compliance",
     response_model=ComplianceResponse,
     summary="Get insurance compliance for a lease"
)
def get_lease_compliance(
     lease_id: int,
     db: Session = Depends(get_session),
     token: dict = Depends(require_tenant_or_admin)
):
     lease = authorize_lease_access(db, token, lease_id)
     return ComplianceResponse.from_compliance(lease.id, InsuranceService.lease_compliance(lease))


@router.put(
     "/{lease_id}",
     response_model=LeaseResponse,
     summary="Update a lease"
)
def update_lease(
     lease_id: int,
     lease_data: LeaseUpdate,
     db: Session = Depends(get_session),
     token: dict = Depends(require_admin)
):
     """
     Edit lease terms. monthly_rent cannot be sent here; schedule and apply
     an escalation instead.
     """
     lease = LeaseService.update_lease(db, lease_id, lease_data.model_dump(exclude_unset=True))
     db.commit()
     db.refresh(lease)
     return build_lease_response(lease)


@router.post(
     "/{lease_id}/status",
     response_model=LeaseResponse,
     summary="Expire or terminate a lease"
)
def change_lease_status(
     lease_id: int,
     status_data: LeaseStatusChange,
     db: Session = Depends(get_session),
     token: dict = Depends(require_admin)
):
     lease = LeaseService.change_status(db, lease_id, status_data.status)
     db.commit()
     db.refresh(lease)
     return build_lease_response(lease)


@router.delete(
     "/{lease_id}",
     status_code=status.HTTP_204_NO_CONTENT,
     summary="Delete a lease"
)
def delete_lease(
     lease_id: int,
     db: Session = Depends(get_session),
     token: dict = Depends(require_admin)
):
     LeaseService.delete_lease(db, lease_id)
     db.commit()
