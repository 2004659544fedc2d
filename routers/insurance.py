# routers/insurance.py
"""
Insurance record API routes.

Role-based access:
- Tenant: submit, view and edit certificates on own leases
- Admin: everything, plus verify, send reminders and delete
"""
from typing import Optional, List
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from auth import (
     accessible_lease_ids,
     authorize_insurance_access,
     authorize_lease_access,
     is_admin,
     require_admin,
     require_tenant_or_admin,
)
from database import get_session
from services.insurance_service import InsuranceService
from schemas.insurance import InsuranceCreate, InsuranceUpdate, InsuranceResponse

router = APIRouter(prefix="/api/insurance", tags=["insurance"])


@router.get(
     "",
     response_model=List[InsuranceResponse],
     summary="List insurance records"
)
def list_insurance(
     lease_id: Optional[int] = Query(None, description="Filter by lease ID"),
     expiring_soon: bool = Query(False, description="Only records expiring within 30 days"),
     db: Session = Depends(get_session),
     token: dict = Depends(require_tenant_or_admin)
):
     """
     **Role-based access:**
     - **Tenant**: Only records on own leases.
     - **Admin**: All records.
     """
     if lease_id is not None:
          authorize_lease_access(db, token, lease_id)
     return InsuranceService.list_records(
          db,
          lease_ids=accessible_lease_ids(db, token),
          lease_id=lease_id,
          expiring_soon=expiring_soon,
     )


@router.post(
     "",
     response_model=InsuranceResponse,
     status_code=status.HTTP_201_CREATED,
     summary="Submit a certificate of insurance"
)
def submit_insurance(
     insurance_data: InsuranceCreate,
     db: Session = Depends(get_session),
     token: dict = Depends(require_tenant_or_admin)
):
     """
     The record is created unverified and the beneficiary is always set to
     the property owner.
     """
     authorize_lease_access(db, token, insurance_data.lease_id)
     record = InsuranceService.submit_insurance(db, **insurance_data.model_dump())
     db.commit()
     db.refresh(record)
     return record


@router.get(
     "/{record_id}",
     response_model=InsuranceResponse,
     summary="Get insurance record by ID"
)
def get_insurance(
     record_id: int,
     db: Session = Depends(get_session),
     token: dict = Depends(require_tenant_or_admin)
):
     return authorize_insurance_access(db, token, record_id)


@router.patch(
     "/{record_id}",
     response_model=InsuranceResponse,
     summary="Edit an insurance record"
)
def update_insurance(
     record_id: int,
     insurance_data: InsuranceUpdate,
     db: Session = Depends(get_session),
     token: dict = Depends(require_tenant_or_admin)
):
     """A tenant edit on a verified record clears the verification; admin edits keep it."""
     authorize_insurance_access(db, token, record_id)
     record = InsuranceService.update_record(
          db, record_id, insurance_data.model_dump(exclude_unset=True), by_admin=is_admin(token)
     )
     db.commit()
     db.refresh(record)
     return record


@router.post(
     "/{record_id}/verify",
     response_model=InsuranceResponse,
     summary="Verify an insurance record"
)
def verify_insurance(
     record_id: int,
     db: Session = Depends(get_session),
     token: dict = Depends(require_admin)
):
     record = InsuranceService.verify_insurance(db, record_id)
     db.commit()
     db.refresh(record)
     return record


@router.post(
     "/{record_id}/reminder",
     response_model=InsuranceResponse,
     summary="Email the tenant an expiration reminder"
)
def send_insurance_reminder(
     record_id: int,
     db: Session = Depends(get_session),
     token: dict = Depends(require_admin)
):
     record = InsuranceService.send_expiration_reminder(db, record_id)
     db.commit()
     db.refresh(record)
     return record


@router.delete(
     "/{record_id}",
     status_code=status.HTTP_204_NO_CONTENT,
     summary="Delete an insurance record"
)
def delete_insurance(
     record_id: int,
     db: Session = Depends(get_session),
     token: dict = Depends(require_admin)
):
     InsuranceService.delete_record(db, record_id)
     db.commit()
