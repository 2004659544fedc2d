# routers/units.py
"""
Unit API routes (admin only).

Occupancy is derived from leases; only VACANT <-> MAINTENANCE can be set here.
"""
from typing import Optional, List
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from auth import require_admin
from database import get_session
from models import Unit, UnitStatus
from services.lease_service import LeaseService
from schemas.unit import UnitStatusUpdate, UnitResponse

router = APIRouter(prefix="/api/units", tags=["units"])


def _build_unit_response(unit: Unit) -> UnitResponse:
     response = UnitResponse.model_validate(unit)
     if unit.property:
          response.property_name = unit.property.name
     return response


@router.get(
     "",
     response_model=List[UnitResponse],
     summary="List units"
)
def list_units(
     status: Optional[UnitStatus] = Query(None, description="Filter by status"),
     property_id: Optional[int] = Query(None, description="Filter by property ID"),
     db: Session = Depends(get_session),
     token: dict = Depends(require_admin)
):
     query = db.query(Unit)
     if status is not None:
          query = query.filter(Unit.status == status)
     if property_id is not None:
          query = query.filter(Unit.property_id == property_id)
     return [_build_unit_response(unit) for unit in query.order_by(Unit.property_id, Unit.unit_number).all()]


@router.patch(
     "/{unit_id}/status",
     response_model=UnitResponse,
     summary="Set a unit VACANT or under MAINTENANCE"
)
def update_unit_status(
     unit_id: int,
     body: UnitStatusUpdate,
     db: Session = Depends(get_session),
     token: dict = Depends(require_admin)
):
     unit = LeaseService.update_unit_status(db, unit_id, body.status)
     db.commit()
     db.refresh(unit)
     return _build_unit_response(unit)
