"""
Pydantic schemas for unit listing and manual status changes.
"""
from decimal import Decimal
from typing import Optional
from pydantic import BaseModel, ConfigDict

from models import UnitStatus


class UnitStatusUpdate(BaseModel):
     """Only VACANT and MAINTENANCE can be set by hand."""
     status: UnitStatus


class UnitResponse(BaseModel):
     id: int
     property_id: int
     unit_number: str
     status: UnitStatus
     rent_price: Optional[Decimal] = None
     property_name: Optional[str] = None

     model_config = ConfigDict(from_attributes=True)
