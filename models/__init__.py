from .base import Base
from .user import User, UserRole
from .property import Property, PropertyType
from .unit import Unit, UnitStatus
from .tenant import Tenant
from .lease import Lease, LeaseStatus, LeaseType
from .lease_escalation import LeaseEscalation, IncreaseType
from .insurance_record import InsuranceRecord, InsuranceType
from .payment import Payment
from .quickbooks_token import QuickBooksToken

__all__ = [
     "Base",
     "User",
     "UserRole",
     "Property",
     "PropertyType",
     "Unit",
     "UnitStatus",
     "Tenant",
     "Lease",
     "LeaseStatus",
     "LeaseType",
     "LeaseEscalation",
     "IncreaseType",
     "InsuranceRecord",
     "InsuranceType",
     "Payment",
     "QuickBooksToken",
]
