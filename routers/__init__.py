from .auth import router as auth_router
from .leases import router as leases_router
from .escalations import router as escalations_router
from .insurance import router as insurance_router
from .payments import router as payments_router
from .units import router as units_router
from .accounting import router as accounting_router
from .documents import router as documents_router

__all__ = [
     "auth_router",
     "leases_router",
     "escalations_router",
     "insurance_router",
     "payments_router",
     "units_router",
     "accounting_router",
     "documents_router",
]
