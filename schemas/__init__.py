from .lease import (
     LeaseCreate,
     LeaseUpdate,
     LeaseStatusChange,
     LeaseResponse,
     LeaseDetailResponse,
     ExpireSweepResponse,
)
from .escalation import EscalationCreate, EscalationUpdate, EscalationResponse, ApplyDueResponse
from .insurance import InsuranceCreate, InsuranceUpdate, InsuranceResponse, ComplianceResponse
from .payment import PaymentCreate, PaymentResponse
from .unit import UnitStatusUpdate, UnitResponse
from .accounting import ConnectResponse, AccountingStatusResponse
from .auth import LoginRequest, LoginUser, LoginResponse

__all__ = [
     "LeaseCreate",
     "LeaseUpdate",
     "LeaseStatusChange",
     "LeaseResponse",
     "LeaseDetailResponse",
     "ExpireSweepResponse",
     "EscalationCreate",
     "EscalationUpdate",
     "EscalationResponse",
     "ApplyDueResponse",
     "InsuranceCreate",
     "InsuranceUpdate",
     "InsuranceResponse",
     "ComplianceResponse",
     "PaymentCreate",
     "PaymentResponse",
     "UnitStatusUpdate",
     "UnitResponse",
     "ConnectResponse",
     "AccountingStatusResponse",
     "LoginRequest",
     "LoginUser",
     "LoginResponse",
]
