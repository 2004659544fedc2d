from .lease_service import LeaseService
from .escalation_service import EscalationService, compute_new_monthly_rent
from .insurance_service import (
     InsuranceService,
     InsuranceCompliance,
     ComplianceBanner,
     compute_compliance,
)
from .payment_service import PaymentService
from .accounting_service import QuickBooksClient, QuickBooksCredentialProvider

__all__ = [
     "LeaseService",
     "EscalationService",
     "compute_new_monthly_rent",
     "InsuranceService",
     "InsuranceCompliance",
     "ComplianceBanner",
     "compute_compliance",
     "PaymentService",
     "QuickBooksClient",
     "QuickBooksCredentialProvider",
]
