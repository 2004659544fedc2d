# routers/payments.py
"""
Payment API.

POST /api/payments records a rent payment against a lease and commits it.
The payment is then mirrored into QuickBooks as a sales receipt; that step
is best-effort and never undoes the recorded payment.
"""
import logging
from typing import Optional, List

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from auth import accessible_lease_ids, authorize_lease_access, require_admin, require_tenant_or_admin
from database import get_session
from services.accounting_service import AccountingSyncAdapter, QuickBooksClient, QuickBooksCredentialProvider
from services.payment_service import PaymentService
from schemas.payment import PaymentCreate, PaymentResponse

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/payments", tags=["payments"])


def get_accounting_adapter(db: Session = Depends(get_session)) -> AccountingSyncAdapter:
     """Accounting sink for recorded payments. Tests override this dependency."""
     return QuickBooksClient(QuickBooksCredentialProvider(db))


@router.get(
     "",
     response_model=List[PaymentResponse],
     summary="List payments"
)
def list_payments(
     lease_id: Optional[int] = Query(None, description="Filter by lease ID"),
     db: Session = Depends(get_session),
     token: dict = Depends(require_tenant_or_admin),
):
     """
     **Role-based access:**
     - **Tenant**: Only payments on own leases.
     - **Admin**: All payments.
     """
     if lease_id is not None:
          authorize_lease_access(db, token, lease_id)
     return PaymentService.list_payments(db, lease_ids=accessible_lease_ids(db, token), lease_id=lease_id)


@router.post(
     "",
     response_model=PaymentResponse,
     status_code=status.HTTP_201_CREATED,
     summary="Record a payment"
)
def record_payment(
     body: PaymentCreate,
     db: Session = Depends(get_session),
     token: dict = Depends(require_admin),
     adapter: AccountingSyncAdapter = Depends(get_accounting_adapter),
):
     payment = PaymentService.record_payment(
          db,
          lease_id=body.lease_id,
          amount=body.amount,
          payment_date=body.date,
          method=body.method,
          reference=body.reference,
          notes=body.notes,
     )
     db.commit()
     db.refresh(payment)

     response = PaymentResponse.model_validate(payment)
     receipt = PaymentService.sync_to_accounting(payment, adapter)
     # Token refreshes during the sync are kept even when the sync fails
     try:
          db.commit()
     except SQLAlchemyError:
          db.rollback()
          logger.exception("Failed to save accounting state after syncing payment %s", response.id)
     if receipt is not None:
          response.accounting_receipt_id = receipt.id
     return response


@router.delete(
     "/{payment_id}",
     status_code=status.HTTP_204_NO_CONTENT,
     summary="Delete a payment"
)
def delete_payment(
     payment_id: int,
     db: Session = Depends(get_session),
     token: dict = Depends(require_admin),
):
     PaymentService.delete_payment(db, payment_id)
     db.commit()
