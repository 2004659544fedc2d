"""
Payment Service - rent payments recorded against leases.

A payment is committed on its own. Mirroring it into QuickBooks happens
afterwards and is best-effort: a failure is logged and the payment stays.
"""
import logging
from datetime import date
from decimal import Decimal
from typing import Iterable, Optional

from sqlalchemy.orm import Session

from models import Lease, Payment
from services.accounting_service import AccountingSyncAdapter, Receipt
from services.exceptions import ExternalServiceError, NotFoundError, ValidationError

logger = logging.getLogger(__name__)

PAYMENT_METHODS = ("CASH", "CHECK", "ACH", "CARD", "OTHER")


class PaymentService:
     """Service class for payment business logic."""

     @staticmethod
     def list_payments(
          db: Session,
          lease_ids: Optional[Iterable[int]] = None,
          lease_id: Optional[int] = None,
     ) -> list[Payment]:
          query = db.query(Payment)
          if lease_ids is not None:
               lease_ids = list(lease_ids)
               if not lease_ids:
                    return []
               query = query.filter(Payment.lease_id.in_(lease_ids))
          if lease_id is not None:
               query = query.filter(Payment.lease_id == lease_id)
          return query.order_by(Payment.date.desc(), Payment.id.desc()).all()

     @staticmethod
     def record_payment(
          db: Session,
          lease_id: int,
          amount: Decimal,
          payment_date: date,
          method: Optional[str] = None,
          reference: Optional[str] = None,
          notes: Optional[str] = None,
     ) -> Payment:
          """
          Record a payment received for a lease.

          Raises:
               ValidationError: missing amount/date or unknown method
               NotFoundError: lease doesn't exist
          """
          if amount is None or payment_date is None:
               raise ValidationError("amount and date are required")
          if amount <= 0:
               raise ValidationError("amount must be greater than zero")
          if method:
               method = method.strip().upper()
               if method not in PAYMENT_METHODS:
                    raise ValidationError(f"method must be one of {', '.join(PAYMENT_METHODS)}")

          if db.get(Lease, lease_id) is None:
               raise NotFoundError(f"Lease with ID {lease_id} not found")

          payment = Payment(
               lease_id=lease_id,
               amount=amount,
               date=payment_date,
               method=method or None,
               reference=reference,
               notes=notes,
          )
          db.add(payment)
          db.flush()
          logger.info("Payment %s of %s recorded for lease %s", payment.id, amount, lease_id)
          return payment

     @staticmethod
     def delete_payment(db: Session, payment_id: int) -> None:
          payment = db.get(Payment, payment_id)
          if payment is None:
               raise NotFoundError(f"Payment with ID {payment_id} not found")
          db.delete(payment)
          db.flush()

     @staticmethod
     def sync_to_accounting(payment: Payment, adapter: AccountingSyncAdapter) -> Optional[Receipt]:
          """
          Mirror a committed payment into the accounting system.

          Never raises for accounting failures.

          Returns:
               The receipt, or None when not connected or the sync failed
          """
          try:
               if not adapter.is_connected():
                    logger.debug("Accounting not connected; payment %s not synced", payment.id)
                    return None

               lease = payment.lease
               unit = lease.unit
               payer_name = lease.tenant.display_name
               memo = f"Rent payment for {unit.property.name} - Unit {unit.unit_number}"
               if payment.reference:
                    memo = f"{memo}. Reference: {payment.reference}"

               receipt = adapter.record_receipt(
                    payer_name=payer_name,
                    amount=payment.amount,
                    iso_date=payment.date.isoformat(),
                    memo=memo,
               )
          except ExternalServiceError as exc:
               logger.warning("Failed to sync payment %s to accounting: %s", payment.id, exc.message)
               return None
          except Exception:
               # Best-effort side channel: the payment is already committed
               logger.exception("Unexpected error syncing payment %s to accounting", payment.id)
               return None

          logger.info("Payment %s synced to accounting as receipt %s", payment.id, receipt.id)
          return receipt
