"""
Tests for PaymentService and the best-effort accounting sync.
"""
from datetime import date
from decimal import Decimal

import pytest

from models import Payment
from services.exceptions import ExternalServiceError, NotFoundError, ValidationError
from services.payment_service import PaymentService
from conftest import FakeAccountingAdapter


def _record(db, lease, amount="2000.00", **kwargs):
     payment = PaymentService.record_payment(
          db, lease.id, Decimal(amount), kwargs.pop("payment_date", date(2025, 2, 1)), **kwargs
     )
     db.commit()
     return payment


class TestRecordPayment:
     def test_records_payment(self, db, active_lease):
          payment = _record(db, active_lease, method="ach", reference="TRX-1")
          assert payment.id is not None
          assert payment.method == "ACH"
          assert payment.amount == Decimal("2000.00")

     def test_unknown_method_is_rejected(self, db, active_lease):
          with pytest.raises(ValidationError):
               PaymentService.record_payment(db, active_lease.id, Decimal("10"), date(2025, 2, 1), method="BITCOIN")

     def test_missing_lease(self, db):
          with pytest.raises(NotFoundError):
               PaymentService.record_payment(db, 404, Decimal("10"), date(2025, 2, 1))

     def test_list_is_newest_first(self, db, active_lease):
          _record(db, active_lease, payment_date=date(2025, 1, 1))
          _record(db, active_lease, payment_date=date(2025, 3, 1))
          payments = PaymentService.list_payments(db, lease_id=active_lease.id)
          assert [p.date for p in payments] == [date(2025, 3, 1), date(2025, 1, 1)]


class TestSyncToAccounting:
     def test_sync_posts_receipt(self, db, active_lease):
          adapter = FakeAccountingAdapter()
          payment = _record(db, active_lease, reference="TRX-9")

          receipt = PaymentService.sync_to_accounting(payment, adapter)

          assert receipt is not None
          sent = adapter.receipts[0]
          assert sent["payer_name"] == "Jane Doe"
          assert sent["iso_date"] == "2025-02-01"
          assert "TRX-9" in sent["memo"]

     def test_business_name_is_the_payer(self, db, make_tenant, make_unit, make_lease):
          lease = make_lease(make_tenant(business_name="Everest Cafe LLC"), make_unit())
          adapter = FakeAccountingAdapter()
          PaymentService.sync_to_accounting(_record(db, lease), adapter)
          assert adapter.receipts[0]["payer_name"] == "Everest Cafe LLC"

     def test_not_connected_skips_sync(self, db, active_lease):
          adapter = FakeAccountingAdapter(connected=False)
          assert PaymentService.sync_to_accounting(_record(db, active_lease), adapter) is None
          assert adapter.receipts == []

     @pytest.mark.parametrize("error", [ExternalServiceError("QuickBooks API error"), RuntimeError("boom")])
     def test_failure_is_non_fatal(self, db, active_lease, error):
          payment = _record(db, active_lease)

          assert PaymentService.sync_to_accounting(payment, FakeAccountingAdapter(error=error)) is None
          assert db.get(Payment, payment.id) is not None
