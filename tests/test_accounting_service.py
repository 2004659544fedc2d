"""
Tests for the QuickBooks credential provider and client, using a fake HTTP
session instead of the network.
"""
from datetime import datetime, timedelta
from decimal import Decimal

import pytest

from models import QuickBooksToken
from services.accounting_service import QuickBooksClient, QuickBooksCredentialProvider
from services.exceptions import ExternalServiceError, NotConnectedError

NOW = datetime(2025, 1, 1, 12, 0)

TOKEN_RESPONSE = {
     "access_token": "access-2",
     "refresh_token": "refresh-2",
     "expires_in": 3600,
     "x_refresh_token_expires_in": 8640000,
}


class FakeResponse:
     def __init__(self, status_code=200, payload=None):
          self.status_code = status_code
          self.payload = payload or {}
          self.text = str(self.payload)

     @property
     def ok(self):
          return self.status_code < 400

     def json(self):
          return self.payload


class FakeHttp:
     """Records calls and answers from a queue of FakeResponses."""

     def __init__(self, *responses):
          self.responses = list(responses)
          self.calls = []

     def _next(self, method, url, **kwargs):
          self.calls.append({"method": method, "url": url, **kwargs})
          return self.responses.pop(0)

     def post(self, url, **kwargs):
          return self._next("POST", url, **kwargs)

     def request(self, method, url, **kwargs):
          return self._next(method, url, **kwargs)


def _store_token(db, access_expires=NOW + timedelta(hours=1), refresh_expires=NOW + timedelta(days=90)):
     token = QuickBooksToken(
          realm_id="realm-1",
          access_token="access-1",
          refresh_token="refresh-1",
          access_token_expires_at=access_expires,
          refresh_token_expires_at=refresh_expires,
     )
     db.add(token)
     db.commit()
     return token


class TestCredentialProvider:
     def test_not_connected_without_tokens(self, db):
          provider = QuickBooksCredentialProvider(db, http=FakeHttp())
          assert provider.is_connected() is False
          with pytest.raises(NotConnectedError):
               provider.get_valid_credential(NOW)

     def test_exchange_code_stores_tokens(self, db):
          http = FakeHttp(FakeResponse(payload=TOKEN_RESPONSE))
          provider = QuickBooksCredentialProvider(db, http=http)

          stored = provider.exchange_code("auth-code", "realm-9", now=NOW)

          assert stored.realm_id == "realm-9"
          assert stored.access_token_expires_at == NOW + timedelta(seconds=3600)
          assert http.calls[0]["data"]["grant_type"] == "authorization_code"
          assert provider.is_connected()

     def test_valid_token_is_returned_without_refresh(self, db):
          _store_token(db)
          http = FakeHttp()
          credential = QuickBooksCredentialProvider(db, http=http).get_valid_credential(NOW)
          assert credential.access_token == "access-1"
          assert http.calls == []

     def test_expired_access_token_is_refreshed(self, db):
          _store_token(db, access_expires=NOW - timedelta(minutes=1))
          http = FakeHttp(FakeResponse(payload=TOKEN_RESPONSE))

          credential = QuickBooksCredentialProvider(db, http=http).get_valid_credential(NOW)

          assert credential.access_token == "access-2"
          assert http.calls[0]["data"] == {"grant_type": "refresh_token", "refresh_token": "refresh-1"}

     def test_rejected_refresh_invalidates_connection(self, db):
          _store_token(db, access_expires=NOW - timedelta(minutes=1))
          http = FakeHttp(FakeResponse(status_code=400, payload={"error": "invalid_grant"}))
          provider = QuickBooksCredentialProvider(db, http=http)

          with pytest.raises(NotConnectedError):
               provider.get_valid_credential(NOW)
          assert provider.is_connected() is False

     def test_expired_refresh_token_invalidates_without_calling_out(self, db):
          _store_token(db, access_expires=NOW - timedelta(days=2), refresh_expires=NOW - timedelta(days=1))
          http = FakeHttp()
          provider = QuickBooksCredentialProvider(db, http=http)

          with pytest.raises(NotConnectedError):
               provider.get_valid_credential(NOW)
          assert http.calls == []
          assert provider.is_connected() is False


class TestQuickBooksClient:
     def test_record_receipt_reuses_existing_customer(self, db):
          _store_token(db, access_expires=datetime.utcnow() + timedelta(hours=1))
          http = FakeHttp(
               FakeResponse(payload={"QueryResponse": {"Customer": [{"Id": "58"}]}}),
               FakeResponse(payload={"SalesReceipt": {"Id": "901", "TxnDate": "2025-02-01", "TotalAmt": 2000.0}}),
          )
          client = QuickBooksClient(QuickBooksCredentialProvider(db, http=http))

          receipt = client.record_receipt("Jane Doe", Decimal("2000.00"), "2025-02-01", "Rent")

          assert receipt.id == "901"
          assert receipt.total_amount == Decimal("2000.0")
          body = http.calls[1]["json"]
          assert body["CustomerRef"] == {"value": "58"}
          assert body["Line"][0]["Amount"] == 2000.0
          assert http.calls[1]["headers"]["Authorization"] == "Bearer access-1"

     def test_creates_customer_when_missing(self, db):
          _store_token(db, access_expires=datetime.utcnow() + timedelta(hours=1))
          http = FakeHttp(
               FakeResponse(payload={"QueryResponse": {}}),
               FakeResponse(payload={"Customer": {"Id": "77"}}),
               FakeResponse(payload={"SalesReceipt": {"Id": "902"}}),
          )
          client = QuickBooksClient(QuickBooksCredentialProvider(db, http=http))

          client.record_receipt("O'Brien Deli", Decimal("10"), "2025-02-01")

          assert "O\\'Brien Deli" in http.calls[0]["params"]["query"]
          assert http.calls[1]["json"] == {"DisplayName": "O'Brien Deli"}
          assert http.calls[2]["json"]["CustomerRef"] == {"value": "77"}

     def test_api_error_is_external_service_error(self, db):
          _store_token(db, access_expires=datetime.utcnow() + timedelta(hours=1))
          http = FakeHttp(FakeResponse(status_code=500, payload={"Fault": "down"}))
          client = QuickBooksClient(QuickBooksCredentialProvider(db, http=http))

          with pytest.raises(ExternalServiceError):
               client.record_receipt("Jane Doe", Decimal("10"), "2025-02-01")
