"""
Accounting Service - QuickBooks Online integration.

QuickBooksCredentialProvider owns the OAuth tokens (stored in the
quickbooks_tokens table): it hands out a valid access token, refreshing it
when it has expired, and drops the stored tokens when the refresh token is
no longer accepted.

QuickBooksClient is the accounting sink used after a payment is recorded.
Every failure surfaces as ExternalServiceError; callers on the payment path
treat it as non-fatal.
"""
import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from decimal import Decimal
from typing import Optional, Protocol
from urllib.parse import urlencode

import requests
from sqlalchemy.orm import Session

import config
from models import QuickBooksToken
from services.exceptions import ExternalServiceError, NotConnectedError

logger = logging.getLogger(__name__)

AUTHORIZE_URL = "https://appcenter.intuit.com/connect/oauth2"
TOKEN_URL = "https://oauth.platform.intuit.com/oauth2/v1/tokens/bearer"
SCOPES = "com.intuit.quickbooks.accounting com.intuit.quickbooks.payment openid"


def _api_base_url() -> str:
     if config.QUICKBOOKS_ENVIRONMENT == "production":
          return "https://quickbooks.api.intuit.com"
     return "https://sandbox-quickbooks.api.intuit.com"


@dataclass(frozen=True)
class Credential:
     access_token: str
     realm_id: str


@dataclass(frozen=True)
class Receipt:
     id: str
     txn_date: Optional[str]
     total_amount: Optional[Decimal]
     raw: dict = field(default_factory=dict, compare=False, repr=False)


class AccountingSyncAdapter(Protocol):
     """What the payment path needs from an accounting system."""

     def is_connected(self) -> bool: ...

     def record_receipt(self, payer_name: str, amount: Decimal, iso_date: str, memo: Optional[str] = None) -> Receipt: ...


class QuickBooksCredentialProvider:
     """Scoped access to the stored QuickBooks OAuth tokens."""

     def __init__(self, db: Session, http: Optional[requests.Session] = None):
          self.db = db
          self.http = http or requests.Session()

     def _stored(self) -> Optional[QuickBooksToken]:
          return self.db.query(QuickBooksToken).order_by(QuickBooksToken.id).first()

     def is_connected(self) -> bool:
          return self._stored() is not None

     def authorization_url(self, state: str) -> str:
          if not config.QUICKBOOKS_CLIENT_ID or not config.QUICKBOOKS_REDIRECT_URI:
               raise ExternalServiceError("QuickBooks client is not configured")
          query = urlencode({
               "client_id": config.QUICKBOOKS_CLIENT_ID,
               "response_type": "code",
               "scope": SCOPES,
               "redirect_uri": config.QUICKBOOKS_REDIRECT_URI,
               "state": state,
          })
          return f"{AUTHORIZE_URL}?{query}"

     def _token_request(self, data: dict) -> dict:
          try:
               response = self.http.post(
                    TOKEN_URL,
                    data=data,
                    auth=(config.QUICKBOOKS_CLIENT_ID or "", config.QUICKBOOKS_CLIENT_SECRET or ""),
                    headers={"Accept": "application/json"},
                    timeout=config.QUICKBOOKS_TIMEOUT,
               )
          except requests.RequestException as exc:
               raise ExternalServiceError(f"QuickBooks token request failed: {exc}") from exc
          if not response.ok:
               raise ExternalServiceError(f"QuickBooks token error: {response.text}")
          return response.json()

     def _save(self, realm_id: str, tokens: dict, now: datetime) -> QuickBooksToken:
          stored = self.db.query(QuickBooksToken).filter(QuickBooksToken.realm_id == realm_id).first()
          if stored is None:
               stored = QuickBooksToken(realm_id=realm_id)
               self.db.add(stored)
          stored.access_token = tokens["access_token"]
          stored.refresh_token = tokens["refresh_token"]
          stored.access_token_expires_at = now + timedelta(seconds=int(tokens["expires_in"]))
          stored.refresh_token_expires_at = now + timedelta(seconds=int(tokens["x_refresh_token_expires_in"]))
          self.db.flush()
          return stored

     def exchange_code(self, code: str, realm_id: str, now: Optional[datetime] = None) -> QuickBooksToken:
          """Complete the OAuth callback and store (or replace) the realm's tokens."""
          tokens = self._token_request({
               "grant_type": "authorization_code",
               "code": code,
               "redirect_uri": config.QUICKBOOKS_REDIRECT_URI or "",
          })
          stored = self._save(realm_id, tokens, now or datetime.utcnow())
          logger.info("QuickBooks connected for realm %s", realm_id)
          return stored

     def refresh(self, now: Optional[datetime] = None) -> Credential:
          """
          Exchange the refresh token for a new access token.

          A rejected refresh means the connection is gone: the stored tokens
          are removed and NotConnectedError is raised.
          """
          stored = self._stored()
          if stored is None:
               raise NotConnectedError()
          now = now or datetime.utcnow()
          if stored.refresh_token_expired(now):
               self.invalidate()
               raise NotConnectedError("QuickBooks authorization has expired; reconnect")

          try:
               tokens = self._token_request({
                    "grant_type": "refresh_token",
                    "refresh_token": stored.refresh_token,
               })
          except ExternalServiceError:
               logger.warning("QuickBooks token refresh failed; dropping stored tokens", exc_info=True)
               self.invalidate()
               raise NotConnectedError("QuickBooks authorization was revoked; reconnect")

          stored = self._save(stored.realm_id, tokens, now)
          return Credential(access_token=stored.access_token, realm_id=stored.realm_id)

     def get_valid_credential(self, now: Optional[datetime] = None) -> Credential:
          """Return a usable access token, refreshing it first if it has expired."""
          stored = self._stored()
          if stored is None:
               raise NotConnectedError()
          now = now or datetime.utcnow()
          if stored.access_token_expired(now):
               return self.refresh(now)
          return Credential(access_token=stored.access_token, realm_id=stored.realm_id)

     def invalidate(self) -> None:
          """Forget all stored tokens (disconnect)."""
          self.db.query(QuickBooksToken).delete(synchronize_session=False)
          self.db.flush()


class QuickBooksClient:
     """QuickBooks Online Accounting API calls used by the application."""

     def __init__(self, credentials: QuickBooksCredentialProvider, http: Optional[requests.Session] = None):
          self.credentials = credentials
          self.http = http or credentials.http

     def is_connected(self) -> bool:
          return self.credentials.is_connected()

     def _request(self, endpoint: str, method: str = "GET", body: Optional[dict] = None, params: Optional[dict] = None) -> dict:
          credential = self.credentials.get_valid_credential()
          url = f"{_api_base_url()}/v3/company/{credential.realm_id}/{endpoint}"
          try:
               response = self.http.request(
                    method,
                    url,
                    json=body,
                    params=params,
                    headers={
                         "Authorization": f"Bearer {credential.access_token}",
                         "Accept": "application/json",
                         "Content-Type": "application/json",
                    },
                    timeout=config.QUICKBOOKS_TIMEOUT,
               )
          except requests.RequestException as exc:
               raise ExternalServiceError(f"QuickBooks request failed: {exc}") from exc
          if not response.ok:
               raise ExternalServiceError(f"QuickBooks API error: {response.text}")
          return response.json()

     def _query(self, statement: str) -> dict:
          return self._request("query", params={"query": statement}).get("QueryResponse", {})

     def get_company_info(self) -> dict:
          credential = self.credentials.get_valid_credential()
          return self._request(f"companyinfo/{credential.realm_id}").get("CompanyInfo", {})

     def find_or_create_customer(self, display_name: str) -> str:
          escaped = display_name.replace("'", "\\'")
          customers = self._query(f"select * from Customer where DisplayName = '{escaped}'").get("Customer") or []
          if customers:
               return customers[0]["Id"]
          created = self._request("customer", "POST", {"DisplayName": display_name})
          return created["Customer"]["Id"]

     def record_receipt(self, payer_name: str, amount: Decimal, iso_date: str, memo: Optional[str] = None) -> Receipt:
          """Create a sales receipt for a rent payment."""
          customer_id = self.find_or_create_customer(payer_name)
          amount = float(amount)
          data = self._request("salesreceipt", "POST", {
               "CustomerRef": {"value": customer_id},
               "TxnDate": iso_date,
               "PrivateNote": memo or "Rent payment",
               "Line": [
                    {
                         "Amount": amount,
                         "DetailType": "SalesItemLineDetail",
                         "SalesItemLineDetail": {
                              "ItemRef": {"value": "1"},  # Default item
                              "Qty": 1,
                              "UnitPrice": amount,
                         },
                    }
               ],
          })
          receipt = data.get("SalesReceipt", {})
          total = receipt.get("TotalAmt")
          return Receipt(
               id=str(receipt.get("Id", "")),
               txn_date=receipt.get("TxnDate"),
               total_amount=Decimal(str(total)) if total is not None else None,
               raw=receipt,
          )
