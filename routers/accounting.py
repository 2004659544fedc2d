# routers/accounting.py
"""
QuickBooks connection API (admin only).

Flow:
1. GET  /api/accounting/connect   -> authorization URL with a signed state
2. Intuit redirects the browser to GET /api/accounting/callback
3. The callback exchanges the code and redirects back to the admin UI
"""
import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from fastapi.responses import RedirectResponse
from sqlalchemy.orm import Session

import config
from auth import create_oauth_state, require_admin, verify_oauth_state
from database import get_session
from services.accounting_service import QuickBooksClient, QuickBooksCredentialProvider
from services.exceptions import LeaseholdError
from schemas.accounting import ConnectResponse, AccountingStatusResponse

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/accounting", tags=["accounting"])

ADMIN_ACCOUNTING_PATH = "/admin/accounting"


@router.get(
     "/connect",
     response_model=ConnectResponse,
     summary="Start the QuickBooks OAuth flow"
)
def connect(
     db: Session = Depends(get_session),
     token: dict = Depends(require_admin)
):
     state = create_oauth_state(token)
     url = QuickBooksCredentialProvider(db).authorization_url(state)
     return ConnectResponse(authorization_url=url, state=state)


@router.get(
     "/callback",
     summary="QuickBooks OAuth redirect target"
)
def callback(
     code: Optional[str] = Query(None),
     realm_id: Optional[str] = Query(None, alias="realmId"),
     state: Optional[str] = Query(None),
     error: Optional[str] = Query(None),
     db: Session = Depends(get_session),
):
     """
     Browser redirect from Intuit; the signed state stands in for the admin
     session. Always answers with a redirect to the admin accounting page.
     """
     target = f"{config.FRONTEND_URL}{ADMIN_ACCOUNTING_PATH}"
     try:
          verify_oauth_state(state)
          if error or not code or not realm_id:
               logger.warning("QuickBooks authorization declined or incomplete: %s", error)
               return RedirectResponse(f"{target}?error=connection_failed", status_code=status.HTTP_302_FOUND)
          QuickBooksCredentialProvider(db).exchange_code(code, realm_id)
          db.commit()
     except LeaseholdError as exc:
          db.rollback()
          logger.warning("QuickBooks callback failed: %s", exc.message)
          return RedirectResponse(f"{target}?error=connection_failed", status_code=status.HTTP_302_FOUND)

     return RedirectResponse(f"{target}?connected=true", status_code=status.HTTP_302_FOUND)


@router.get(
     "/status",
     response_model=AccountingStatusResponse,
     summary="QuickBooks connection status"
)
def connection_status(
     db: Session = Depends(get_session),
     token: dict = Depends(require_admin)
):
     credentials = QuickBooksCredentialProvider(db)
     if not credentials.is_connected():
          return AccountingStatusResponse(connected=False)

     try:
          company = QuickBooksClient(credentials).get_company_info()
     except LeaseholdError as exc:
          # A revoked refresh token has already cleared the stored connection
          logger.warning("QuickBooks status check failed: %s", exc.message)
          db.commit()
          return AccountingStatusResponse(connected=credentials.is_connected())
     db.commit()
     return AccountingStatusResponse(connected=True, company_name=company.get("CompanyName"))


@router.post(
     "/disconnect",
     status_code=status.HTTP_204_NO_CONTENT,
     summary="Forget the stored QuickBooks tokens"
)
def disconnect(
     db: Session = Depends(get_session),
     token: dict = Depends(require_admin)
):
     QuickBooksCredentialProvider(db).invalidate()
     db.commit()
     logger.info("QuickBooks disconnected by user %s", token.get("id"))
