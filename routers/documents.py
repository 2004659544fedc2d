# routers/documents.py
"""
Document uploads to Azure Blob Storage.

The stored blob URL is written to the lease's or the insurance record's
document_url. A replaced blob is deleted once the new URL is committed;
failing to delete it only logs a warning.
"""
import logging

from fastapi import APIRouter, Depends, File, UploadFile
from sqlalchemy.orm import Session

import azure_blob
import config
from auth import authorize_insurance_access, is_admin, require_admin, require_tenant_or_admin
from database import get_session
from services.exceptions import ExternalServiceError
from services.insurance_service import InsuranceService
from services.lease_service import LeaseService
from schemas.insurance import InsuranceResponse
from schemas.lease import LeaseResponse
from routers.leases import build_lease_response

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/documents", tags=["documents"])


def _discard_previous(previous_url, current_url):
     if not previous_url or previous_url == current_url or ".blob.core.windows.net/" not in previous_url:
          return
     try:
          azure_blob.delete_from_blob(previous_url)
     except ExternalServiceError as exc:
          logger.warning("Could not delete replaced document %s: %s", previous_url, exc)


@router.post(
     "/leases/{lease_id}",
     response_model=LeaseResponse,
     summary="Upload a signed lease document"
)
def upload_lease_document(
     lease_id: int,
     document: UploadFile = File(...),
     db: Session = Depends(get_session),
     token: dict = Depends(require_admin)
):
     previous_url = LeaseService.get_lease(db, lease_id).document_url
     url = azure_blob.upload_to_blob(document, config.AZURE_DOCUMENTS_CONTAINER, f"leases/{lease_id}")
     lease = LeaseService.update_lease(db, lease_id, {"document_url": url})
     db.commit()
     db.refresh(lease)
     _discard_previous(previous_url, url)
     logger.info("Document uploaded for lease %s", lease_id)
     return build_lease_response(lease)


@router.post(
     "/insurance/{record_id}",
     response_model=InsuranceResponse,
     summary="Upload a certificate of insurance"
)
def upload_insurance_document(
     record_id: int,
     document: UploadFile = File(...),
     db: Session = Depends(get_session),
     token: dict = Depends(require_tenant_or_admin)
):
     previous_url = authorize_insurance_access(db, token, record_id).document_url
     url = azure_blob.upload_to_blob(document, config.AZURE_DOCUMENTS_CONTAINER, f"insurance/{record_id}")
     record = InsuranceService.update_record(db, record_id, {"document_url": url}, by_admin=is_admin(token))
     db.commit()
     db.refresh(record)
     _discard_previous(previous_url, url)
     logger.info("Certificate uploaded for insurance record %s", record_id)
     return record
