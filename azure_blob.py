# azure_blob.py
import os
import uuid
from functools import lru_cache

from azure.core.exceptions import AzureError
from azure.storage.blob import BlobServiceClient

import config
from services.exceptions import ExternalServiceError


@lru_cache(maxsize=1)
def get_blob_service() -> BlobServiceClient:
     if not config.AZURE_STORAGE_ACCOUNT or not config.AZURE_STORAGE_KEY:
          raise ExternalServiceError("Azure storage is not configured")
     return BlobServiceClient.from_connection_string(
          f"DefaultEndpointsProtocol=https;"
          f"AccountName={config.AZURE_STORAGE_ACCOUNT};"
          f"AccountKey={config.AZURE_STORAGE_KEY};"
          f"EndpointSuffix=core.windows.net"
     )


def upload_to_blob(file, container: str, prefix: str | int) -> str:
     ext = os.path.splitext(file.filename or "")[1]
     filename = f"{prefix}/{uuid.uuid4()}{ext}"
     try:
          blob_client = get_blob_service().get_blob_client(container=container, blob=filename)
          blob_client.upload_blob(file.file, overwrite=True)
     except AzureError as exc:
          raise ExternalServiceError(f"Document upload failed: {exc}") from exc
     return f"https://{config.AZURE_STORAGE_ACCOUNT}.blob.core.windows.net/{container}/{filename}"


def delete_from_blob(blob_url: str):
     """
     Deletes a file from Azure Blob Storage using its full URL
     """
     # https://<account>.blob.core.windows.net/<container>/<prefix>/<name>
     path = blob_url.split(".blob.core.windows.net/", 1)[-1]
     container, blob_name = path.split("/", 1)
     try:
          blob_client = get_blob_service().get_blob_client(
               container=container,
               blob=blob_name
          )
          blob_client.delete_blob()
     except AzureError as exc:
          raise ExternalServiceError(f"Document delete failed: {exc}") from exc
