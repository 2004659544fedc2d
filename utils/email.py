# utils/email.py
import html
import logging
from datetime import date

import requests

import config
from services.exceptions import ExternalServiceError

logger = logging.getLogger(__name__)

BREVO_URL = "https://api.brevo.com/v3/smtp/email"


def send_email(to_email: str, subject: str, html_content: str):
     if not config.BREVO_API_KEY:
          raise ExternalServiceError("BREVO_API_KEY is not set")

     try:
          response = requests.post(
               BREVO_URL,
               headers={
                    "api-key": config.BREVO_API_KEY,
                    "Content-Type": "application/json",
               },
               json={
                    "sender": {"name": config.EMAIL_SENDER_NAME, "email": config.EMAIL_SENDER_ADDRESS},
                    "to": [{"email": to_email}],
                    "subject": subject,
                    "htmlContent": html_content,
               },
               timeout=10,
          )
     except requests.RequestException as exc:
          raise ExternalServiceError(f"Brevo request failed: {exc}") from exc

     if response.status_code not in (200, 201):
          logger.warning("Brevo rejected email to %s: %s", to_email, response.text)
          raise ExternalServiceError(f"Brevo error: {response.text}")


def send_insurance_reminder_email(to_email: str, tenant_name: str, expiration_date: date, beneficiary_name: str):
     send_email(
          to_email,
          "Your certificate of insurance needs renewal",
          f"""
               <p>Hello {html.escape(tenant_name)},</p>
               <p>Our records show your insurance policy expires on
               <strong>{expiration_date:%B %d, %Y}</strong>.</p>
               <p>Please upload a renewed certificate listing
               <strong>{html.escape(beneficiary_name)}</strong> as an additional insured.</p>
          """,
     )
