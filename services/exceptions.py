"""
Domain errors raised by the service layer.

Routers let these propagate; main.py maps them to HTTP responses through
exception handlers, so services never import FastAPI.
"""


class LeaseholdError(Exception):
     """Base class for errors reported back to the caller."""

     status_code = 400

     def __init__(self, message: str):
          super().__init__(message)
          self.message = message


class ValidationError(LeaseholdError):
     """A required field is missing or malformed."""

     status_code = 400


class NotFoundError(LeaseholdError):
     """A referenced entity does not exist."""

     status_code = 404


class AuthorizationError(LeaseholdError):
     """The caller lacks the role or the tenant ownership required."""

     status_code = 403

     def __init__(self, message: str = "Access denied"):
          super().__init__(message)


class ConflictError(LeaseholdError):
     """The write would break an invariant; the caller may reload and retry."""

     status_code = 409


class ExternalServiceError(LeaseholdError):
     """A third-party service (QuickBooks, Brevo, Azure) failed."""

     status_code = 502


class NotConnectedError(ExternalServiceError):
     """No usable QuickBooks credential is stored."""

     def __init__(self, message: str = "QuickBooks is not connected"):
          super().__init__(message)
