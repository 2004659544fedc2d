# auth.py
"""
Token handling and role-based access control.

Every admin-only operation goes through ``require_role(claims, UserRole.ADMIN)``
and every tenant-scoped read or submit through ``authorize_lease_access``,
instead of comparing role strings inside each route.

Token claims:
     {"id": <user id>, "role": "ADMIN" | "TENANT", "tenant_id": <tenant id | None>}
"""
from datetime import datetime, timedelta
from typing import Optional

from fastapi import Depends, HTTPException, Request
from jose import JWTError, jwt
from passlib.context import CryptContext
from sqlalchemy.orm import Session

import config
from models import InsuranceRecord, Lease, Tenant, UserRole
from services.exceptions import AuthorizationError, NotFoundError

# Bcrypt
pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")


def hash_password(password: str) -> str:
     return pwd_context.hash(password)


def verify_password(password: str, hashed: str) -> bool:
     return pwd_context.verify(password, hashed)


def create_access_token(claims: dict, expires_minutes: Optional[int] = None) -> str:
     payload = dict(claims)
     minutes = expires_minutes or config.ACCESS_TOKEN_EXPIRE_MINUTES
     payload["exp"] = datetime.utcnow() + timedelta(minutes=minutes)
     return jwt.encode(payload, config.JWT_SECRET, algorithm=config.JWT_ALGORITHM)


# Token Auth Dependency
def verify_token(request: Request) -> dict:
     auth = request.headers.get("Authorization")
     if not auth or not auth.startswith("Bearer "):
          raise HTTPException(status_code=401, detail="Missing token")
     token = auth.split(" ")[1]
     try:
          claims = jwt.decode(token, config.JWT_SECRET, algorithms=[config.JWT_ALGORITHM])
     except JWTError:
          raise HTTPException(status_code=401, detail="Invalid token")
     # OAuth state tokens are signed with the same key but are not access tokens
     if "purpose" in claims:
          raise HTTPException(status_code=401, detail="Invalid token")
     return claims


def require_role(claims: dict, *roles: UserRole) -> None:
     """Raise AuthorizationError unless the token carries one of ``roles``."""
     if claims.get("role") not in {role.value for role in roles}:
          raise AuthorizationError()


def is_admin(claims: dict) -> bool:
     return claims.get("role") == UserRole.ADMIN.value


def require_admin(token: dict = Depends(verify_token)) -> dict:
     """Dependency for admin-only routes."""
     require_role(token, UserRole.ADMIN)
     return token


def require_tenant_or_admin(token: dict = Depends(verify_token)) -> dict:
     """Dependency for routes tenants may call on their own records."""
     require_role(token, UserRole.ADMIN, UserRole.TENANT)
     return token


def get_tenant_for_claims(db: Session, claims: dict) -> Tenant:
     """Resolve the Tenant profile behind a TENANT token."""
     tenant = db.query(Tenant).filter(Tenant.user_id == claims.get("id")).first()
     if tenant is None:
          raise AuthorizationError()
     return tenant


def accessible_lease_ids(db: Session, claims: dict) -> Optional[set[int]]:
     """
     Lease ids the caller may read.
     - Admin: None (meaning all leases)
     - Tenant: ids of the tenant's own leases
     """
     if is_admin(claims):
          return None
     tenant = get_tenant_for_claims(db, claims)
     rows = db.query(Lease.id).filter(Lease.tenant_id == tenant.id).all()
     return {row[0] for row in rows}


def authorize_lease_access(db: Session, claims: dict, lease_id: int) -> Lease:
     """
     Load a lease the caller is allowed to see.

     Admins get NotFoundError for a missing lease. Tenants get the same
     generic AuthorizationError whether the lease is missing or belongs to
     someone else, so existence is not leaked.
     """
     lease = db.get(Lease, lease_id)
     if is_admin(claims):
          if lease is None:
               raise NotFoundError(f"Lease with ID {lease_id} not found")
          return lease

     require_role(claims, UserRole.TENANT)
     tenant = get_tenant_for_claims(db, claims)
     if lease is None or lease.tenant_id != tenant.id:
          raise AuthorizationError()
     return lease


OAUTH_STATE_PURPOSE = "quickbooks_oauth"
OAUTH_STATE_EXPIRE_MINUTES = 10


def create_oauth_state(claims: dict) -> str:
     """
     Signed, short-lived OAuth ``state`` tying the QuickBooks callback to the
     admin who started the connection. The callback arrives as a browser
     redirect without the bearer header, so this is what authorizes it.
     """
     payload = {
          "purpose": OAUTH_STATE_PURPOSE,
          "id": claims.get("id"),
          "role": claims.get("role"),
          "exp": datetime.utcnow() + timedelta(minutes=OAUTH_STATE_EXPIRE_MINUTES),
     }
     return jwt.encode(payload, config.JWT_SECRET, algorithm=config.JWT_ALGORITHM)


def verify_oauth_state(state: Optional[str]) -> dict:
     if not state:
          raise AuthorizationError("Missing OAuth state")
     try:
          payload = jwt.decode(state, config.JWT_SECRET, algorithms=[config.JWT_ALGORITHM])
     except JWTError:
          raise AuthorizationError("Invalid or expired OAuth state")
     if payload.get("purpose") != OAUTH_STATE_PURPOSE:
          raise AuthorizationError("Invalid OAuth state")
     require_role(payload, UserRole.ADMIN)
     return payload


def authorize_insurance_access(db: Session, claims: dict, record_id: int) -> InsuranceRecord:
     """Load an insurance record the caller may see, with the same rules as leases."""
     record = db.get(InsuranceRecord, record_id)
     if record is None:
          if is_admin(claims):
               raise NotFoundError(f"Insurance record with ID {record_id} not found")
          raise AuthorizationError()
     authorize_lease_access(db, claims, record.lease_id)
     return record
