# routers/auth.py
"""
Login endpoint. Issues the bearer token every other route expects.
"""
from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from auth import create_access_token, verify_password
from database import get_session
from models import User
from schemas.auth import LoginRequest, LoginResponse, LoginUser

router = APIRouter(prefix="/api", tags=["auth"])


@router.post("/login", response_model=LoginResponse)
def login_user(body: LoginRequest, db: Session = Depends(get_session)):
     user = db.query(User).filter(User.email == body.email).first()
     if not user:
          raise HTTPException(status_code=401, detail="Invalid credentials")

     if not verify_password(body.password, user.password):
          raise HTTPException(status_code=401, detail="Invalid credentials")

     tenant_id = user.tenant.id if user.tenant else None
     token = create_access_token({"id": user.id, "role": user.role.value, "tenant_id": tenant_id})
     return LoginResponse(
          token=token,
          user=LoginUser(
               id=user.id,
               email=user.email,
               first_name=user.first_name,
               last_name=user.last_name,
               role=user.role.value,
               tenant_id=tenant_id,
          ),
     )
