"""
Pydantic schemas for login.
"""
from typing import Optional
from pydantic import BaseModel


class LoginRequest(BaseModel):
     email: str
     password: str


class LoginUser(BaseModel):
     id: int
     email: str
     first_name: str
     last_name: str
     role: str
     tenant_id: Optional[int] = None


class LoginResponse(BaseModel):
     token: str
     user: LoginUser
