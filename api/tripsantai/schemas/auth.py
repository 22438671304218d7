"""
Admin Authentication Schemas
"""
from pydantic import BaseModel, Field
from typing import Optional


class LoginRequest(BaseModel):
    """Schema for admin password login"""
    email: str = Field(..., min_length=3, max_length=255)
    password: str = Field(..., min_length=1)


class MfaLoginRequest(BaseModel):
    """Second login step; ticket comes from the password step"""
    ticket: str = Field(..., min_length=8)
    code: str = Field(..., min_length=6, max_length=8)


class MfaSetupRequest(BaseModel):
    label: Optional[str] = None


class MfaConfirmRequest(BaseModel):
    secret: str = Field(..., min_length=16)
    code: str = Field(..., min_length=6, max_length=8)
