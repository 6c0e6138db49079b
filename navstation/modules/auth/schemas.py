from pydantic import BaseModel
from typing import Optional


class LoginRequest(BaseModel):
    username: str = ""
    password: str = ""


class LoginResponse(BaseModel):
    success: bool
    token: Optional[str] = None
    message: Optional[str] = None


class AuthStatusResponse(BaseModel):
    auth_enabled: bool


class TokenClaims(BaseModel):
    sub: str
    iat: int
    exp: int
