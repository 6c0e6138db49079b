from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse
from navstation.core.dependencies import get_auth_service
from navstation.core.exceptions import AuthError
from navstation.core.rate_limit import limiter, login_rate_limit
from navstation.modules.auth.schemas import LoginRequest, LoginResponse, AuthStatusResponse
from navstation.modules.auth.service import AuthService

router = APIRouter(tags=["auth"])


@router.post("/login", response_model=LoginResponse, response_model_exclude_none=True)
@limiter.limit(login_rate_limit)
async def login(
    request: Request,
    login_data: LoginRequest,
    service: AuthService = Depends(get_auth_service)
):
    """Exchange username/password for a bearer token (always succeeds when the gate is disabled)"""
    try:
        return service.login(login_data)
    except AuthError as e:
        body = LoginResponse(success=False, message=e.message)
        return JSONResponse(status_code=401, content=body.model_dump(exclude_none=True))


@router.get("/auth/status", response_model=AuthStatusResponse)
async def auth_status(service: AuthService = Depends(get_auth_service)):
    """Whether clients must log in before calling the API"""
    return AuthStatusResponse(auth_enabled=service.enabled)
