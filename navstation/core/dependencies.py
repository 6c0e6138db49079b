"""
Core dependencies for store access and route protection.

The store and the auth service are created once by create_app() and kept on
app.state; handlers receive them through these dependencies instead of reaching
for module globals.
"""

from fastapi import Depends, Request, Security
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from typing import Optional

from navstation.core.exceptions import AuthError
from navstation.core.ordering import OrderingEngine
from navstation.database.base import EntityStore
from navstation.modules.auth.schemas import TokenClaims
from navstation.modules.auth.service import AuthService

# auto_error=False so a missing header reaches require_auth and yields 401, not 403
security = HTTPBearer(auto_error=False)


def get_store(request: Request) -> EntityStore:
    return request.app.state.store


def get_ordering_engine(store: EntityStore = Depends(get_store)) -> OrderingEngine:
    return OrderingEngine(store)


def get_auth_service(request: Request) -> AuthService:
    return request.app.state.auth_service


def require_auth(
    credentials: Optional[HTTPAuthorizationCredentials] = Security(security),
    auth_service: AuthService = Depends(get_auth_service),
) -> TokenClaims:
    """Claims of the bearer token; guest claims when the gate is disabled."""
    if not auth_service.enabled:
        return auth_service.guest_claims()
    if credentials is None or credentials.scheme.lower() != "bearer":
        raise AuthError("Authentication required")
    return auth_service.verify(credentials.credentials)
