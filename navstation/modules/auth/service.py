import hmac
import logging
import time
from typing import Callable, Optional

import jwt

from navstation.config import Settings
from navstation.core.exceptions import AuthError
from navstation.modules.auth.schemas import LoginRequest, LoginResponse, TokenClaims

logger = logging.getLogger(__name__)

GUEST_SUBJECT = "guest"
JWT_ALGORITHM = "HS256"


class AuthService:
    """
    Single-user token gate.

    Tokens are stateless HS256 JWTs signed with AUTH_SECRET and carrying sub/iat/exp;
    there is no session table and no refresh flow, an expired token means a new login.
    With the gate disabled every login succeeds as the guest subject.
    """

    def __init__(self, settings: Settings, clock: Callable[[], float] = time.time):
        self.enabled = settings.auth_enabled
        self.username = settings.auth_username
        self.password = settings.auth_password
        self.secret = settings.auth_secret
        self.token_ttl_seconds = int(settings.auth_token_ttl_hours) * 3600
        self.clock = clock
        if self.enabled and not (self.username and self.password):
            logger.warning("Auth gate enabled without AUTH_USERNAME/AUTH_PASSWORD; every login will fail")

    def login(self, login_data: LoginRequest) -> LoginResponse:
        if not self.enabled:
            return LoginResponse(
                success=True,
                token=self.issue_token(GUEST_SUBJECT),
                message="Authentication is disabled; signed in as guest",
            )
        if not self._credentials_match(login_data.username, login_data.password):
            logger.warning(f"Failed login for user '{login_data.username}'")
            raise AuthError("Invalid username or password")
        logger.info(f"User '{login_data.username}' logged in")
        return LoginResponse(
            success=True,
            token=self.issue_token(login_data.username),
            message="Login successful",
        )

    def _credentials_match(self, username: str, password: str) -> bool:
        if not self.username or not self.password:
            return False
        # Evaluate both comparisons so timing does not reveal which one failed
        user_ok = hmac.compare_digest(username.encode("utf-8"), self.username.encode("utf-8"))
        pass_ok = hmac.compare_digest(password.encode("utf-8"), self.password.encode("utf-8"))
        return user_ok and pass_ok

    def issue_token(self, subject: str) -> str:
        now = int(self.clock())
        claims = {"sub": subject, "iat": now, "exp": now + self.token_ttl_seconds}
        return jwt.encode(claims, self.secret, algorithm=JWT_ALGORITHM)

    def verify(self, token: Optional[str]) -> TokenClaims:
        """Return the token's claims; AuthError if malformed, badly signed or expired."""
        if not token:
            raise AuthError("Authentication required")
        try:
            # Expiry is checked below against the injected clock
            payload = jwt.decode(
                token,
                self.secret,
                algorithms=[JWT_ALGORITHM],
                options={"require": ["sub", "iat", "exp"], "verify_exp": False, "verify_iat": False},
            )
            claims = TokenClaims(**payload)
        except jwt.InvalidTokenError as e:
            logger.debug(f"Rejected token: {e}")
            raise AuthError("Invalid token")
        except (TypeError, ValueError):
            raise AuthError("Invalid token")
        if self.clock() >= claims.exp:
            raise AuthError("Token has expired")
        return claims

    def guest_claims(self) -> TokenClaims:
        now = int(self.clock())
        return TokenClaims(sub=GUEST_SUBJECT, iat=now, exp=now + self.token_ttl_seconds)
