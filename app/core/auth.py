"""
Authentication utilities for Supabase JWT verification.

The frontend signs in with Supabase and sends the JWT in the Authorization
header. This module verifies the JWT and resolves the acting principal.
Anything that cannot be verified is treated as unauthenticated.
"""
import logging

from fastapi import Depends
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from jose import jwt, JWTError
from typing import Optional
import requests
from app.core.config import settings
from app.core.errors import LedgerWriteError, Unauthenticated, Unauthorized

logger = logging.getLogger(__name__)

# auto_error=False so a missing header reaches get_current_user and fails as 401
security = HTTPBearer(auto_error=False)

ROLE_ADMIN = "admin"
ROLE_LANDLORD = "landlord"
ROLE_TENANT = "tenant"
ROLE_SYSTEM = "system"


class User:
    """Principal extracted from the JWT token."""
    def __init__(self, user_id: str, email: Optional[str], role: Optional[str] = None):
        self.id = user_id
        self.email = email
        self.role = role or "user"  # Default role

    @property
    def is_admin(self) -> bool:
        return self.role in (ROLE_ADMIN, ROLE_SYSTEM)

    def __repr__(self) -> str:
        return f"User(id={self.id!r}, role={self.role!r})"


# Principal used by sweeps and the cron CLI
SYSTEM_USER = User(user_id="system", email=None, role=ROLE_SYSTEM)


# Cache for JWKS keys (to avoid fetching on every request)
_jwks_cache = None


def get_supabase_jwks():
    """
    Fetch Supabase's JSON Web Key Set (JWKS) for JWT verification.

    Returns:
        dict: JWKS containing public keys for token verification
    """
    global _jwks_cache

    if _jwks_cache is not None:
        return _jwks_cache

    try:
        jwks_url = f"{settings.SUPABASE_URL}/auth/v1/.well-known/jwks.json"
        response = requests.get(jwks_url, timeout=10)
        response.raise_for_status()
        _jwks_cache = response.json()
        return _jwks_cache
    except requests.RequestException as e:
        logger.exception("Failed to fetch JWKS from Supabase")
        raise LedgerWriteError("Identity provider unavailable") from e


def verify_token(token: str) -> dict:
    """
    Verify a Supabase JWT and return the decoded payload.

    Raises:
        Unauthenticated: If the token is invalid or expired
    """
    try:
        jwks = get_supabase_jwks()
        # Supabase uses ES256 for newer projects and RS256 for older ones
        payload = jwt.decode(
            token,
            jwks,
            algorithms=["ES256", "RS256"],
            audience="authenticated",
            options={"verify_aud": True}
        )
        return payload
    except jwt.ExpiredSignatureError:
        raise Unauthenticated("Token has expired")
    except JWTError as e:
        raise Unauthenticated(f"Invalid authentication credentials: {str(e)}")


def principal_from_claims(payload: dict) -> Optional[User]:
    """Build a User from JWT claims, or None when the subject is missing."""
    user_id = payload.get("sub")
    if not user_id:
        return None
    # Application role lives in app_metadata; top-level "role" is Supabase's own
    app_metadata = payload.get("app_metadata") or {}
    role = app_metadata.get("role") or payload.get("user_role")
    return User(user_id=user_id, email=payload.get("email"), role=role)


def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security)
) -> User:
    """
    FastAPI dependency resolving the current principal from the Bearer token.

    Usage in route:
        @router.post("/leases/{lease_id}/send")
        def send(lease_id: int, current_user: User = Depends(get_current_user)):
            ...

    Raises:
        Unauthenticated: If the token is missing, invalid, or has no subject
    """
    if credentials is None or not credentials.credentials:
        raise Unauthenticated()

    payload = verify_token(credentials.credentials)
    user = principal_from_claims(payload)
    if user is None:
        raise Unauthenticated("Could not validate user")
    return user


def require_role(required_role: str):
    """
    Dependency factory for role-based access control.

    Usage:
        @router.post("/sweeps/expire-leases")
        def expire(current_user: User = Depends(require_role("admin"))):
            ...
    """
    def role_checker(current_user: User = Depends(get_current_user)) -> User:
        if current_user.role != required_role:
            raise Unauthorized(f"Insufficient permissions. Required role: {required_role}")
        return current_user
    return role_checker
