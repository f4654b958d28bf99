# auth.py
from typing import Optional

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError, jwt

from .config import Settings
from .dependencies import get_settings
from .errors import InternalError, Unauthorized

# Security scheme; missing credentials are reported as 401 below
security = HTTPBearer(auto_error=False)


def get_token_claims(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    settings: Settings = Depends(get_settings),
) -> dict:
    """
    Verifies the identity provider's JWT and returns its claims.
    """
    if credentials is None:
        raise Unauthorized("Not authenticated")

    if not settings.jwt_secret:
        raise InternalError("JWT Secret not configured")

    try:
        # Verify signature, expiry and audience
        return jwt.decode(
            credentials.credentials,
            settings.jwt_secret,
            algorithms=list(settings.jwt_algorithms),
            audience=settings.jwt_audience,
        )
    except JWTError:
        raise Unauthorized("Invalid authentication credentials")


def get_current_user(claims: dict = Depends(get_token_claims)) -> str:
    """Returns the user_id (sub) of the verified token."""
    user_id = claims.get("sub")
    if not user_id:
        raise Unauthorized("Could not validate credentials")
    return user_id


def get_user_email(claims: dict = Depends(get_token_claims)) -> Optional[str]:
    return claims.get("email")
