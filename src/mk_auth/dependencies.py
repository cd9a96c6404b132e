"""FastAPI dependency: get_current_identity.

Usage in any protected router:
    from src.mk_auth.dependencies import get_current_identity

    @router.get("/protected")
    async def protected(identity: Identity = Depends(get_current_identity)):
        ...
"""

from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer

from src.mk_auth.identity import Identity
from src.mk_auth.jwt_handler import decode_token
from src.mk_common.errors import InvalidCredentialsError

# Tokens come from the identity provider; tokenUrl only feeds the Swagger "Authorize" button
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/v1/auth/token")

_CREDENTIALS_EXCEPTION = HTTPException(
    status_code=status.HTTP_401_UNAUTHORIZED,
    detail="Invalid or expired token",
    headers={"WWW-Authenticate": "Bearer"},
)


def identity_from_token(token: str) -> Identity:
    """Decode a bearer token into an Identity; raises InvalidCredentialsError."""
    payload = decode_token(token)
    return Identity(user_id=payload["sub"], display_name=payload.get("name") or "")


async def get_current_identity(token: str = Depends(oauth2_scheme)) -> Identity:
    """Extract and validate the JWT Bearer token.

    Raises HTTP 401 if the token is missing, invalid, or expired.
    """
    try:
        return identity_from_token(token)
    except InvalidCredentialsError:
        raise _CREDENTIALS_EXCEPTION from None
