"""FastAPI dependency: get_caller_id.

Usage in any protected router:
    from src.pm_gateway.auth.dependencies import get_caller_id

    @router.post("/protected")
    async def protected(caller: Annotated[str, Depends(get_caller_id)]):
        ...
"""

from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer

from src.pm_common.errors import InvalidCredentialsError
from src.pm_gateway.auth.jwt_handler import decode_token

# tokenUrl points Swagger UI at the external identity provider
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/v1/auth/login")

# Reusable 401 exception with WWW-Authenticate header (OAuth2 standard)
_CREDENTIALS_EXCEPTION = HTTPException(
    status_code=status.HTTP_401_UNAUTHORIZED,
    detail="Invalid or expired token",
    headers={"WWW-Authenticate": "Bearer"},
)


async def get_caller_id(token: str = Depends(oauth2_scheme)) -> str:
    """Extract and validate the Bearer token, return its `sub` identity.

    Raises HTTP 401 if the token is missing, invalid, or expired.
    """
    try:
        payload = decode_token(token)
    except InvalidCredentialsError:
        raise _CREDENTIALS_EXCEPTION from None
    return payload["sub"]
