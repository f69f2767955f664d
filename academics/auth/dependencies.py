from uuid import UUID

from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer
from jose import JWTError, jwt

from academics.auth.schemas import CurrentUser
from academics.core.config import settings

# Tokens are issued by the external identity provider; this service only verifies them.
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/v1/auth/token", auto_error=True)


def decode_access_token(token: str) -> CurrentUser:
    """Turn a bearer token into a CurrentUser. Raises ValueError on any invalid claim."""
    try:
        payload = jwt.decode(token, settings.jwt_secret_key, algorithms=[settings.jwt_algorithm])
    except JWTError as e:
        raise ValueError("Invalid token") from e

    user_id_str = payload.get("user_id") or payload.get("sub")
    role_name = payload.get("role")
    if not user_id_str or not role_name:
        raise ValueError("Token is missing user or role claims")
    try:
        user_id = UUID(str(user_id_str))
    except ValueError as e:
        raise ValueError("Token user id is not a UUID") from e
    return CurrentUser(id=user_id, role=str(role_name).upper())


async def get_current_user(token: str = Depends(oauth2_scheme)) -> CurrentUser:
    """Resolve the authenticated user and role from the access token."""
    try:
        return decode_access_token(token)
    except ValueError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Could not validate credentials",
            headers={"WWW-Authenticate": "Bearer"},
        )
