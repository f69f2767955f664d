from fastapi import Depends, HTTPException, status

from academics.auth.dependencies import get_current_user
from academics.auth.schemas import ADMIN_ROLES, CurrentUser


def require_roles(*roles: str):
    """
    Dependency factory restricting a route to the given roles. Admin roles always pass.

    Example:
        Depends(require_roles("TEACHER"))
    """
    allowed = set(roles) | set(ADMIN_ROLES)

    async def _checker(current_user: CurrentUser = Depends(get_current_user)) -> CurrentUser:
        if current_user.role not in allowed:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Insufficient permissions",
            )
        return current_user

    return _checker


require_admin = require_roles()
