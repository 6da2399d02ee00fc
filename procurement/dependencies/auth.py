from collections.abc import Callable
from typing import Annotated

from fastapi import Depends, HTTPException, Request, Security
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from procurement.security.tokens import InvalidTokenError
from procurement.users.service import UserService
from procurement.workflow.errors import RejectionReason
from procurement.workflow.models import User
from procurement.workflow.roles import Role

from .services import get_user_service

bearer_scheme = HTTPBearer(auto_error=False)


async def get_current_user(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Security(bearer_scheme)],
    request: Request,
    users: Annotated[UserService, Depends(get_user_service)],
) -> User:
    """Resolve the bearer token to a stored user.

    The resolved user is cached on ``request.state`` so nested dependencies do
    not decode the token twice.
    """

    cached = getattr(request.state, "user", None)
    if isinstance(cached, User):
        return cached

    if credentials is None:
        raise HTTPException(
            status_code=401,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )

    try:
        user = await users.resolve_token(credentials.credentials)
    except InvalidTokenError as exc:
        raise HTTPException(
            status_code=401,
            detail=str(exc),
            headers={"WWW-Authenticate": "Bearer"},
        ) from exc

    request.state.user = user
    return user


def role_required(role: Role) -> Callable[[User], User]:
    """Dependency factory ensuring the current user holds the requested role."""

    async def dependency(user: Annotated[User, Depends(get_current_user)]) -> User:
        if user.role is not role:
            raise HTTPException(
                status_code=403,
                detail={
                    "reason": RejectionReason.FORBIDDEN.value,
                    "message": f"only the {role.label} may perform this action",
                },
            )
        return user

    return dependency


require_initiator = role_required(Role.INITIATOR)

CurrentUser = Annotated[User, Depends(get_current_user)]
InitiatorUser = Annotated[User, Depends(require_initiator)]
