from collections.abc import Callable
from enum import Enum
from typing import Annotated

from fastapi import Depends, HTTPException, Request, Security
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer


class Role(str, Enum):
    """Supported roles."""

    ADMIN = "admin"
    ORGANIZER = "organizer"
    ATTENDEE = "attendee"


class User:
    """Simple representation of an authenticated user."""

    def __init__(self, user_id: str, roles: tuple[Role, ...]):
        self.user_id = user_id
        self.roles = roles

    def has_role(self, role: Role) -> bool:
        return role in self.roles


TOKEN_USER_MAP: dict[str, tuple[str, tuple[Role, ...]]] = {
    "admin-token": ("admin", (Role.ADMIN, Role.ORGANIZER, Role.ATTENDEE)),
    "organizer-token": ("organizer", (Role.ORGANIZER, Role.ATTENDEE)),
    "attendee-token": ("attendee", (Role.ATTENDEE,)),
}

bearer_scheme = HTTPBearer(auto_error=False)


def resolve_user_from_token(token: str | None) -> User:
    """Return the user associated with the provided bearer token.

    Identity comes from the hosting platform's auth layer; this static map
    stands in for it in development and tests.
    """

    if token is None:
        return User(user_id="anonymous", roles=())

    if token not in TOKEN_USER_MAP:
        raise HTTPException(status_code=401, detail="Invalid authentication credentials")

    user_id, roles = TOKEN_USER_MAP[token]
    return User(user_id=user_id, roles=roles)


async def get_current_user(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Security(bearer_scheme)],
    request: Request,
) -> User:
    cached = getattr(request.state, "user", None)
    if isinstance(cached, User):
        return cached

    token = credentials.credentials if credentials is not None else None
    user = resolve_user_from_token(token)
    request.state.user = user
    return user


def role_required(role: Role) -> Callable[[User], User]:
    """Dependency factory ensuring the current user has the requested role."""

    async def dependency(user: Annotated[User, Depends(get_current_user)]) -> User:
        if not user.has_role(role):
            raise HTTPException(status_code=403, detail="Insufficient permissions")
        return user

    return dependency


CurrentUser = Annotated[User, Depends(get_current_user)]
