import pytest
from fastapi import HTTPException

from eventdesk.dependencies.auth import Role, User, resolve_user_from_token, role_required


@pytest.mark.asyncio
async def test_role_required_allows_authorized_user():
    dependency = role_required(Role.ORGANIZER)
    user = User("alice", (Role.ORGANIZER, Role.ATTENDEE))
    result = await dependency(user)  # type: ignore[arg-type]
    assert result.user_id == "alice"


@pytest.mark.asyncio
async def test_role_required_rejects_unauthorized_user():
    dependency = role_required(Role.ORGANIZER)
    user = User("bob", (Role.ATTENDEE,))
    with pytest.raises(HTTPException) as exc:
        await dependency(user)  # type: ignore[arg-type]

    assert exc.value.status_code == 403
    assert exc.value.detail == "Insufficient permissions"


def test_anonymous_user_has_no_roles():
    user = resolve_user_from_token(None)
    assert user.user_id == "anonymous"
    assert user.roles == ()


def test_unknown_token_is_rejected():
    with pytest.raises(HTTPException) as exc:
        resolve_user_from_token("forged")
    assert exc.value.status_code == 401


def test_admin_token_carries_all_roles():
    user = resolve_user_from_token("admin-token")
    assert all(user.has_role(role) for role in Role)
