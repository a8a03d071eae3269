from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock
from uuid import uuid4

import pytest
from supabase_auth.errors import AuthApiError

from app.errors import NotFoundError, ValidationError
from app.models.user import UserLogin, UserRegister, UserUpdate
from app.services import auth_service as auth_module
from app.services.auth_service import AuthenticationError, AuthService


async def test_resolve_user_by_id_then_username(user_service, member):
    assert (await user_service.resolve_user(str(member.id))).id == member.id
    assert (await user_service.resolve_user(member.username)).id == member.id

    with pytest.raises(NotFoundError):
        await user_service.resolve_user(str(uuid4()))
    with pytest.raises(ValidationError):
        await user_service.resolve_user("")


async def test_update_profile_keeps_usernames_unique(user_service, member, manager):
    with pytest.raises(ValidationError, match="Username already taken"):
        await user_service.update_profile(member.id, UserUpdate(username=manager.username))

    updated = await user_service.update_profile(member.id, UserUpdate(name="Umar K"))
    assert updated.name == "Umar K"


async def test_upload_picture_requires_image(user_service, db, member):
    with pytest.raises(ValidationError, match="must be an image"):
        await user_service.upload_picture(member.id, "a.txt", "text/plain", b"x")

    user = await user_service.upload_picture(member.id, "me.png", "image/png", b"png")
    assert user.profile_picture == f"memory://avatars/{member.id}/me.png"


def session(access="access", refresh="refresh"):
    return SimpleNamespace(
        session=SimpleNamespace(access_token=access, refresh_token=refresh, expires_in=3600)
    )


@pytest.fixture
def session_client(monkeypatch):
    client = MagicMock()
    client.auth.sign_up = AsyncMock()
    client.auth.sign_in_with_password = AsyncMock(return_value=session())
    client.auth.refresh_session = AsyncMock(return_value=session("fresh", "next"))
    monkeypatch.setattr(
        auth_module, "create_session_client", AsyncMock(return_value=client)
    )
    return client


@pytest.fixture
def service_client():
    client = MagicMock()
    client.auth.get_user = AsyncMock()
    client.auth.admin.sign_out = AsyncMock()
    return client


@pytest.fixture
def auth(service_client, user_service):
    return AuthService(service_client, user_service)


async def test_register_creates_directory_entry(auth, session_client, user_service):
    new_id = uuid4()
    session_client.auth.sign_up.return_value = SimpleNamespace(
        user=SimpleNamespace(id=str(new_id))
    )

    user = await auth.register(
        UserRegister(name="Lee", username="lee", email="Lee@Taskflow.io", password="secret1")
    )

    assert user.id == new_id
    assert user.email == "lee@taskflow.io"
    assert (await user_service.find_by_username("lee")).id == new_id


async def test_register_rejects_taken_username(auth, session_client, member):
    with pytest.raises(ValidationError, match="Username already taken"):
        await auth.register(
            UserRegister(
                name="Dup", username=member.username, email="dup@taskflow.io", password="secret1"
            )
        )
    session_client.auth.sign_up.assert_not_called()


async def test_login_by_username_or_email(auth, session_client, member):
    tokens = await auth.login(UserLogin(username=member.username, password="pw"))
    assert tokens.access_token == "access"

    await auth.login(UserLogin(username=member.email, password="pw"))
    call = session_client.auth.sign_in_with_password.call_args.args[0]
    assert call["email"] == member.email


async def test_login_failures(auth, session_client, member):
    with pytest.raises(AuthenticationError):
        await auth.login(UserLogin(username="nobody", password="pw"))

    session_client.auth.sign_in_with_password.side_effect = AuthApiError(
        "Invalid login credentials", 400, "invalid_credentials"
    )
    with pytest.raises(AuthenticationError, match="Invalid credentials"):
        await auth.login(UserLogin(username=member.username, password="bad"))


async def test_refresh_and_logout(auth, session_client, service_client):
    tokens = await auth.refresh("old")
    assert tokens.access_token == "fresh"
    assert tokens.refresh_token == "next"

    await auth.logout("token")
    service_client.auth.admin.sign_out.assert_awaited_once_with("token")


async def test_verify(auth, service_client):
    user_id = uuid4()
    service_client.auth.get_user.return_value = SimpleNamespace(
        user=SimpleNamespace(id=str(user_id))
    )
    assert await auth.verify("token") == user_id

    service_client.auth.get_user.return_value = None
    with pytest.raises(AuthenticationError):
        await auth.verify("token")
