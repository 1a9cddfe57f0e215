import pytest
from fastapi import HTTPException
from fastapi.security import OAuth2PasswordRequestForm
from pydantic import ValidationError

from eventify.auth_token import create_access_token, get_current_user
from eventify.routes.auth import login, read_users_me, register
from eventify.schemas import UserRegister
from eventify.security import is_college_email

from factories import college_email


def _form(username: str, password: str) -> OAuth2PasswordRequestForm:
    return OAuth2PasswordRequestForm(
        grant_type="password",
        username=username,
        password=password,
        scope="",
        client_id=None,
        client_secret=None,
    )


@pytest.mark.parametrize(
    "email, ok",
    [
        ("asha.123456@cse.ritchennai.edu.in", True),
        ("Asha.654321@ECE.ritchennai.edu.in", True),
        ("asha.12345@cse.ritchennai.edu.in", False),
        ("asha123456@cse.ritchennai.edu.in", False),
        ("asha.123456@gmail.com", False),
        ("asha.123456@cse.ritchennai.edu.in.evil.com", False),
    ],
)
def test_college_email_pattern(email, ok):
    assert is_college_email(email) is ok


def test_short_password_is_rejected_by_schema():
    with pytest.raises(ValidationError):
        UserRegister(email=college_email(), name="Asha", password="short")


@pytest.mark.anyio
async def test_register_rejects_non_college_email(session_factory):
    async with session_factory() as db:
        with pytest.raises(HTTPException) as exc:
            await register(UserRegister(email="asha@gmail.com", name="Asha", password="password123"), db=db)
    assert exc.value.status_code == 400
    assert "name.123456@dept.ritchennai.edu.in" in exc.value.detail


@pytest.mark.anyio
async def test_admin_signup_needs_the_admin_code(session_factory, monkeypatch):
    monkeypatch.setenv("ADMIN_CODE", "LETMEIN")
    payload = dict(email=college_email("admin"), name="Admin User", password="password123", role="admin")

    async with session_factory() as db:
        with pytest.raises(HTTPException) as exc:
            await register(UserRegister(**payload, admin_code="ADMIN123"), db=db)
    assert exc.value.status_code == 403

    async with session_factory() as db:
        created = await register(UserRegister(**payload, admin_code="LETMEIN"), db=db)
    assert created["user"].role == "admin"


@pytest.mark.anyio
async def test_register_login_and_me(session_factory):
    email = college_email("asha")
    async with session_factory() as db:
        created = await register(
            UserRegister(email=email.upper(), name="Asha Kumar", password="password123", department="CSE"),
            db=db,
        )
    assert created["user"].email == email

    async with session_factory() as db:
        with pytest.raises(HTTPException) as exc:
            await register(UserRegister(email=email, name="Again", password="password123"), db=db)
    assert exc.value.status_code == 400

    async with session_factory() as db:
        with pytest.raises(HTTPException) as exc:
            await login(_form(email, "wrong-password"), db=db)
    assert exc.value.status_code == 401

    async with session_factory() as db:
        token = await login(_form(email, "password123"), db=db)
    assert token["token_type"] == "bearer"
    assert token["role"] == "student"

    async with session_factory() as db:
        user = await get_current_user(token=token["access_token"], db=db)
    me = await read_users_me(current_user=user)
    assert me.name == "Asha Kumar"
    assert me.department == "CSE"


@pytest.mark.anyio
async def test_bad_tokens_are_401(session_factory):
    async with session_factory() as db:
        with pytest.raises(HTTPException) as exc:
            await get_current_user(token="not-a-jwt", db=db)
    assert exc.value.status_code == 401

    async with session_factory() as db:
        with pytest.raises(HTTPException) as exc:
            await get_current_user(token=create_access_token({"user_id": 424242}), db=db)
    assert exc.value.status_code == 401
