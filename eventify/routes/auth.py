import logging

from fastapi import APIRouter, Depends, HTTPException
from fastapi.security import OAuth2PasswordRequestForm
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select

from eventify.auth_token import create_access_token, get_current_user
from eventify.database import get_db
from eventify.models.user import User, UserRole
from eventify.schemas import UserRead, UserRegister
from eventify.security import admin_code_matches, hash_password, is_college_email, verify_password

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Auth"])


@router.post("/register", status_code=201)
async def register(user: UserRegister, db: AsyncSession = Depends(get_db)):
    if not is_college_email(user.email):
        raise HTTPException(
            status_code=400,
            detail="Invalid email format. It should be like: name.123456@dept.ritchennai.edu.in",
        )

    if user.role == UserRole.ADMIN and not admin_code_matches(user.admin_code):
        logger.warning("Admin sign-up with a wrong admin code for %s", user.email)
        raise HTTPException(status_code=403, detail="Invalid admin code")

    conflict = (await db.execute(select(User).where(User.email == user.email))).scalar_one_or_none()
    if conflict:
        raise HTTPException(status_code=400, detail="Email already exists")

    new_user = User(
        email=user.email,
        name=user.name,
        role=user.role,
        department=user.department,
        password_hash=hash_password(user.password),
    )
    db.add(new_user)
    await db.commit()
    await db.refresh(new_user)
    logger.info("Registered %s user %s", new_user.role, new_user.id)
    return {"message": "Registered successfully", "user": UserRead.model_validate(new_user)}


@router.post("/login")
async def login(
    form_data: OAuth2PasswordRequestForm = Depends(),
    db: AsyncSession = Depends(get_db),
):
    email = form_data.username.strip().lower()
    result = await db.execute(select(User).where(User.email == email))
    db_user = result.scalar_one_or_none()

    if not db_user or not verify_password(form_data.password, db_user.password_hash):
        raise HTTPException(status_code=401, detail="Invalid credentials")

    token = create_access_token({"user_id": db_user.id, "role": db_user.role})
    return {"access_token": token, "token_type": "bearer", "role": db_user.role}


@router.get("/me", response_model=UserRead)
async def read_users_me(current_user: User = Depends(get_current_user)):
    return UserRead.model_validate(current_user)
