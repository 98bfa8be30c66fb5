from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.security import OAuth2PasswordRequestForm
from sqlalchemy.ext.asyncio import AsyncSession

from rideshare.auth.deps import get_current_user
from rideshare.db.session import get_session
from rideshare.models.models import User
from rideshare.schemas.auth import RegisterIn, TokenOut, UserOut
from rideshare.services import auth as auth_service

router = APIRouter(tags=["auth"])


@router.post("/register", status_code=201, response_model=UserOut)
async def register(payload: RegisterIn, db: AsyncSession = Depends(get_session)):
    try:
        user = await auth_service.register_user(db, payload)
    except auth_service.EmailAlreadyRegistered:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="A user with this email already exists")
    return user


@router.post("/login", response_model=TokenOut)
async def login(form_data: OAuth2PasswordRequestForm = Depends(), db: AsyncSession = Depends(get_session)):
    user = await auth_service.authenticate(db, form_data.username, form_data.password)
    if user is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid credentials",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return TokenOut(access_token=auth_service.create_access_token(user.id))


@router.get("/me", response_model=UserOut)
async def me(current_user: User = Depends(get_current_user)):
    return current_user
