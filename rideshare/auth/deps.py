from fastapi import HTTPException, status, Depends
from fastapi.security import OAuth2PasswordBearer
from typing import Optional
from sqlalchemy.ext.asyncio import AsyncSession
from rideshare.db.session import get_session
from rideshare.models.models import User
from sqlalchemy import select as sa_select
from jose import JWTError
from rideshare.services import auth as auth_service


oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/auth/login")
optional_oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/auth/login", auto_error=False)


async def _resolve_user(token: str, db: AsyncSession) -> Optional[User]:
    try:
        user_id = auth_service.verify_access_token(token)
    except JWTError:
        return None
    stmt = sa_select(User).where(User.id == user_id)
    res = await db.execute(stmt)
    return res.scalars().first()


async def get_current_user(token: str = Depends(oauth2_scheme), db: AsyncSession = Depends(get_session)) -> User:
    user = await _resolve_user(token, db)
    if user is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid authentication credentials",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return user


async def get_optional_user(token: Optional[str] = Depends(optional_oauth2_scheme), db: AsyncSession = Depends(get_session)) -> Optional[User]:
    """Identity for public endpoints: the user when a valid token is sent, otherwise None."""
    if not token:
        return None
    return await _resolve_user(token, db)
