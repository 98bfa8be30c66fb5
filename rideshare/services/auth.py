import logging
import re
from datetime import datetime, timedelta, timezone
from typing import Optional

from jose import JWTError, jwt
from passlib.context import CryptContext
from sqlalchemy import select as sa_select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from rideshare.config import settings
from rideshare.models.models import User
from rideshare.schemas.auth import RegisterIn

logger = logging.getLogger(__name__)

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto", bcrypt__rounds=settings.BCRYPT_ROUNDS)

_TAG_RE = re.compile(r"<[^>]*>")
_SPACE_RE = re.compile(r"\s+")


class EmailAlreadyRegistered(Exception):
    pass


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    try:
        return pwd_context.verify(plain_password, hashed_password)
    except ValueError:
        return False


def sanitize_email(email: Optional[str]) -> str:
    if not email:
        return ""
    return email.strip().lower()


def sanitize_name(name: Optional[str]) -> str:
    if not name:
        return ""
    return _SPACE_RE.sub(" ", _TAG_RE.sub("", name.strip()))


def mask_email(email: str) -> str:
    return email[:3] + "***"


def _now() -> datetime:
    return datetime.now(timezone.utc)


def create_access_token(user_id: str) -> str:
    expire = _now() + timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
    payload = {"sub": str(user_id), "type": "access", "exp": int(expire.timestamp())}
    return jwt.encode(payload, settings.SECRET_KEY, algorithm=settings.JWT_ALGORITHM)


def verify_access_token(token: str) -> str:
    payload = jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.JWT_ALGORITHM])
    if payload.get("type") != "access" or not payload.get("sub"):
        raise JWTError("Invalid token type")
    return payload["sub"]


async def register_user(db: AsyncSession, payload: RegisterIn) -> User:
    email = sanitize_email(payload.email)
    # hash before the lookup so both outcomes take the same time
    hashed = hash_password(payload.password)
    existing = (await db.execute(sa_select(User.id).where(User.email == email))).scalar()
    if existing is not None:
        raise EmailAlreadyRegistered(email)
    user = User(
        email=email,
        password_hash=hashed,
        name=sanitize_name(payload.name),
        phone=payload.phone or None,
        locale=payload.locale,
        created_at=_now(),
    )
    db.add(user)
    try:
        await db.commit()
    except IntegrityError:
        await db.rollback()
        raise EmailAlreadyRegistered(email)
    await db.refresh(user)
    logger.info("Registered user %s", user.id)
    return user


async def authenticate(db: AsyncSession, email: str, password: str) -> Optional[User]:
    email = sanitize_email(email)
    user = (await db.execute(sa_select(User).where(User.email == email))).scalars().first()
    if user is None:
        logger.warning("Login attempt for unknown email %s", mask_email(email))
        return None
    if not verify_password(password, user.password_hash):
        logger.warning("Failed login attempt for user %s", user.id)
        return None
    logger.info("Successful login for user %s", user.id)
    return user
