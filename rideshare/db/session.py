from fastapi import Depends
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession
from sqlalchemy.ext.asyncio import async_sessionmaker
from rideshare.config import settings


DATABASE_URL = str(settings.DATABASE_URL)

# create async engine
engine = create_async_engine(DATABASE_URL, echo=settings.DEBUG)

# session factory; services open one session per unit of work
async_session = async_sessionmaker(bind=engine, class_=AsyncSession, expire_on_commit=False)


def get_sessionmaker() -> async_sessionmaker:
    return async_session


async def get_session(sessions: async_sessionmaker = Depends(get_sessionmaker)) -> AsyncSession:  # to be used as dependency
    async with sessions() as session:
        yield session
