# backend/vend_analytics/core/db.py
from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine
from sqlalchemy.orm import declarative_base, sessionmaker
from sqlalchemy.pool import StaticPool

import os
from dotenv import load_dotenv

from vend_analytics.core.config import settings

load_dotenv()  # Load environment variables

# For local development, use DATABASE_PUBLIC_URL (external Railway URL)
# For Railway deployment, use DATABASE_URL (internal Railway URL)
DATABASE_URL = os.getenv("DATABASE_PUBLIC_URL") or os.getenv("DATABASE_URL")

if not DATABASE_URL:
    raise ValueError("DATABASE_PUBLIC_URL or DATABASE_URL environment variable is required")


def to_async_url(url: str):
    """Coerce a plain postgres URL to the asyncpg driver; other async URLs pass through."""
    parsed = make_url(url)
    if parsed.drivername in ("postgres", "postgresql", "postgresql+psycopg2"):
        parsed = parsed.set(drivername="postgresql+asyncpg")
    return parsed


def create_engine_for(url: str, echo: bool = False):
    async_url = to_async_url(url)
    if async_url.get_backend_name() == "sqlite":
        # single shared connection so an in-memory database survives between sessions
        return create_async_engine(
            async_url,
            echo=echo,
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )
    return create_async_engine(async_url, echo=echo, future=True)


engine = create_engine_for(DATABASE_URL, echo=settings.sql_echo)
AsyncSessionLocal = sessionmaker(bind=engine, class_=AsyncSession, expire_on_commit=False)

Base = declarative_base()


async def init_db(bind=None) -> None:
    """
    Initializes the database by creating all tables.
    """
    import vend_analytics.models  # noqa: F401  ensure models are registered

    async with (bind or engine).begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

