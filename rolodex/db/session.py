"""SQLAlchemy async session setup for Rolodex.

Provides:
- Base: DeclarativeBase for all ORM models
- engine: async engine configured from settings
- async_session_factory: session maker bound to engine
- get_async_session: FastAPI dependency with Unit-of-Work commit/rollback
- translate_backend_errors: maps driver I/O failures to BackendUnavailableError
"""

import functools
from collections.abc import AsyncGenerator, Awaitable, Callable
from typing import ParamSpec, TypeVar

from sqlalchemy.exc import InterfaceError, OperationalError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import DeclarativeBase

from rolodex.config.settings import get_settings
from rolodex.errors import BackendUnavailableError


class Base(DeclarativeBase):
    """Base class for all SQLAlchemy ORM models."""

    pass


_settings = get_settings()

engine = create_async_engine(
    _settings.DATABASE_URL,
    echo=(_settings.ENVIRONMENT == "dev"),
    pool_pre_ping=True,
)

async_session_factory = async_sessionmaker(
    bind=engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


async def get_async_session() -> AsyncGenerator[AsyncSession, None]:
    """Yield an async database session with Unit-of-Work semantics.

    Repositories only call add()/flush()/execute().
    Commit happens once at the end of a successful request.
    Rollback happens on any exception.
    """
    async with async_session_factory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


P = ParamSpec("P")
R = TypeVar("R")


def translate_backend_errors(
    func: Callable[P, Awaitable[R]],
) -> Callable[P, Awaitable[R]]:
    """Re-raise connection-level driver failures as BackendUnavailableError."""

    @functools.wraps(func)
    async def wrapper(*args: P.args, **kwargs: P.kwargs) -> R:
        try:
            return await func(*args, **kwargs)
        except (OperationalError, InterfaceError) as exc:
            msg = f"Persistence backend unavailable during {func.__name__}."
            raise BackendUnavailableError(msg) from exc

    return wrapper
