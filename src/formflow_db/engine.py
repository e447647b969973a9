"""One shared async engine per process for the ``form_sessions`` table.

Each respondent request is a handful of short statements (fetch the row,
save navigation, maybe complete), so a small pool is enough.  The server
lifespan calls :func:`create_schema` when asked to and
:func:`dispose_engine` on shutdown.
"""

import os

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from formflow_db.config import get_async_url
from formflow_db.models.base import Base

_engine: AsyncEngine | None = None
_session_factory: async_sessionmaker[AsyncSession] | None = None


def get_engine() -> AsyncEngine:
    global _engine
    if _engine is None:
        _engine = create_async_engine(
            get_async_url(),
            pool_size=int(os.getenv("PG_POOL_SIZE", "5")),
            max_overflow=int(os.getenv("PG_MAX_OVERFLOW", "10")),
            # Stale connections surface on the first statement otherwise
            pool_pre_ping=True,
        )
    return _engine


def get_session_factory() -> async_sessionmaker[AsyncSession]:
    """Factory for request-scoped sessions.

    Rows stay readable after commit: the engine facade builds its
    ``SessionInfo`` from the row once the request boundary has committed.
    """
    global _session_factory
    if _session_factory is None:
        _session_factory = async_sessionmaker(get_engine(), expire_on_commit=False)
    return _session_factory


async def create_schema() -> None:
    """Create ``form_sessions`` and its indexes if they are missing."""
    import formflow_db.models.session  # noqa: F401  registers FormSession

    async with get_engine().begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def dispose_engine() -> None:
    global _engine, _session_factory
    if _engine is None:
        return
    await _engine.dispose()
    _engine = None
    _session_factory = None
