"""FastAPI dependency injection — provides DB sessions, the engine and the form store.

Each request that touches the database gets a fresh ``AsyncSession`` via
``get_db()``.  The session is committed on success and rolled back on error,
matching the SDK convention where engine/repository call ``flush()`` but
never ``commit()``.
"""

from typing import AsyncGenerator

from fastapi import Request
from sqlalchemy.ext.asyncio import AsyncSession

from formflow.engine import FormEngine
from formflow.store import FormStore
from formflow_db.engine import get_session_factory


# ------------------------------------------------------------------
# Database session: transaction boundary lives here
# ------------------------------------------------------------------

async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """Yield an async DB session; commit on success, rollback on error."""
    factory = get_session_factory()
    async with factory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


# ------------------------------------------------------------------
# Engine & store, stashed on app.state during lifespan
# ------------------------------------------------------------------

def get_form_engine(request: Request) -> FormEngine:
    """Return the FormEngine singleton from ``app.state``."""
    return request.app.state.engine


def get_store(request: Request) -> FormStore:
    """Return the FormStore singleton from ``app.state``."""
    return request.app.state.store
