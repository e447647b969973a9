"""formflow_db — PostgreSQL persistence layer for respondent sessions.

This package provides the ORM model, async engine factory, and repository
for creating, updating, and querying form sessions.  It is consumed by the
engine facade in ``formflow.engine`` and the FastAPI server.
"""

from formflow_db.models.session import FormSession
from formflow_db.models.enums import SessionStatus
from formflow_db.engine import get_engine, get_session_factory
from formflow_db.repository import SessionRepository

__all__ = [
    "FormSession",
    "SessionStatus",
    "get_engine",
    "get_session_factory",
    "SessionRepository",
]
