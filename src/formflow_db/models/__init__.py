"""ORM models for formflow_db."""

from formflow_db.models.base import Base
from formflow_db.models.enums import SessionStatus
from formflow_db.models.session import FormSession

__all__ = ["Base", "SessionStatus", "FormSession"]
