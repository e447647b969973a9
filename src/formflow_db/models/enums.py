"""Database-level enumerations for form sessions."""

import enum


class SessionStatus(str, enum.Enum):
    """Lifecycle states for a respondent session row.

    Transitions:
        created -> in_progress  (first answer accepted)
        in_progress -> completed (form submitted, result written)
    """

    CREATED = "created"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
