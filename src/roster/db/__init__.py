"""Database layer."""

from roster.db.engine import Database
from roster.db.models import Base, PersonRecord

__all__ = [
    # Engine
    "Database",
    # Models
    "Base",
    "PersonRecord",
]
