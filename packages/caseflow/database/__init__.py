"""Database models and session management."""

from caseflow.database.models import Base, CaseLawyerAssignment, LegalCase, TimeEntry
from caseflow.database.session import create_tables, get_engine, get_session_factory

__all__ = [
    "Base",
    "CaseLawyerAssignment",
    "LegalCase",
    "TimeEntry",
    "create_tables",
    "get_engine",
    "get_session_factory",
]
