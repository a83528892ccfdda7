"""Persistence collaborators."""

from .base import CaseRepository
from .memory import InMemoryRepository
from .sql import SqlRepository

__all__ = ["CaseRepository", "InMemoryRepository", "SqlRepository"]
