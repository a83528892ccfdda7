"""Shared helpers."""

from caseflow.utils.rollback import rollback_on_error

__all__ = ["rollback_on_error"]
