"""Service layer for the tagdiff API."""

from .compare import CompareService

__all__ = ["CompareService"]
