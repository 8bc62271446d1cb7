"""
Core module for application configuration and utilities.

auth is not imported at package level to avoid circular imports with
ielts_mock.models. Import it directly: from ielts_mock.core.auth import ...
"""
from .config import settings

__all__ = ["settings"]
