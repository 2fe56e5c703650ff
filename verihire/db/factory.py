"""Builds the repository selected by ``settings.STORAGE_BACKEND``."""

from __future__ import annotations

import logging

from verihire.core.config import settings
from verihire.core.errors import ConfigurationError
from verihire.db.memory import InMemoryRepository
from verihire.db.repository import Repository

logger = logging.getLogger(__name__)


def build_repository(backend: str | None = None) -> Repository:
    """Return a fresh repository for the configured backend."""
    backend = (backend or settings.STORAGE_BACKEND).lower()
    if backend == "memory":
        logger.warning("repository_in_memory", extra={"backend": backend})
        return InMemoryRepository()
    if backend == "supabase":
        from verihire.db.supabase import create_supabase
        from verihire.db.supabase_repository import SupabaseRepository

        return SupabaseRepository(create_supabase())
    raise ConfigurationError(f"Unknown STORAGE_BACKEND: {backend}")
