"""Application services orchestrating storage, migration and queries."""

from __future__ import annotations

from .migration import MigrationService, MigrationStats
from .context import ServiceContext
from .availability import AvailabilityService
from .query import QueryService

__all__ = ["AvailabilityService", "MigrationService", "MigrationStats", "QueryService", "ServiceContext"]
