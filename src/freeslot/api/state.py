from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Optional

from ..config import AppSettings, get_settings
from ..data import AvailabilityStore, FileKeyValueStore, KeyValueStore
from ..interpreter import InterpreterChain, build_interpreter
from ..services import AvailabilityService, MigrationService, QueryService, ServiceContext

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class ApiState:
    context: ServiceContext
    availability: AvailabilityService = field(init=False)
    queries: QueryService = field(init=False)

    def __post_init__(self) -> None:
        self.availability = AvailabilityService(self.context)
        self.queries = QueryService(self.context, self.availability)

    @classmethod
    def from_settings(
        cls,
        settings: Optional[AppSettings] = None,
        *,
        backend: Optional[KeyValueStore] = None,
        interpreter: Optional[InterpreterChain] = None,
        offline: Optional[bool] = None,
    ) -> "ApiState":
        """Wire a store, interpreter and services from settings; ``backend`` defaults to the JSON store file."""

        settings = settings or get_settings()
        storage = settings.storage
        if backend is None:
            backend = FileKeyValueStore(storage.store_file)
            logger.debug("Using key-value file %s", storage.store_file)
        store = AvailabilityStore(
            backend,
            migration=MigrationService(default_owner_id=storage.owner_id),
            availability_key=storage.availability_key,
            profile_key=storage.profile_key,
        )
        chain = interpreter or build_interpreter(settings, offline=offline)
        return cls(context=ServiceContext(store=store, interpreter=chain, settings=settings))
