from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import TYPE_CHECKING, Callable

from ..config import AppSettings, get_settings
from ..domain.models import utc_now
from ..interpreter import InterpreterChain

if TYPE_CHECKING:
    from ..data import AvailabilityStore


@dataclass(slots=True)
class ServiceContext:
    """Aggregate root for services to share settings, the store and the interpreter."""

    store: "AvailabilityStore"
    interpreter: InterpreterChain
    settings: AppSettings = field(default_factory=get_settings)
    clock: Callable[[], datetime] = utc_now

    @property
    def owner_id(self) -> str:
        return self.settings.storage.owner_id
