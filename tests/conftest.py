from __future__ import annotations

from datetime import datetime, timezone
from pathlib import Path

import pytest

from freeslot.api import ApiState
from freeslot.config import INTERPRETER_OFFLINE, AppSettings, LlmSettings, LoggingSettings, StorageSettings
from freeslot.data import AvailabilityStore, MemoryKeyValueStore
from freeslot.interpreter import InterpreterChain
from freeslot.services import MigrationService

FIXED_NOW = datetime(2026, 1, 10, 12, 0, tzinfo=timezone.utc)


def fixed_clock() -> datetime:
    return FIXED_NOW


@pytest.fixture
def settings(tmp_path: Path) -> AppSettings:
    return AppSettings(
        llm=LlmSettings(
            api_key=None,
            model="gpt-4o-mini",
            base_url=None,
            organization=None,
            project=None,
            timeout_seconds=5.0,
            mode=INTERPRETER_OFFLINE,
        ),
        storage=StorageSettings(
            data_dir=tmp_path,
            store_file=tmp_path / "store.json",
            availability_key="freeslot_availability_data",
            profile_key="freeslot_owner_profile",
            owner_id="owner-1",
        ),
        logging=LoggingSettings(level="DEBUG", log_file=tmp_path / "freeslot.log"),
    )


@pytest.fixture
def backend() -> MemoryKeyValueStore:
    return MemoryKeyValueStore()


@pytest.fixture
def migration() -> MigrationService:
    return MigrationService(default_owner_id="owner-1", clock=fixed_clock)


@pytest.fixture
def store(backend: MemoryKeyValueStore, migration: MigrationService) -> AvailabilityStore:
    return AvailabilityStore(backend, migration=migration, clock=fixed_clock)


@pytest.fixture
def api_state(settings: AppSettings, backend: MemoryKeyValueStore) -> ApiState:
    return ApiState.from_settings(settings, backend=backend, interpreter=InterpreterChain(primary=None))


@pytest.fixture
def clock():
    return fixed_clock
