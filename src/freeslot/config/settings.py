from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv
from platformdirs import user_data_dir

load_dotenv()

APP_NAME = "Freeslot"
APP_AUTHOR = "Freeslot"
DEFAULT_DATA_DIR = Path(user_data_dir(APP_NAME, APP_AUTHOR))

INTERPRETER_REMOTE = "remote"
INTERPRETER_OFFLINE = "offline"


@dataclass(frozen=True)
class LlmSettings:
    api_key: Optional[str]
    model: str
    base_url: Optional[str]
    organization: Optional[str]
    project: Optional[str]
    timeout_seconds: float
    mode: str = INTERPRETER_REMOTE

    @property
    def is_configured(self) -> bool:
        return bool(self.api_key and self.model)

    @property
    def offline(self) -> bool:
        return self.mode == INTERPRETER_OFFLINE

    @property
    def missing_env_vars(self) -> list[str]:
        missing = []
        if not self.api_key:
            missing.append("OPENAI_API_KEY")
        if not self.model:
            missing.append("OPENAI_MODEL")
        return missing


@dataclass(frozen=True)
class StorageSettings:
    data_dir: Path
    store_file: Path
    availability_key: str
    profile_key: str
    owner_id: str


@dataclass(frozen=True)
class LoggingSettings:
    level: str
    log_file: Path
    max_bytes: int = 1_000_000
    backup_count: int = 5


@dataclass(frozen=True)
class AppSettings:
    llm: LlmSettings
    storage: StorageSettings
    logging: LoggingSettings


def _int_from_env(name: str, default: int) -> int:
    raw = os.getenv(name)
    if not raw:
        return default
    try:
        value = int(raw)
    except ValueError:
        return default
    return value if value >= 0 else default


def _float_from_env(name: str, default: float) -> float:
    raw = os.getenv(name)
    if not raw:
        return default
    try:
        value = float(raw)
    except ValueError:
        return default
    return value if value > 0 else default


@lru_cache(maxsize=1)
def get_settings() -> AppSettings:
    llm = LlmSettings(
        api_key=os.getenv("OPENAI_API_KEY"),
        model=os.getenv("OPENAI_MODEL", "gpt-4o-mini"),
        base_url=os.getenv("OPENAI_BASE_URL"),
        organization=os.getenv("OPENAI_ORG"),
        project=os.getenv("OPENAI_PROJECT"),
        timeout_seconds=_float_from_env("FREESLOT_LLM_TIMEOUT_SECONDS", 10.0),
        mode=os.getenv("FREESLOT_INTERPRETER", INTERPRETER_REMOTE).strip().lower(),
    )

    data_dir = Path(os.getenv("FREESLOT_DATA_DIR") or DEFAULT_DATA_DIR)
    storage = StorageSettings(
        data_dir=data_dir,
        store_file=Path(os.getenv("FREESLOT_STORE_FILE") or data_dir / "store.json"),
        availability_key=os.getenv("FREESLOT_AVAILABILITY_KEY", "freeslot_availability_data"),
        profile_key=os.getenv("FREESLOT_PROFILE_KEY", "freeslot_owner_profile"),
        owner_id=os.getenv("FREESLOT_OWNER_ID", "default"),
    )

    logging_settings = LoggingSettings(
        level=os.getenv("FREESLOT_LOG_LEVEL", "INFO").upper(),
        log_file=Path(os.getenv("FREESLOT_LOG_FILE") or data_dir / "freeslot.log"),
        max_bytes=_int_from_env("FREESLOT_LOG_MAX_BYTES", 1_000_000),
        backup_count=_int_from_env("FREESLOT_LOG_BACKUPS", 5),
    )

    return AppSettings(llm=llm, storage=storage, logging=logging_settings)
