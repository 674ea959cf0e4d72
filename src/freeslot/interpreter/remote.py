from __future__ import annotations

import logging
from datetime import date
from typing import Any, Optional

import orjson
from openai import OpenAI

from ..config import LlmSettings
from ..errors import ConfigurationError, InterpretationError, ValidationError
from ..query import AvailabilityQuery, validate_query
from .base import QueryInterpreter
from .prompts import render_system_prompt

logger = logging.getLogger(__name__)


class RemoteInterpreter(QueryInterpreter):
    """Interprets requests with an OpenAI chat completion constrained to JSON output."""

    name = "remote"

    def __init__(self, settings: LlmSettings, *, client: Optional[Any] = None) -> None:
        if not settings.is_configured:
            missing = ", ".join(settings.missing_env_vars)
            raise ConfigurationError(
                f"The remote interpreter needs {missing or 'an API key'}; "
                "set it or run in offline mode (FREESLOT_INTERPRETER=offline)."
            )
        self.settings = settings
        self._client = client

    def _ensure_client(self) -> Any:
        if self._client is None:
            self._client = OpenAI(
                api_key=self.settings.api_key,
                base_url=self.settings.base_url,
                organization=self.settings.organization,
                project=self.settings.project,
                timeout=self.settings.timeout_seconds,
                max_retries=0,
            )
        return self._client

    def interpret(self, text: str, *, today: date) -> AvailabilityQuery:
        try:
            completion = self._ensure_client().chat.completions.create(
                model=self.settings.model,
                temperature=0,
                response_format={"type": "json_object"},
                messages=[
                    {"role": "system", "content": render_system_prompt(today.isoformat(), today.strftime("%A"))},
                    {"role": "user", "content": text},
                ],
            )
        except Exception as exc:  # noqa: BLE001
            raise InterpretationError(f"Language model request failed: {exc}") from exc

        try:
            content = completion.choices[0].message.content or ""
        except (AttributeError, IndexError, TypeError) as exc:
            raise InterpretationError("Language model response had no message") from exc
        if not isinstance(content, str):
            raise InterpretationError("Language model response content was not text")
        try:
            payload = orjson.loads(content)
        except orjson.JSONDecodeError as exc:
            raise InterpretationError("Language model did not return JSON") from exc
        if not isinstance(payload, dict):
            raise InterpretationError("Language model returned a non-object JSON value")

        try:
            query = validate_query(payload)
        except ValidationError as exc:
            raise InterpretationError(f"Language model returned an invalid query: {exc.message}") from exc
        logger.debug("Remote interpreter produced %s", query.to_payload())
        return query


__all__ = ["RemoteInterpreter"]
