from __future__ import annotations

import logging
from typing import Any, Dict, Optional

from fastapi import FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from ...api import ApiFunction, ApiState, call_api, get_api_functions
from ...errors import FreeslotError, StorageError, ValidationError

logger = logging.getLogger(__name__)


class ApiCallRequest(BaseModel):
    arguments: Dict[str, Any] = Field(default_factory=dict)


def _serialize_api_function(api_function: ApiFunction) -> dict:
    return {
        "name": api_function.name,
        "description": api_function.description,
        "category": api_function.category,
        "tags": list(api_function.tags),
        "parameters": api_function.parameters,
        "schema": api_function.parameter_schema,
    }


def create_app(state: Optional[ApiState] = None) -> FastAPI:
    """Build the local API app around ``state`` (wired from settings when omitted)."""

    api_state = state or ApiState.from_settings()
    app = FastAPI(title="Freeslot Local API", version="0.1.0")
    app.state.api_state = api_state
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(ValidationError)
    async def _validation_error(request: Request, exc: ValidationError) -> JSONResponse:
        logger.info("Rejected request to %s: %s", request.url.path, exc.message)
        return JSONResponse(status_code=400, content=exc.to_dict())

    @app.exception_handler(StorageError)
    async def _storage_error(request: Request, exc: StorageError) -> JSONResponse:
        logger.error("Storage failure while handling %s: %s", request.url.path, exc)
        return JSONResponse(status_code=500, content={"error": str(exc)})

    @app.exception_handler(FreeslotError)
    async def _engine_error(request: Request, exc: FreeslotError) -> JSONResponse:
        logger.warning("Request to %s failed: %s", request.url.path, exc)
        return JSONResponse(status_code=400, content={"error": str(exc)})

    @app.get("/api/functions")
    async def list_api_functions() -> JSONResponse:
        functions = [_serialize_api_function(func) for func in get_api_functions()]
        return JSONResponse({"functions": functions})

    @app.post("/api/functions/{function_name}")
    async def invoke_api_function(function_name: str, request: ApiCallRequest) -> JSONResponse:
        try:
            result = call_api(function_name, api_state, **request.arguments)
        except KeyError as exc:
            logger.warning("API function not found: %s", function_name)
            raise HTTPException(status_code=404, detail=str(exc)) from exc
        logger.debug("API function %s executed successfully", function_name)
        return JSONResponse({"name": function_name, "result": result})

    @app.post("/api/interpret")
    async def interpret(request: ApiCallRequest) -> JSONResponse:
        return JSONResponse(call_api("interpret_query", api_state, **request.arguments))

    @app.post("/api/execute")
    async def execute(request: ApiCallRequest) -> JSONResponse:
        return JSONResponse(call_api("execute_query", api_state, **request.arguments))

    return app


def run_local_server(host: str = "127.0.0.1", port: int = 8000, *, state: Optional[ApiState] = None) -> None:
    import asyncio
    from hypercorn.asyncio import serve
    from hypercorn.config import Config

    config = Config()
    config.bind = [f"{host}:{port}"]
    logger.info("Serving Freeslot API on %s:%s", host, port)
    asyncio.run(serve(create_app(state), config))
