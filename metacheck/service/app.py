"""FastAPI application entrypoint for metacheck service mode."""

from __future__ import annotations

import asyncio
import base64
import binascii
from typing import Any, Callable, Dict, List, Optional

from fastapi import FastAPI
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from ..config import MetacheckConfig
from ..contract import CheckedContract
from ..metadata import NoMetadataFoundError
from ..models import CandidateFile
from ..orchestrator import Orchestrator


class FilePayload(BaseModel):
    content: str
    path: Optional[str] = None


class CheckRequest(BaseModel):
    files: List[FilePayload]
    fetch: Optional[bool] = None


class CheckResponse(BaseModel):
    contracts: List[Dict[str, Any]]


class HealthResponse(BaseModel):
    status: str


class InvalidPayloadError(ValueError):
    """Raised when an uploaded file is not valid base64."""


def _decode_files(files: List[FilePayload]) -> List[CandidateFile]:
    decoded: List[CandidateFile] = []
    for item in files:
        try:
            content = base64.b64decode(item.content, validate=True)
        except (binascii.Error, ValueError) as exc:
            raise InvalidPayloadError(
                f"File {item.path or len(decoded)} is not valid base64"
            ) from exc
        decoded.append(CandidateFile(content=content, path=item.path))
    return decoded


def create_app(
    orchestrator_factory: Callable[[Optional[bool]], Orchestrator] | None = None,
    *,
    config: MetacheckConfig | None = None,
) -> FastAPI:
    """Create the FastAPI application exposing batch checks."""

    def _default_factory(fetch: Optional[bool]) -> Orchestrator:
        if config is None:
            orchestrator = Orchestrator()
        else:
            orchestrator = Orchestrator.from_config(config)
        if fetch is not None:
            orchestrator.fetch = fetch
        return orchestrator

    factory = orchestrator_factory or _default_factory

    app = FastAPI(title="metacheck", version="1.0.0")

    @app.get("/health", response_model=HealthResponse)
    async def health() -> HealthResponse:
        return HealthResponse(status="ok")

    @app.post("/check", response_model=CheckResponse)
    async def check(payload: CheckRequest) -> CheckResponse:
        files = _decode_files(payload.files)
        # Lazy-instantiate per request to keep state predictable.
        orchestrator = factory(payload.fetch)

        def _run_check() -> List[CheckedContract]:
            return orchestrator.check_files(files)

        loop = asyncio.get_running_loop()
        contracts = await loop.run_in_executor(None, _run_check)
        return CheckResponse(contracts=[contract.to_dict() for contract in contracts])

    @app.exception_handler(NoMetadataFoundError)
    async def no_metadata_handler(
        _: Any, exc: NoMetadataFoundError
    ) -> JSONResponse:
        return JSONResponse(status_code=400, content={"detail": str(exc)})

    @app.exception_handler(InvalidPayloadError)
    async def invalid_payload_handler(
        _: Any, exc: InvalidPayloadError
    ) -> JSONResponse:
        return JSONResponse(status_code=400, content={"detail": str(exc)})

    return app


def run_service(
    host: str = "127.0.0.1", port: int = 8000, *, config: MetacheckConfig | None = None
) -> None:  # pragma: no cover - integration path
    import uvicorn

    app = create_app(config=config)
    uvicorn.run(app, host=host, port=port)
