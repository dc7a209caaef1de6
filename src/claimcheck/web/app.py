"""FastAPI application exposing the claim decision pipeline."""

from __future__ import annotations

import asyncio
import logging
from typing import Any, List, Union

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict, Field
from starlette.exceptions import HTTPException as StarletteHTTPException

from claimcheck.config import AppConfig
from claimcheck.errors import InputValidationError, NoContentError, ProviderError
from claimcheck.pipeline import ClaimPipeline
from claimcheck.web.frontend import router as frontend_router

LOGGER = logging.getLogger(__name__)

app = FastAPI(title="claimcheck", version="0.1.0")
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["*"],
    allow_headers=["*"],
)
app.include_router(frontend_router)

_pipeline: ClaimPipeline | None = None


class InlineDocumentPayload(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    filename: str | None = None
    content_base64: str | None = Field(default=None, alias="contentBase64")
    content: str | None = None


DocumentItem = Union[str, InlineDocumentPayload]


class RunPayload(BaseModel):
    documents: Union[DocumentItem, List[DocumentItem], None] = None
    query: str | None = None


def get_pipeline() -> ClaimPipeline:
    """Return the process-wide pipeline, building it from the environment once."""
    global _pipeline
    if _pipeline is None:
        _pipeline = ClaimPipeline.from_config(AppConfig.from_env())
    return _pipeline


def set_pipeline(pipeline: ClaimPipeline | None) -> None:
    global _pipeline
    _pipeline = pipeline


def _error(status_code: int, message: str, headers: dict[str, str] | None = None) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message}, headers=headers)


def _document_to_wire(item: DocumentItem) -> Any:
    if isinstance(item, InlineDocumentPayload):
        return item.model_dump(by_alias=True, exclude_none=True)
    return item


@app.on_event("startup")
async def startup_event() -> None:
    logging.basicConfig(level=logging.INFO, format="[%(levelname)s] %(message)s")


@app.exception_handler(StarletteHTTPException)
async def http_error_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    return _error(exc.status_code, str(exc.detail), headers=getattr(exc, "headers", None))


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    return _error(400, "Request body must be JSON with 'documents' and 'query'.")


@app.exception_handler(InputValidationError)
async def input_error_handler(request: Request, exc: InputValidationError) -> JSONResponse:
    return _error(400, str(exc))


@app.exception_handler(NoContentError)
async def no_content_handler(request: Request, exc: NoContentError) -> JSONResponse:
    return _error(400, str(exc))


@app.exception_handler(ProviderError)
async def provider_error_handler(request: Request, exc: ProviderError) -> JSONResponse:
    return _error(502, str(exc))


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    LOGGER.exception("Error in /run: %s", exc)
    return _error(500, str(exc) or "server error")


@app.post("/run")
async def run_claim(payload: RunPayload) -> dict[str, Any]:
    if payload.documents is None or payload.documents == []:
        raise InputValidationError("Missing 'documents' (URL or array) in request body.")
    if not payload.query or not payload.query.strip():
        raise InputValidationError("Missing 'query' in request body.")

    if isinstance(payload.documents, list):
        documents: Any = [_document_to_wire(item) for item in payload.documents]
    else:
        documents = _document_to_wire(payload.documents)

    pipeline = get_pipeline()
    return await asyncio.to_thread(pipeline.run, payload.query, documents)
