"""Liveness route for the claim webhook."""

from __future__ import annotations

from fastapi import APIRouter
from fastapi.responses import PlainTextResponse

router = APIRouter()

LIVENESS_MESSAGE = "Claim decision webhook is live. POST to /run"


@router.get("/", response_class=PlainTextResponse)
async def index() -> PlainTextResponse:
    return PlainTextResponse(content=LIVENESS_MESSAGE)
