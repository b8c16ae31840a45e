"""HTTP routes exposed by the registrar service."""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Request

router = APIRouter(tags=["health"])


@router.get("/health", summary="Health probe")
async def health() -> dict[str, str]:
    return {"status": "ok"}


@router.get("/registration", summary="Registration state per registry server")
async def registration(request: Request) -> dict[str, Any]:
    container = request.app.state.container
    switches = request.app.state.switches
    return {
        "enabled": switches.registration_on(),
        "servers": container.registration_service.status(),
    }
