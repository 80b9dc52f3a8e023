"""
unistate_devenv.api.routers.environment

Read-only views of the environment definition.

Responsibilities:
- `/compose`: the document the generator renders for the current settings.
- `/drift`: credential drift between db and psql in the on-disk compose file.
- `/session`: who the configured credentials connect as.
"""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.exc import DBAPIError
from sqlalchemy.ext.asyncio import AsyncSession
from starlette.status import (
    HTTP_404_NOT_FOUND,
    HTTP_422_UNPROCESSABLE_ENTITY,
    HTTP_503_SERVICE_UNAVAILABLE,
)

from unistate_devenv.api.deps import db_session, settings_dep
from unistate_devenv.compose.builder import build_document
from unistate_devenv.compose.consistency import find_credential_drift
from unistate_devenv.compose.io import read_document
from unistate_devenv.db.identity import describe_session
from unistate_devenv.errors import ComposeValidationError
from unistate_devenv.settings import Settings

router = APIRouter()


@router.get("/compose")
async def compose(settings: Settings = Depends(settings_dep)) -> dict[str, Any]:
    return build_document(settings).to_compose_dict()


@router.get("/drift")
async def drift(settings: Settings = Depends(settings_dep)) -> dict[str, Any]:
    path = settings.compose_file
    if not path.exists():
        raise HTTPException(status_code=HTTP_404_NOT_FOUND, detail=f"{path} not found")
    try:
        document = read_document(path)
    except ComposeValidationError as e:
        raise HTTPException(status_code=HTTP_422_UNPROCESSABLE_ENTITY, detail=str(e)) from e
    found = find_credential_drift(
        document, db_service=settings.db_service, client_service=settings.client_service
    )
    return {
        "path": str(path),
        "consistent": not found,
        "drift": [{"field": d.field, "expected": d.expected, "actual": d.actual} for d in found],
    }


@router.get("/session")
async def session_info(session: AsyncSession = Depends(db_session)) -> dict[str, Any]:
    try:
        info = await describe_session(session)
    except (OSError, DBAPIError) as e:
        raise HTTPException(status_code=HTTP_503_SERVICE_UNAVAILABLE, detail=str(e)) from e
    return info.as_dict()
