"""
Establishment endpoints.

GET    /api/v1/establishments        List the caller's establishments
POST   /api/v1/establishments        Create an establishment
GET    /api/v1/establishments/{id}   Get one establishment
PATCH  /api/v1/establishments/{id}   Partially update an establishment
DELETE /api/v1/establishments/{id}   Delete an establishment (cascades to subscriptions)
"""

from __future__ import annotations

import uuid
from typing import List, Optional

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from logbook_api.core.auth import get_caller_identity
from logbook_api.core.database import get_session
from logbook_api.services import establishments as establishment_service
from logbook_shared.schemas.common import DeleteResponse, ErrorResponse
from logbook_shared.schemas.establishments import (
    EstablishmentCreate,
    EstablishmentRead,
    EstablishmentUpdate,
)

router = APIRouter(
    responses={
        401: {"model": ErrorResponse},
        403: {
            "model": ErrorResponse,
            "description": "Cookie session without a matching X-CSRF-Token (code UNAUTHORIZED)",
        },
        422: {"model": ErrorResponse},
        500: {"model": ErrorResponse},
    }
)


@router.get("", response_model=List[EstablishmentRead])
async def list_establishments(
    user_id: Optional[str] = Depends(get_caller_identity),
    session: AsyncSession = Depends(get_session),
):
    """List establishments owned by the caller, oldest first."""
    return await establishment_service.list_establishments(user_id, session)


@router.post("", response_model=EstablishmentRead, status_code=201)
async def create_establishment(
    body: EstablishmentCreate,
    user_id: Optional[str] = Depends(get_caller_identity),
    session: AsyncSession = Depends(get_session),
):
    """Create an establishment owned by the caller."""
    return await establishment_service.create_establishment(user_id, body, session)


@router.get(
    "/{establishment_id}",
    response_model=EstablishmentRead,
    responses={404: {"model": ErrorResponse}},
)
async def get_establishment(
    establishment_id: uuid.UUID,
    user_id: Optional[str] = Depends(get_caller_identity),
    session: AsyncSession = Depends(get_session),
):
    return await establishment_service.get_establishment(user_id, establishment_id, session)


@router.patch(
    "/{establishment_id}",
    response_model=Optional[EstablishmentRead],
    responses={404: {"model": ErrorResponse}},
)
async def update_establishment(
    establishment_id: uuid.UUID,
    body: EstablishmentUpdate,
    user_id: Optional[str] = Depends(get_caller_identity),
    session: AsyncSession = Depends(get_session),
):
    """Apply only the fields present in the body.

    Returns null when the row vanished between the ownership check and the
    write (concurrent delete).
    """
    return await establishment_service.update_establishment(
        user_id, establishment_id, body, session
    )


@router.delete(
    "/{establishment_id}",
    response_model=DeleteResponse,
    responses={404: {"model": ErrorResponse}},
)
async def delete_establishment(
    establishment_id: uuid.UUID,
    user_id: Optional[str] = Depends(get_caller_identity),
    session: AsyncSession = Depends(get_session),
):
    return await establishment_service.delete_establishment(user_id, establishment_id, session)
