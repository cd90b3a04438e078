"""
Establishment service: ownership-scoped CRUD.

Every function takes the caller's identity as its first argument. Rows are only
ever read or written through a filter on ``Establishment.user_id``, and a row
owned by someone else is reported exactly like a row that does not exist.

Breadcrumbs go to telemetry before each storage round trip; unexpected
storage failures are captured with component/identity tags and re-raised as a
generic InternalError.
"""

from __future__ import annotations

import uuid
from typing import Any, Mapping, Optional, TypeVar, Union

import structlog
from pydantic import BaseModel, ValidationError
from sqlalchemy import delete, insert, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from logbook_api.core.auth import require_identity
from logbook_api.core.errors import InternalError, NotFoundError, ValidationFailure
from logbook_api.core.telemetry import add_breadcrumb, capture_exception
from logbook_api.models.base import utcnow
from logbook_api.models.establishment import Establishment
from logbook_shared.schemas.establishments import EstablishmentCreate, EstablishmentUpdate

log = structlog.get_logger()

NOT_FOUND_MESSAGE = "Establishment not found or you do not have access"

CreatePayload = Union[EstablishmentCreate, Mapping[str, Any]]
UpdatePayload = Union[EstablishmentUpdate, Mapping[str, Any]]

M = TypeVar("M", bound=BaseModel)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _validate(model: type[M], payload: Union[M, Mapping[str, Any]]) -> M:
    if isinstance(payload, model):
        return payload
    try:
        return model.model_validate(payload)
    except ValidationError as exc:
        raise ValidationFailure.from_pydantic(exc) from exc


def _coerce_id(establishment_id: Union[uuid.UUID, str]) -> uuid.UUID:
    if isinstance(establishment_id, uuid.UUID):
        return establishment_id
    try:
        return uuid.UUID(str(establishment_id))
    except ValueError as exc:
        raise ValidationFailure(
            [{"field": "id", "message": "Invalid establishment ID"}]
        ) from exc


def _internal_failure(exc: BaseException, message: str, component: str, **tags: Any) -> InternalError:
    """Report a storage failure and build the generic error shown to the caller."""
    capture_exception(exc, tags={"component": component, **tags})
    log.error("establishment.storage_error", component=component, error=repr(exc), **tags)
    return InternalError(message)


async def _fetch_owned(
    session: AsyncSession,
    owner: str,
    establishment_id: uuid.UUID,
    component: str,
) -> Establishment:
    """Select one row by id AND owner; NotFoundError covers both misses."""
    try:
        result = await session.execute(
            select(Establishment)
            .where(
                Establishment.id == establishment_id,
                Establishment.user_id == owner,
            )
            .limit(1)
        )
        establishment = result.scalar_one_or_none()
    except Exception as exc:
        raise _internal_failure(
            exc,
            "Failed to fetch establishment",
            component,
            user_id=owner,
            establishment_id=establishment_id,
        ) from exc

    if establishment is None:
        raise NotFoundError(NOT_FOUND_MESSAGE)
    return establishment


# ---------------------------------------------------------------------------
# Operations
# ---------------------------------------------------------------------------

async def list_establishments(
    user_id: Optional[str], session: AsyncSession
) -> list[Establishment]:
    """All establishments owned by the caller, oldest first."""
    owner = require_identity(user_id)
    add_breadcrumb("db-query", f"Fetching establishments for user {owner}")

    try:
        result = await session.execute(
            select(Establishment)
            .where(Establishment.user_id == owner)
            .order_by(Establishment.created_at)
        )
        return list(result.scalars().all())
    except Exception as exc:
        raise _internal_failure(
            exc, "Failed to fetch establishments", "establishments.list", user_id=owner
        ) from exc


async def get_establishment(
    user_id: Optional[str], establishment_id: uuid.UUID, session: AsyncSession
) -> Establishment:
    owner = require_identity(user_id)
    establishment_id = _coerce_id(establishment_id)
    add_breadcrumb("db-query", f"Fetching establishment {establishment_id}")
    return await _fetch_owned(session, owner, establishment_id, "establishments.get_by_id")


async def create_establishment(
    user_id: Optional[str], payload: CreatePayload, session: AsyncSession
) -> Establishment:
    """Insert a new establishment owned by the caller.

    The id and both timestamps are generated here; any owner field in the
    payload is ignored.
    """
    owner = require_identity(user_id)
    data = _validate(EstablishmentCreate, payload)

    add_breadcrumb("db-mutation", f"Creating establishment for user {owner}")
    now = utcnow()
    try:
        result = await session.execute(
            insert(Establishment)
            .values(
                id=uuid.uuid4(),
                user_id=owner,
                created_at=now,
                updated_at=now,
                **data.model_dump(),
            )
            .returning(Establishment)
        )
        establishment = result.scalar_one_or_none()
    except Exception as exc:
        raise _internal_failure(
            exc, "Failed to create establishment", "establishments.create", user_id=owner
        ) from exc

    if establishment is None:
        raise _internal_failure(
            RuntimeError("Insert failed - no rows returned"),
            "Failed to create establishment",
            "establishments.create",
            user_id=owner,
        )

    add_breadcrumb("db-mutation", f"Successfully created establishment {establishment.id}")
    log.info("establishment.created", establishment_id=str(establishment.id), user_id=owner)
    return establishment


async def update_establishment(
    user_id: Optional[str],
    establishment_id: uuid.UUID,
    payload: UpdatePayload,
    session: AsyncSession,
) -> Optional[Establishment]:
    """Apply the fields present in ``payload`` and refresh ``updated_at``.

    The ownership check and the UPDATE are separate statements. If the row is
    deleted in between, the UPDATE matches nothing and None is returned as a
    success with no row.
    """
    owner = require_identity(user_id)
    establishment_id = _coerce_id(establishment_id)
    changes = _validate(EstablishmentUpdate, payload).changes()

    add_breadcrumb("db-query", f"Verifying ownership of establishment {establishment_id}")
    await _fetch_owned(session, owner, establishment_id, "establishments.update")

    add_breadcrumb("db-mutation", f"Updating establishment {establishment_id}")
    try:
        result = await session.execute(
            update(Establishment)
            .where(Establishment.id == establishment_id)
            .values(**changes, updated_at=utcnow())
            .returning(Establishment)
            .execution_options(populate_existing=True)
        )
        establishment = result.scalar_one_or_none()
    except Exception as exc:
        raise _internal_failure(
            exc,
            "Failed to update establishment",
            "establishments.update",
            user_id=owner,
            establishment_id=establishment_id,
        ) from exc

    if establishment is None:
        # TODO: fold the owner filter into this UPDATE if a vanished row should report not-found
        log.warning("establishment.update_no_rows", establishment_id=str(establishment_id))
        return None

    log.info(
        "establishment.updated",
        establishment_id=str(establishment_id),
        fields=sorted(changes),
    )
    return establishment


async def delete_establishment(
    user_id: Optional[str], establishment_id: uuid.UUID, session: AsyncSession
) -> dict[str, bool]:
    """Hard-delete an owned establishment; the database cascades to subscriptions."""
    owner = require_identity(user_id)
    establishment_id = _coerce_id(establishment_id)

    add_breadcrumb("db-query", f"Verifying ownership of establishment {establishment_id}")
    await _fetch_owned(session, owner, establishment_id, "establishments.delete")

    add_breadcrumb("db-mutation", f"Deleting establishment {establishment_id}")
    try:
        await session.execute(
            delete(Establishment).where(Establishment.id == establishment_id)
        )
    except Exception as exc:
        raise _internal_failure(
            exc,
            "Failed to delete establishment",
            "establishments.delete",
            user_id=owner,
            establishment_id=establishment_id,
        ) from exc

    log.info("establishment.deleted", establishment_id=str(establishment_id), user_id=owner)
    return {"success": True}
