from typing import Annotated, Optional
import uuid
import logging

from fastapi import Depends, HTTPException, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from billbook.config import settings
from billbook.database import get_db
from billbook.services.record_store import RecordStore


logger = logging.getLogger(__name__)


async def get_owner_id(request: Request) -> Optional[uuid.UUID]:
    """
    Owner identity for the request, read from the owner header.

    A missing header yields None: reads then return nothing and writes are
    refused with NotAuthenticatedError. A malformed header is a 401.
    """
    raw = request.headers.get(settings.OWNER_HEADER)
    if not raw:
        return None

    try:
        return uuid.UUID(raw.strip())
    except ValueError:
        logger.warning(f"Invalid {settings.OWNER_HEADER} header: {raw}")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=f"Invalid {settings.OWNER_HEADER} header",
        )


# Type aliases for dependency injection
DB = Annotated[AsyncSession, Depends(get_db)]
OwnerId = Annotated[Optional[uuid.UUID], Depends(get_owner_id)]


async def get_store(db: DB, owner_id: OwnerId) -> RecordStore:
    return RecordStore(db, owner_id)


Store = Annotated[RecordStore, Depends(get_store)]
