from __future__ import annotations

import logging

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.db import get_db
from app.core.errors import NotFoundError, UnauthorizedError
from app.core.security import verify_secret_async
from app.models.announcement import Announcement
from app.services.basic_auth import BasicCredentials, require_basic_auth

log = logging.getLogger(__name__)


async def authorize_announcement(
    announcement_id: str,
    credentials: BasicCredentials = Depends(require_basic_auth),
    db: AsyncSession = Depends(get_db),
) -> Announcement:
    """
    Resolve the announcement named in the path and check the management
    password against its stored hash.

    Lookup happens before verification, so an unknown id is a 404 even for a
    caller without a valid password.
    """
    announcement = await db.get(Announcement, announcement_id)
    if announcement is None:
        raise NotFoundError("Announcement not found")

    if not await verify_secret_async(credentials.password, announcement.management_password_hash):
        log.info("management password rejected for announcement %s", announcement_id)
        raise UnauthorizedError("Invalid management password")

    return announcement
