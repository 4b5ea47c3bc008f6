from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Callable

from fastapi import Request
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.errors import ConflictError, NotFoundError
from app.core.ids import gen_id
from app.core.security import generate_management_password, hash_secret_async
from app.models.announcement import Announcement
from app.services.file_validation import validate_image
from app.services.storage import PhotoStore
from app.services.validation import validate_create_announcement

log = logging.getLogger(__name__)

MICROCHIP_TAKEN = "An announcement with this microchip number already exists"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class AnnouncementService:
    photo_store: PhotoStore
    max_photo_bytes: int
    clock: Callable[[], datetime] = field(default=_utcnow)
    id_factory: Callable[[], str] = field(default=gen_id)
    password_factory: Callable[[], str] = field(default=generate_management_password)

    async def create(self, db: AsyncSession, payload: Any) -> tuple[Announcement, str]:
        """
        Validate, persist, and hand back the row together with the plain
        management password. The password is returned exactly once; only its
        hash is stored.
        """
        now = self.clock()
        data = validate_create_announcement(payload, today=now.date())

        if data.microchip_number is not None:
            taken = await db.scalar(
                select(Announcement.id).where(Announcement.microchip_number == data.microchip_number)
            )
            if taken is not None:
                raise ConflictError(MICROCHIP_TAKEN, field="microchipNumber")

        password = self.password_factory()
        password_hash = await hash_secret_async(password)

        announcement = Announcement(
            id=self.id_factory(),
            **data.model_dump(),
            management_password_hash=password_hash,
            created_at=now,
            updated_at=now,
        )
        db.add(announcement)
        try:
            await db.commit()
        except IntegrityError as exc:
            # another request registered the same chip between the check and the insert
            await db.rollback()
            raise ConflictError(MICROCHIP_TAKEN, field="microchipNumber") from exc

        log.info("announcement created id=%s status=%s", announcement.id, announcement.status)
        return announcement, password

    async def upload_photo(self, db: AsyncSession, announcement: Announcement, data: bytes) -> str:
        """Store (or replace) the photo and point the announcement at it."""
        mime = validate_image(data, max_bytes=self.max_photo_bytes)

        url = await self.photo_store.replace(announcement_id=announcement.id, data=data, mime=mime)
        announcement.photo_url = url
        announcement.updated_at = self.clock()
        await db.commit()

        await self.photo_store.prune(
            announcement_id=announcement.id,
            keep=self.photo_store.filename_for(announcement.id, mime),
        )
        log.info("photo stored for announcement %s (%s, %d bytes)", announcement.id, mime, len(data))
        return url

    async def delete(self, db: AsyncSession, announcement_id: str) -> None:
        announcement = await db.get(Announcement, announcement_id)
        if announcement is None:
            raise NotFoundError("Announcement not found")

        await db.delete(announcement)
        await db.commit()

        await self.photo_store.remove(announcement_id)
        log.info("announcement deleted id=%s", announcement_id)


def get_announcement_service(request: Request) -> AnnouncementService:
    return request.app.state.announcements
