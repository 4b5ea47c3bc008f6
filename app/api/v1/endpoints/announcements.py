from typing import Any

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.db import get_db
from app.schemas.announcement import AnnouncementCreatedOut
from app.services.announcements import AnnouncementService, get_announcement_service
from app.services.validation import read_json_payload

router = APIRouter()


@router.post("/announcements", status_code=201, response_model=AnnouncementCreatedOut, response_model_by_alias=True)
async def create_announcement(
    payload: Any = Depends(read_json_payload),
    db: AsyncSession = Depends(get_db),
    service: AnnouncementService = Depends(get_announcement_service),
) -> AnnouncementCreatedOut:
    # The body is read raw so that every violation goes through one validator
    # and comes back as a single first error.
    announcement, password = await service.create(db, payload)
    return AnnouncementCreatedOut(id=announcement.id, management_password=password)
