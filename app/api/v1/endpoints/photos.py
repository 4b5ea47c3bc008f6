import logging

from fastapi import APIRouter, Depends, Request, Response
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.db import get_db
from app.models.announcement import Announcement
from app.services.announcements import AnnouncementService, get_announcement_service
from app.services.auth import authorize_announcement
from app.services.file_validation import sanitize_filename
from app.services.uploads import enforce_upload_limit, read_photo_field

log = logging.getLogger(__name__)
router = APIRouter()


@router.post(
    "/announcements/{announcement_id}/photos",
    status_code=201,
    dependencies=[Depends(enforce_upload_limit)],
)
async def upload_photo(
    request: Request,
    announcement: Announcement = Depends(authorize_announcement),
    db: AsyncSession = Depends(get_db),
    service: AnnouncementService = Depends(get_announcement_service),
) -> Response:
    """
    Replace the announcement's photo. The body is only parsed once the caller
    is authorized; the image type is decided from the file content and the
    client's filename is only logged.
    """
    data, filename = await read_photo_field(request, max_bytes=service.max_photo_bytes)

    log.info("photo upload for %s filename=%s", announcement.id, sanitize_filename(filename))
    await service.upload_photo(db, announcement, data)
    return Response(status_code=201)
