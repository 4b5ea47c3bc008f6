from fastapi import APIRouter, Depends, Response
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.db import get_db
from app.services.announcements import AnnouncementService, get_announcement_service
from app.services.internal_admin import require_admin_token

router = APIRouter(prefix="/admin", dependencies=[Depends(require_admin_token)])


@router.delete("/announcements/{announcement_id}", status_code=204)
async def delete_announcement(
    announcement_id: str,
    db: AsyncSession = Depends(get_db),
    service: AnnouncementService = Depends(get_announcement_service),
) -> Response:
    await service.delete(db, announcement_id)
    return Response(status_code=204)
