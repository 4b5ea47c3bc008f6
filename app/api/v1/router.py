from fastapi import APIRouter

from app.api.v1.endpoints.admin import router as admin_router
from app.api.v1.endpoints.announcements import router as announcements_router
from app.api.v1.endpoints.health import router as health_router
from app.api.v1.endpoints.photos import router as photos_router


router = APIRouter(prefix="/api/v1")
router.include_router(health_router, tags=["health"])
router.include_router(announcements_router, tags=["announcements"])
router.include_router(photos_router, tags=["photos"])
router.include_router(admin_router, tags=["admin"])
