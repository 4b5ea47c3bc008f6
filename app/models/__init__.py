from app.models.base import Base  # noqa: F401

from app.models.announcement import Announcement  # noqa: F401
