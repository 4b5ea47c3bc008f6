from datetime import date

from sqlalchemy import Date, Float, Index, Integer, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from app.core.ids import gen_id
from app.models.base import Base, TimestampMixin


class Announcement(TimestampMixin, Base):
    __tablename__ = "announcements"
    __table_args__ = (
        UniqueConstraint("microchip_number", name="uq_announcements_microchip_number"),
        Index("ix_announcements_status", "status"),
        Index("ix_announcements_created_at", "created_at"),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=gen_id)

    pet_name: Mapped[str | None] = mapped_column(String(120), nullable=True)
    species: Mapped[str] = mapped_column(String(50), nullable=False)
    breed: Mapped[str | None] = mapped_column(String(120), nullable=True)
    sex: Mapped[str] = mapped_column(String(20), nullable=False)
    age: Mapped[int | None] = mapped_column(Integer, nullable=True)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)

    # digits only; one announcement per chip
    microchip_number: Mapped[str | None] = mapped_column(String(30), nullable=True)

    location_latitude: Mapped[float] = mapped_column(Float, nullable=False)
    location_longitude: Mapped[float] = mapped_column(Float, nullable=False)
    location_city: Mapped[str | None] = mapped_column(String(120), nullable=True)
    location_radius: Mapped[int | None] = mapped_column(Integer, nullable=True)

    email: Mapped[str | None] = mapped_column(String(254), nullable=True)
    phone: Mapped[str | None] = mapped_column(String(40), nullable=True)

    last_seen_date: Mapped[date] = mapped_column(Date, nullable=False)
    photo_url: Mapped[str | None] = mapped_column(String(255), nullable=True)

    # "MISSING" | "FOUND"
    status: Mapped[str] = mapped_column(String(10), nullable=False)
    reward: Mapped[str | None] = mapped_column(String(120), nullable=True)

    # salt:derivedKey (hex), never the plain password
    management_password_hash: Mapped[str] = mapped_column(String(255), nullable=False)
