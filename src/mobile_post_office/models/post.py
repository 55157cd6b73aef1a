from sqlalchemy import String, Text, DateTime, Integer, SmallInteger, Numeric, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.sql import func
from datetime import datetime
from decimal import Decimal
from mobile_post_office.database.base import Base


class Post(Base):
    """
    SQLAlchemy model for a mobile post office stop ("post").

    Each post carries four trilingual text groups (name, district, location,
    address) flattened into EN/TC/SC columns, a weekly schedule and a
    geolocation. All descriptive columns are nullable; the "at least one name
    and one district" rule is enforced by the normalizer on creation.
    """
    __tablename__ = "mobile_posts"
    __table_args__ = (
        # One row per (code, seq); re-importing the same feed reports duplicates
        UniqueConstraint("mobile_code", "seq"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    # Classification
    mobile_code: Mapped[str | None] = mapped_column(String(20), nullable=True, index=True)
    seq: Mapped[int | None] = mapped_column(Integer, nullable=True)

    # Trilingual text groups
    name_en: Mapped[str | None] = mapped_column(String(255), nullable=True)
    name_tc: Mapped[str | None] = mapped_column(String(255), nullable=True)
    name_sc: Mapped[str | None] = mapped_column(String(255), nullable=True)

    district_en: Mapped[str | None] = mapped_column(String(100), nullable=True)
    district_tc: Mapped[str | None] = mapped_column(String(100), nullable=True)
    district_sc: Mapped[str | None] = mapped_column(String(100), nullable=True)

    location_en: Mapped[str | None] = mapped_column(String(255), nullable=True)
    location_tc: Mapped[str | None] = mapped_column(String(255), nullable=True)
    location_sc: Mapped[str | None] = mapped_column(String(255), nullable=True)

    address_en: Mapped[str | None] = mapped_column(Text, nullable=True)
    address_tc: Mapped[str | None] = mapped_column(Text, nullable=True)
    address_sc: Mapped[str | None] = mapped_column(Text, nullable=True)

    # Schedule: zero-padded HH:MM so lexical comparison equals time comparison
    open_hour: Mapped[str | None] = mapped_column(String(5), nullable=True)
    close_hour: Mapped[str | None] = mapped_column(String(5), nullable=True)
    day_of_week_code: Mapped[int | None] = mapped_column(SmallInteger, nullable=True)

    # Geolocation, 6 fractional digits
    latitude: Mapped[Decimal | None] = mapped_column(Numeric(10, 6), nullable=True)
    longitude: Mapped[Decimal | None] = mapped_column(Numeric(10, 6), nullable=True)

    imported_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False
    )

    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False
    )

    def __repr__(self) -> str:
        return f"<Post(id={self.id!r}, mobile_code={self.mobile_code!r}, seq={self.seq!r})>"
