"""ResourceRecord — the resources table.

``tags`` holds a JSON array of strings; repositories encode and decode it.
"""

from datetime import datetime

from sqlalchemy import CheckConstraint, DateTime, ForeignKey, Index, Integer, Text, func, text
from sqlalchemy.orm import Mapped, mapped_column

from toolshelf.models.base import Base


class ResourceRecord(Base):
    """A downloadable resource. Never physically deleted."""

    __tablename__ = "resources"
    __table_args__ = (
        CheckConstraint("status IN ('active', 'inactive')", name="ck_resources_status"),
        Index("idx_resources_status", "status"),
        Index("idx_resources_category_id", "category_id"),
        Index("idx_resources_created_at", "created_at"),
        Index("idx_resources_download_count", "download_count"),
        Index("idx_resources_title", "title"),
        Index("idx_resources_composite", "status", "category_id", "created_at"),
        {"sqlite_autoincrement": True},
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    title: Mapped[str] = mapped_column(Text, nullable=False)
    description: Mapped[str | None] = mapped_column(Text)
    category_id: Mapped[int | None] = mapped_column(Integer, ForeignKey("categories.id"))
    file_type: Mapped[str | None] = mapped_column(Text)
    file_size: Mapped[int | None] = mapped_column(Integer)
    original_filename: Mapped[str | None] = mapped_column(Text)
    file_hash: Mapped[str | None] = mapped_column(Text)
    download_url: Mapped[str] = mapped_column(Text, nullable=False)
    download_password: Mapped[str | None] = mapped_column(Text)
    thumbnail_url: Mapped[str | None] = mapped_column(Text)
    download_count: Mapped[int] = mapped_column(Integer, server_default=text("0"))
    tags: Mapped[str | None] = mapped_column(Text)
    status: Mapped[str] = mapped_column(Text, server_default=text("'active'"))
    created_at: Mapped[datetime] = mapped_column(DateTime, server_default=func.current_timestamp())
    updated_at: Mapped[datetime] = mapped_column(DateTime, server_default=func.current_timestamp())
