"""CategoryRecord — the categories table."""

from datetime import datetime

from sqlalchemy import CheckConstraint, DateTime, Index, Integer, Text, func, text
from sqlalchemy.orm import Mapped, mapped_column

from toolshelf.models.base import Base


class CategoryRecord(Base):
    """A catalog category. Soft-deleted by setting status to inactive."""

    __tablename__ = "categories"
    __table_args__ = (
        CheckConstraint("status IN ('active', 'inactive')", name="ck_categories_status"),
        Index("idx_categories_status", "status"),
        Index("idx_categories_sort_order", "sort_order"),
        {"sqlite_autoincrement": True},
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    name: Mapped[str] = mapped_column(Text, nullable=False)
    description: Mapped[str | None] = mapped_column(Text)
    icon: Mapped[str | None] = mapped_column(Text)
    sort_order: Mapped[int] = mapped_column(Integer, server_default=text("0"))
    status: Mapped[str] = mapped_column(Text, server_default=text("'active'"))
    created_at: Mapped[datetime] = mapped_column(DateTime, server_default=func.current_timestamp())
    updated_at: Mapped[datetime] = mapped_column(DateTime, server_default=func.current_timestamp())
