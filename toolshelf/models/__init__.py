"""SQLAlchemy table definitions. Used for schema creation only; queries are raw SQL."""

from toolshelf.models.base import Base
from toolshelf.models.category import CategoryRecord
from toolshelf.models.resource import ResourceRecord

__all__ = ["Base", "CategoryRecord", "ResourceRecord"]
