"""Declarative base shared by the table definitions."""

from sqlalchemy.orm import DeclarativeBase


class Base(DeclarativeBase):
    pass
