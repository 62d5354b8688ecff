"""Import all models here so metadata.create_all sees every table."""

from release_calendar.db.base_class import Base
from release_calendar.models import release  # noqa: F401

__all__ = ["Base"]
