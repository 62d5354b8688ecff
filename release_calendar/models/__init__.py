from release_calendar.models.release import ReleaseItem, ReleaseKind

__all__ = ["ReleaseItem", "ReleaseKind"]
"""SQLAlchemy ORM models for the release calendar store."""
