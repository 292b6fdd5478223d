"""SQLAlchemy ORM models for InternTrack.

All models are exported from this module for convenient imports:
    from interntrack.models import Application, TimelineEntry

- base.py: Base, TimestampMixin, UTCDateTime
- application.py: Application, TimelineEntry
"""

from interntrack.models.application import Application, TimelineEntry
from interntrack.models.base import Base, TimestampMixin, UTCDateTime

__all__ = [
    "Application",
    "Base",
    "TimelineEntry",
    "TimestampMixin",
    "UTCDateTime",
]
