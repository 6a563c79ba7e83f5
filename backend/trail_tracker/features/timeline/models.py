"""
Run timeline model.

A single row (id = 1) holds the live timeline; clearing deletes it.
"""

from datetime import datetime
from sqlalchemy import Column, Integer, String, DateTime

from trail_tracker.models.base import Base
from trail_tracker.shared.constants import SINGLETON_ROW_ID


class RunTimelineRecord(Base):
    """Scheduled start/finish wall-clock pair for the run."""

    __tablename__ = "run_timeline"

    id = Column(Integer, primary_key=True, default=SINGLETON_ROW_ID)

    start_date = Column(String(10), nullable=False)   # YYYY-MM-DD
    start_time = Column(String(16), nullable=False)    # HH:MM
    finish_date = Column(String(10), nullable=False)
    finish_time = Column(String(16), nullable=False)

    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    def __repr__(self):
        return (
            f"<RunTimeline {self.start_date} {self.start_time} -> "
            f"{self.finish_date} {self.finish_time}>"
        )
