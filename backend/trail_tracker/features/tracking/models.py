"""
Tracking models.

Models:
- LocationFix: GPS fix from any ingestion path (insert-only)
- TrailProgressRecord: last stored progress summary (single row)
"""

from datetime import datetime
from sqlalchemy import Column, String, DateTime, Float, Integer, BigInteger, JSON

from trail_tracker.models.base import Base
from trail_tracker.shared.constants import SINGLETON_ROW_ID


class LocationFix(Base):
    """
    A single position report.

    Ordered by timestamp; the latest one is the runner's current position.
    """

    __tablename__ = "location_fixes"

    id = Column(String(128), primary_key=True)

    lat = Column(Float, nullable=False)
    lng = Column(Float, nullable=False)
    timestamp = Column(BigInteger, nullable=False, index=True)  # epoch ms

    accuracy = Column(Float, nullable=True)   # meters
    elevation = Column(Float, nullable=True)  # meters
    source = Column(String(50), nullable=False)

    created_at = Column(DateTime, default=datetime.utcnow)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "lat": self.lat,
            "lng": self.lng,
            "timestamp": self.timestamp,
            "accuracy": self.accuracy,
            "elevation": self.elevation,
            "source": self.source,
        }

    def __repr__(self):
        return f"<LocationFix {self.id} ({self.lat}, {self.lng}) @ {self.timestamp}>"


class TrailProgressRecord(Base):
    """Durable copy of the last computed trail progress."""

    __tablename__ = "trail_progress"

    id = Column(Integer, primary_key=True, default=SINGLETON_ROW_ID)

    completed_distance = Column(Float, nullable=False, default=0.0)        # km
    completed_elevation_gain = Column(Float, nullable=False, default=0.0)  # m
    progress_percentage = Column(Float, nullable=False, default=0.0)

    last_location = Column(JSON, nullable=True)
    completed_segments = Column(JSON, nullable=False, default=list)  # sampled, <= 50

    estimated_completion = Column(BigInteger, nullable=True)  # epoch ms
    last_updated = Column(BigInteger, nullable=False)          # epoch ms

    def __repr__(self):
        return f"<TrailProgress {self.completed_distance:.2f} km ({self.progress_percentage:.1f}%)>"
