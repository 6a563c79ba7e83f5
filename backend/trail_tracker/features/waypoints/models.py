"""
Waypoint models.

Models:
- Waypoint: administrator-defined point of interest
- WaypointCompletion: append-only audit of completion transitions
"""

import uuid
from datetime import datetime
from sqlalchemy import Column, String, DateTime, Float, Integer, Boolean, BigInteger, Text

from trail_tracker.models.base import Base
from trail_tracker.shared.constants import WaypointType


def _generate_id() -> str:
    return str(uuid.uuid4())


class Waypoint(Base):
    """
    Point of interest anchored to trail coordinates.

    There is no trail-index column: the position along the trail is
    always derived by projecting (lat, lng) onto the current trail.
    """

    __tablename__ = "waypoints"

    id = Column(String(64), primary_key=True, default=_generate_id)

    name = Column(String(255), nullable=False)
    type = Column(String(20), nullable=False, default=WaypointType.INTERMEDIARY.value)
    details = Column(Text, nullable=True)

    lat = Column(Float, nullable=False)
    lng = Column(Float, nullable=False)

    # Completion state (Pending <-> Completed)
    is_completed = Column(Boolean, nullable=False, default=False)
    completed_at = Column(BigInteger, nullable=True)  # epoch ms
    completed_by = Column(String(10), nullable=True)  # auto | admin

    created_by = Column(String(100), nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    def __repr__(self):
        state = "completed" if self.is_completed else "pending"
        return f"<Waypoint {self.name} ({state})>"


class WaypointCompletion(Base):
    """
    One row per completion transition, never per evaluation.

    run_period ties the row to the timeline that produced it.
    """

    __tablename__ = "waypoint_completions"

    id = Column(Integer, primary_key=True, autoincrement=True)
    waypoint_id = Column(String(64), nullable=False, index=True)

    is_completed = Column(Boolean, nullable=False)
    completed_at = Column(BigInteger, nullable=False)  # epoch ms of the transition
    completed_by = Column(String(10), nullable=False)
    run_period = Column(String(50), nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow)

    def to_dict(self) -> dict:
        return {
            "waypointId": self.waypoint_id,
            "isCompleted": self.is_completed,
            "completedAt": self.completed_at,
            "completedBy": self.completed_by,
            "runPeriod": self.run_period,
        }

    def __repr__(self):
        return f"<WaypointCompletion {self.waypoint_id} -> {self.is_completed} by {self.completed_by}>"
