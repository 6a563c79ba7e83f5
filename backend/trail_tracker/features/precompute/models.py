"""
Precomputed data model.

Durable mirror of the in-process cache so a restart does not force a
full recomputation. Losing rows only costs a recompute.
"""

from sqlalchemy import Column, String, BigInteger, JSON

from trail_tracker.models.base import Base


class PrecalculatedData(Base):
    """One derived table, keyed by computation name."""

    __tablename__ = "precalculated_data"

    key = Column(String(50), primary_key=True)
    payload = Column(JSON, nullable=False)
    computed_at = Column(BigInteger, nullable=False)  # epoch ms
    scope = Column(String(64), nullable=True)  # trail fingerprint [+ location]

    def __repr__(self):
        return f"<PrecalculatedData {self.key} @ {self.computed_at}>"
