"""
Feature modules for Trail Tracker.

Each feature is a self-contained module with:
- models.py - SQLAlchemy models (optional)
- schemas.py - Pydantic schemas / value types
- service.py - Business logic
- repository.py - Data access (optional)

Pure computation lives in its own module (trail/parser.py,
tracking/calculator.py, waypoints/ordering.py).
"""
