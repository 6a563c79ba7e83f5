"""
Trail Tracker backend.

Projects GPS fixes onto a fixed trail, tracks waypoint completion
inside a scheduled run window and serves cached derived tables.
"""

__version__ = "0.1.0"
