"""Budget Tracker package."""

__all__ = [
    "config",
    "timeline",
    "aggregation",
    "calendar_map",
    "analytics",
    "models",
    "webapp",
    "db",
    "cli",
]

__version__ = "0.1.0"
