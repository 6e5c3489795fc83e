"""Challenge Tracker: timed daily habit challenges with progress metrics."""

__version__ = "0.1.0"
