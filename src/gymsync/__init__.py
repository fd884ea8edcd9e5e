"""GymSync: shared gym workout log with group analytics."""

__version__ = "0.1.0"
