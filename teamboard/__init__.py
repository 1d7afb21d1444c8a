"""teamboard: task and team management backend."""

__version__ = "0.1.0"
