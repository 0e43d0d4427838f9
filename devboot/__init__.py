"""devboot — bootstrap a developer machine through its native package manager."""

__version__ = "0.1.0"
