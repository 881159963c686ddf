"""Job Suite interview notification service."""

__version__ = "1.0.0"
