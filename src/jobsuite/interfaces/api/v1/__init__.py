"""API v1."""

from .router import create_v1_router

__all__ = ["create_v1_router"]
