"""HTTP interface."""

from .router import create_api_router

__all__ = ["create_api_router"]
