"""Shared infrastructure components."""
