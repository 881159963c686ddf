"""Shared kernel: domain primitives, application errors and infrastructure."""
