"""Core module for the tournabot application."""

from .types import Button, DisplayPayload

__all__ = ["Button", "DisplayPayload"]
