"""Administrative access control."""

from .services import AdminService

__all__ = ["AdminService"]
