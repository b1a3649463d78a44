"""Route modules for the Rolegate API."""
from . import roles, users

__all__ = ["roles", "users"]
