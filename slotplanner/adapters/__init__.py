"""
Adapters layer - Concrete collaborators for the service layer.
"""

from .memory_store import InMemoryBookingStore

__all__ = ["InMemoryBookingStore"]
