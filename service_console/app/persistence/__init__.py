"""
Persistence package for the Console service.
"""

from .base import Record, ResourceStore
from .memory import InMemoryResourceStore, ConsoleDatabase

__all__ = ["Record", "ResourceStore", "InMemoryResourceStore", "ConsoleDatabase"]
