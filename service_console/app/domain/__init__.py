"""
Domain package for the Console service.

Holds the canonical entity schemas and the resource catalog that drives
the generic CRUD routers.
"""

from .registry import ResourceDescriptor, RESOURCES

__all__ = ["ResourceDescriptor", "RESOURCES"]
