"""
Resource handlers for the Console service.

One generic handler set (list, get, create, update, delete) is
instantiated per entry of the resource catalog.
"""

from .integrity import IntegrityChecker
from .router import ResourceHandlers, build_resource_router, parse_record_id

__all__ = ["IntegrityChecker", "ResourceHandlers", "build_resource_router", "parse_record_id"]
