"""
Persistence interface for Console resources.
"""

from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional

Record = Dict[str, Any]


class ResourceStore(ABC):
    """Key-value store of flat records keyed by store-assigned integer ids.

    Implementations must never reuse an id, and ``update``/``delete`` must
    raise :class:`shared.errors.NotFoundError` for unknown ids.
    """

    name: str

    @abstractmethod
    async def list(self) -> List[Record]:
        """Return every record in id order."""

    @abstractmethod
    async def get(self, record_id: int) -> Optional[Record]:
        """Return the record or ``None``."""

    @abstractmethod
    async def create(self, data: Record) -> Record:
        """Persist ``data`` under a fresh id and return the full record."""

    @abstractmethod
    async def update(self, record_id: int, partial: Record) -> Record:
        """Shallow-merge ``partial`` over the stored record."""

    @abstractmethod
    async def delete(self, record_id: int) -> None:
        """Remove the record."""

    async def exists(self, record_id: int) -> bool:
        return await self.get(record_id) is not None

    async def find_by(self, field: str, value: Any) -> List[Record]:
        """Return records whose ``field`` equals ``value``."""
        return [record for record in await self.list() if record.get(field) == value]
