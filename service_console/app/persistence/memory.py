"""
In-memory persistence layer for Console resources.
"""

import copy
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Optional

from shared.logging import get_logger
from shared.errors import NotFoundError
from .base import Record, ResourceStore

SAMPLE_PARTNERS: List[Record] = [
    {
        "name": "Acme Corporation",
        "inn": "7701234567",
        "kpp": "770101001",
        "email": "contact@acmecorp.com",
        "phone": "+1 (555) 123-4567",
        "address": "123 Business Ave, New York, NY 10001",
        "type": "provider",
        "status": "active",
    },
    {
        "name": "Global Logistics",
        "inn": "7809876543",
        "email": "info@globallogistics.com",
        "phone": "+1 (555) 987-6543",
        "address": "456 Shipping Lane, Chicago, IL 60611",
        "type": "distributor",
        "status": "inactive",
    },
    {
        "name": "Tech Retailers Inc.",
        "inn": "5401122334",
        "email": "partners@techretailers.com",
        "phone": "+1 (555) 456-7890",
        "address": "789 Tech Boulevard, San Francisco, CA 94105",
        "type": "reseller",
        "status": "suspended",
    },
]


class InMemoryResourceStore(ResourceStore):
    """Dict-backed store with a monotonically increasing id counter.

    No method awaits between reading and writing the dict, so requests
    running on the same event loop cannot interleave inside a mutation.
    """

    def __init__(self, name: str, timestamp_field: Optional[str] = None):
        self.name = name
        self.timestamp_field = timestamp_field
        self.logger = get_logger(f"console.persistence.{name}")
        self._records: Dict[int, Record] = {}
        self._next_id = 1

    async def list(self) -> List[Record]:
        return [copy.deepcopy(record) for record in self._records.values()]

    async def get(self, record_id: int) -> Optional[Record]:
        record = self._records.get(record_id)
        return copy.deepcopy(record) if record is not None else None

    async def create(self, data: Record) -> Record:
        record_id = self._next_id
        self._next_id += 1

        record = dict(data)
        record["id"] = record_id
        if self.timestamp_field:
            record[self.timestamp_field] = datetime.now(timezone.utc)

        self._records[record_id] = record
        self.logger.debug("Record created", record_id=record_id)
        return copy.deepcopy(record)

    async def update(self, record_id: int, partial: Record) -> Record:
        existing = self._records.get(record_id)
        if existing is None:
            raise NotFoundError(f"{self.name.capitalize()} with id {record_id} not found")

        # id and the server timestamp are owned by the store
        changes = {
            key: value for key, value in partial.items()
            if key not in ("id", self.timestamp_field)
        }
        updated = {**existing, **changes}
        self._records[record_id] = updated
        self.logger.debug("Record updated", record_id=record_id, fields=sorted(changes))
        return copy.deepcopy(updated)

    async def delete(self, record_id: int) -> None:
        if record_id not in self._records:
            raise NotFoundError(f"{self.name.capitalize()} with id {record_id} not found")

        del self._records[record_id]
        self.logger.debug("Record deleted", record_id=record_id)

    def __len__(self) -> int:
        return len(self._records)


class ConsoleDatabase:
    """Owns one store per resource collection."""

    def __init__(self, stores: Dict[str, ResourceStore]):
        self._stores = stores
        self.logger = get_logger("console.persistence.database")

    @classmethod
    def in_memory(cls, resources: Iterable[Any]) -> "ConsoleDatabase":
        """Build a database of empty in-memory stores for ``resources``."""
        return cls({
            resource.collection: InMemoryResourceStore(resource.collection, resource.timestamp_field)
            for resource in resources
        })

    def store(self, collection: str) -> ResourceStore:
        try:
            return self._stores[collection]
        except KeyError:
            raise KeyError(f"Unknown collection: {collection}") from None

    @property
    def collections(self) -> List[str]:
        return list(self._stores)

    async def seed_sample_data(self) -> int:
        """Insert the sample partners shown on a fresh console."""
        partners = self.store("partners")
        for partner in SAMPLE_PARTNERS:
            await partners.create(partner)

        self.logger.info("Sample data seeded", partners=len(SAMPLE_PARTNERS))
        return len(SAMPLE_PARTNERS)
