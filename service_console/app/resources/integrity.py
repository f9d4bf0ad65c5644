"""
Write-time reference and uniqueness checks.
"""

from typing import Any, Dict, List, Optional

from shared.errors import ValidationError
from shared.logging import get_logger
from ..domain.registry import ResourceDescriptor
from ..persistence import ConsoleDatabase


class IntegrityChecker:
    """Validates foreign keys and unique fields when strict mode is on.

    In soft mode (the default) references are stored as given and nothing
    is checked. Deletes never cascade in either mode.
    """

    def __init__(self, database: ConsoleDatabase, strict: bool = False):
        self.database = database
        self.strict = strict
        self.logger = get_logger("console.integrity")

    async def check(self, resource: ResourceDescriptor, data: Dict[str, Any], record_id: Optional[int] = None) -> None:
        """Raise ValidationError if ``data`` breaks a reference or unique constraint."""
        if not self.strict:
            return

        errors: List[Dict[str, Any]] = []

        for field, collection in resource.references.items():
            value = data.get(field)
            if value is None:
                continue
            if not await self.database.store(collection).exists(value):
                errors.append({
                    "field": field,
                    "message": f"Referenced {collection} record {value} does not exist",
                    "type": "reference_not_found",
                })

        store = self.database.store(resource.collection)
        for field in resource.unique_fields:
            value = data.get(field)
            if value is None:
                continue
            clashes = [record for record in await store.find_by(field, value) if record["id"] != record_id]
            if clashes:
                errors.append({
                    "field": field,
                    "message": f"{field} must be unique",
                    "type": "unique_violation",
                })

        if errors:
            self.logger.info("Integrity check failed", resource=resource.name, fields=[e["field"] for e in errors])
            raise ValidationError(f"Invalid {resource.name} data", errors)
