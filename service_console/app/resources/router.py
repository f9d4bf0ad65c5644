"""
Generic CRUD router for Console resources.

Every resource gets the same five operations:

    GET    /{collection}/        list (always 200, possibly empty)
    GET    /{collection}/{id}    fetch one
    POST   /{collection}/        create (201)
    PUT    /{collection}/{id}    shallow-merge update (PATCH is an alias)
    DELETE /{collection}/{id}    delete (204, empty body)
"""

import json
import re
from typing import Any, Dict, List, Optional, Type

from fastapi import APIRouter, Depends, Request, Response
from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from shared.errors import InvalidInputError, NotFoundError, ValidationError
from shared.logging import get_logger
from shared.metrics import MetricsCollector
from ..domain.registry import ResourceDescriptor
from ..persistence import ConsoleDatabase, Record, ResourceStore
from .integrity import IntegrityChecker

ID_PATTERN = re.compile(r"[0-9]+")


def get_database(request: Request) -> ConsoleDatabase:
    """Dependency returning the service's database."""
    return request.app.state.database


def get_integrity(request: Request) -> IntegrityChecker:
    """Dependency returning the service's integrity checker."""
    return request.app.state.integrity


def parse_record_id(raw: str) -> int:
    """Coerce a path identifier to an int or raise InvalidInputError.

    Only plain ASCII digits are accepted; signs, whitespace and digit
    separators are rejected. Zero parses and falls through to a 404.
    """
    if raw is None or not ID_PATTERN.fullmatch(raw):
        raise InvalidInputError("Invalid ID format", details={"id": raw})
    return int(raw)


def format_validation_errors(exc: PydanticValidationError) -> List[Dict[str, Any]]:
    """Flatten pydantic errors to ``{field, message, type}`` items."""
    return [
        {
            "field": ".".join(str(part) for part in error["loc"]) or "body",
            "message": error["msg"],
            "type": error["type"],
        }
        for error in exc.errors()
    ]


class ResourceHandlers:
    """Request handlers for one resource family."""

    def __init__(self, resource: ResourceDescriptor, metrics: Optional[MetricsCollector] = None):
        self.resource = resource
        self.metrics = metrics
        self.logger = get_logger(f"console.resources.{resource.collection}")

    def _store(self, database: ConsoleDatabase) -> ResourceStore:
        return database.store(self.resource.collection)

    def _record_operation(self, operation: str) -> None:
        if self.metrics:
            self.metrics.increment_counter(
                "store_operations_total",
                resource=self.resource.collection,
                operation=operation
            )

    def _render(self, record: Record) -> Dict[str, Any]:
        model = self.resource.response_model.model_validate(record)
        return model.model_dump(mode="json", by_alias=True)

    def _not_found(self, record_id: int) -> NotFoundError:
        return NotFoundError(f"{self.resource.title} not found", details={"id": record_id})

    async def _validate_body(self, request: Request, model: Type[BaseModel]) -> BaseModel:
        invalid = f"Invalid {self.resource.name} data"
        raw = await request.body()
        try:
            payload = json.loads(raw) if raw else None
        except ValueError as exc:
            raise ValidationError(invalid, [{"field": "body", "message": f"Malformed JSON: {exc}", "type": "json_invalid"}])

        if not isinstance(payload, dict):
            raise ValidationError(invalid, [{"field": "body", "message": "Expected a JSON object", "type": "dict_type"}])

        try:
            return model.model_validate(payload)
        except PydanticValidationError as exc:
            raise ValidationError(invalid, format_validation_errors(exc))

    async def list_records(self, database: ConsoleDatabase = Depends(get_database)) -> List[Dict[str, Any]]:
        self._record_operation("list")
        records = await self._store(database).list()
        return [self._render(record) for record in records]

    async def get_record(self, record_id: str, database: ConsoleDatabase = Depends(get_database)) -> Dict[str, Any]:
        parsed_id = parse_record_id(record_id)
        self._record_operation("get")

        record = await self._store(database).get(parsed_id)
        if record is None:
            raise self._not_found(parsed_id)
        return self._render(record)

    async def create_record(
        self,
        request: Request,
        database: ConsoleDatabase = Depends(get_database),
        integrity: IntegrityChecker = Depends(get_integrity),
    ) -> Dict[str, Any]:
        body = await self._validate_body(request, self.resource.create_model)
        data = body.model_dump()
        await integrity.check(self.resource, data)

        self._record_operation("create")
        record = await self._store(database).create(data)
        self.logger.info("Record created", record_id=record["id"])
        return self._render(record)

    async def update_record(
        self,
        record_id: str,
        request: Request,
        database: ConsoleDatabase = Depends(get_database),
        integrity: IntegrityChecker = Depends(get_integrity),
    ) -> Dict[str, Any]:
        parsed_id = parse_record_id(record_id)
        store = self._store(database)

        if await store.get(parsed_id) is None:
            raise self._not_found(parsed_id)

        body = await self._validate_body(request, self.resource.update_model)
        # null means "leave unchanged"
        changes = body.model_dump(exclude_unset=True, exclude_none=True)
        await integrity.check(self.resource, changes, record_id=parsed_id)

        self._record_operation("update")
        record = await store.update(parsed_id, changes)
        self.logger.info("Record updated", record_id=parsed_id, fields=sorted(changes))
        return self._render(record)

    async def delete_record(self, record_id: str, database: ConsoleDatabase = Depends(get_database)) -> Response:
        parsed_id = parse_record_id(record_id)
        store = self._store(database)

        if await store.get(parsed_id) is None:
            raise self._not_found(parsed_id)

        self._record_operation("delete")
        await store.delete(parsed_id)
        self.logger.info("Record deleted", record_id=parsed_id)
        return Response(status_code=204)

    def register(self, router: APIRouter) -> None:
        """Attach the endpoints to ``router``."""
        base = f"/{self.resource.collection}"
        item = f"{base}/{{record_id}}"
        tags = [self.resource.collection]

        for path, in_schema in ((f"{base}/", True), (base, False)):
            router.add_api_route(
                path, self.list_records, methods=["GET"],
                name=f"list_{self.resource.collection}", tags=tags, include_in_schema=in_schema,
            )
            router.add_api_route(
                path, self.create_record, methods=["POST"], status_code=201,
                name=f"create_{self.resource.name}", tags=tags, include_in_schema=in_schema,
            )

        router.add_api_route(
            item, self.get_record, methods=["GET"],
            name=f"get_{self.resource.name}", tags=tags,
        )
        router.add_api_route(
            item, self.update_record, methods=["PUT", "PATCH"],
            name=f"update_{self.resource.name}", tags=tags,
        )
        router.add_api_route(
            item, self.delete_record, methods=["DELETE"], status_code=204,
            name=f"delete_{self.resource.name}", tags=tags, response_class=Response,
        )


def build_resource_router(resources, prefix: str = "/api/v1", metrics: Optional[MetricsCollector] = None) -> APIRouter:
    """Build one router serving every resource in ``resources``."""
    router = APIRouter(prefix=prefix)
    for resource in resources:
        ResourceHandlers(resource, metrics=metrics).register(router)
    return router
