"""
Console Service package for the Partner Console.

The console serves six resource families (partners, clients, licenses,
devices, updates, users) under one API prefix, either from an in-memory
store or by relaying to a remote upstream API.

Structure:
- app.main: FastAPI app, service wiring, health routes.
- app.domain: Entity schemas and the resource catalog.
- app.persistence: Store interface and in-memory implementation.
- app.resources: Generic CRUD handlers and integrity checks.
- app.gateway: CORS middleware, upstream forwarder, proxy route.
"""
