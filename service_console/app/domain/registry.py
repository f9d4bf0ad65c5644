"""
Resource catalog: one descriptor per entity family served under the API prefix.
"""

from dataclasses import dataclass, field
from typing import Dict, Optional, Tuple, Type

from pydantic import BaseModel

from .models import (
    PartnerCreate, PartnerUpdate, PartnerResponse,
    ClientCreate, ClientUpdate, ClientResponse,
    LicenseCreate, LicenseUpdate, LicenseResponse,
    DeviceCreate, DeviceUpdate, DeviceResponse,
    UpdateCreate, UpdateUpdate, UpdateResponse,
    UserCreate, UserUpdate, UserResponse,
)


@dataclass(frozen=True)
class ResourceDescriptor:
    """Describes how one resource is validated, stored and rendered."""
    name: str
    collection: str
    create_model: Type[BaseModel]
    update_model: Type[BaseModel]
    response_model: Type[BaseModel]
    timestamp_field: Optional[str] = None
    # field -> collection of the referenced parent
    references: Dict[str, str] = field(default_factory=dict)
    unique_fields: Tuple[str, ...] = ()

    @property
    def title(self) -> str:
        return self.name.capitalize()


PARTNERS = ResourceDescriptor(
    name="partner",
    collection="partners",
    create_model=PartnerCreate,
    update_model=PartnerUpdate,
    response_model=PartnerResponse,
)

CLIENTS = ResourceDescriptor(
    name="client",
    collection="clients",
    create_model=ClientCreate,
    update_model=ClientUpdate,
    response_model=ClientResponse,
    timestamp_field="created_at",
    references={"partner_id": "partners"},
)

LICENSES = ResourceDescriptor(
    name="license",
    collection="licenses",
    create_model=LicenseCreate,
    update_model=LicenseUpdate,
    response_model=LicenseResponse,
    timestamp_field="issued_date",
    references={"client_id": "clients"},
    unique_fields=("license_key",),
)

DEVICES = ResourceDescriptor(
    name="device",
    collection="devices",
    create_model=DeviceCreate,
    update_model=DeviceUpdate,
    response_model=DeviceResponse,
    timestamp_field="registered_date",
    references={"client_id": "clients", "license_id": "licenses"},
    unique_fields=("inst_id",),
)

UPDATES = ResourceDescriptor(
    name="update",
    collection="updates",
    create_model=UpdateCreate,
    update_model=UpdateUpdate,
    response_model=UpdateResponse,
    timestamp_field="release_date",
)

USERS = ResourceDescriptor(
    name="user",
    collection="users",
    create_model=UserCreate,
    update_model=UserUpdate,
    response_model=UserResponse,
    references={"partner_id": "partners", "client_id": "clients"},
    unique_fields=("email",),
)

RESOURCES: Tuple[ResourceDescriptor, ...] = (PARTNERS, CLIENTS, LICENSES, DEVICES, UPDATES, USERS)
