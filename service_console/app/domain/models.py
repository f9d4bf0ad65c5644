"""
Canonical entity schemas for the Partner Console API.

Each resource has three shapes:

- ``<Entity>Create``: POST body. Unknown keys (including server-assigned
  ones such as ``id`` or ``createdAt``) are dropped.
- ``<Entity>Update``: PUT/PATCH body. Every field optional, same
  constraints as on create.
- ``<Entity>Response``: what the API returns. Server-assigned timestamps
  are serialized in camelCase.
"""

from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

EMAIL_PATTERN = r"^[^@\s]+@[^@\s]+\.[^@\s]+$"


class RequestModel(BaseModel):
    """Base for request bodies."""
    model_config = ConfigDict(extra="ignore", str_strip_whitespace=True)


class ResponseModel(BaseModel):
    """Base for response bodies."""
    model_config = ConfigDict(extra="ignore", populate_by_name=True)


# Partners

class PartnerType(str, Enum):
    """Partner types."""
    PROVIDER = "provider"
    DISTRIBUTOR = "distributor"
    RESELLER = "reseller"


class PartnerStatus(str, Enum):
    """Partner statuses."""
    ACTIVE = "active"
    INACTIVE = "inactive"
    SUSPENDED = "suspended"


class PartnerCreate(RequestModel):
    """Request model for creating a partner."""
    name: str = Field(..., min_length=2, description="Partner name")
    inn: str = Field(..., min_length=10, description="Taxpayer identification number")
    kpp: Optional[str] = Field(None, min_length=9, description="Tax registration reason code")
    ogrn: Optional[str] = Field(None, min_length=13, description="Primary state registration number")
    address: Optional[str] = Field(None, description="Legal address")
    email: str = Field(..., pattern=EMAIL_PATTERN, description="Contact email")
    phone: Optional[str] = Field(None, min_length=6, description="Contact phone")
    api_token: Optional[str] = Field(None, description="Upstream API token")
    type: PartnerType = Field(..., description="Partner type")
    status: PartnerStatus = Field(PartnerStatus.ACTIVE, description="Partner status")


class PartnerUpdate(RequestModel):
    """Request model for updating a partner."""
    name: Optional[str] = Field(None, min_length=2)
    inn: Optional[str] = Field(None, min_length=10)
    kpp: Optional[str] = Field(None, min_length=9)
    ogrn: Optional[str] = Field(None, min_length=13)
    address: Optional[str] = None
    email: Optional[str] = Field(None, pattern=EMAIL_PATTERN)
    phone: Optional[str] = Field(None, min_length=6)
    api_token: Optional[str] = None
    type: Optional[PartnerType] = None
    status: Optional[PartnerStatus] = None


class PartnerResponse(ResponseModel):
    """Response model for partners."""
    id: int
    name: str
    inn: str
    kpp: Optional[str] = None
    ogrn: Optional[str] = None
    address: Optional[str] = None
    email: str
    phone: Optional[str] = None
    api_token: Optional[str] = None
    type: PartnerType
    status: PartnerStatus


# Clients

class ClientType(str, Enum):
    """Client types."""
    COMPANY = "COMPANY"
    REGISTRY = "REGISTRY"


class ClientCreate(RequestModel):
    """Request model for creating a client."""
    partner_id: int = Field(..., ge=1, description="Owning partner")
    name: str = Field(..., min_length=2, description="Client name")
    inn: str = Field(..., min_length=10, description="Taxpayer identification number")
    type: ClientType = Field(..., description="Client type")


class ClientUpdate(RequestModel):
    """Request model for updating a client."""
    partner_id: Optional[int] = Field(None, ge=1)
    name: Optional[str] = Field(None, min_length=2)
    inn: Optional[str] = Field(None, min_length=10)
    type: Optional[ClientType] = None


class ClientResponse(ResponseModel):
    """Response model for clients."""
    id: int
    partner_id: int
    name: str
    inn: str
    type: ClientType
    created_at: datetime = Field(..., alias="createdAt")


# Licenses

class LicenseStatus(str, Enum):
    """License statuses."""
    AVAIL = "AVAIL"
    USED = "USED"
    BLOCKED = "BLOCKED"


class LicenseCreate(RequestModel):
    """Request model for creating a license."""
    client_id: int = Field(..., ge=1, description="Owning client")
    license_key: str = Field(..., min_length=6, description="License key")
    status: LicenseStatus = Field(LicenseStatus.AVAIL, description="License status")


class LicenseUpdate(RequestModel):
    """Request model for updating a license."""
    client_id: Optional[int] = Field(None, ge=1)
    license_key: Optional[str] = Field(None, min_length=6)
    status: Optional[LicenseStatus] = None


class LicenseResponse(ResponseModel):
    """Response model for licenses."""
    id: int
    client_id: int
    license_key: str
    status: LicenseStatus
    issued_date: datetime = Field(..., alias="issuedDate")


# Devices

class DeviceStatus(str, Enum):
    """Device provisioning statuses."""
    NOT_CONFIGURED = "not_configured"
    INITIALIZATION = "initialization"
    READY = "ready"
    SYNC_ERROR = "sync_error"


class DeviceCreate(RequestModel):
    """Request model for registering a device."""
    client_id: int = Field(..., ge=1, description="Owning client")
    license_id: Optional[int] = Field(None, ge=1, description="Bound license")
    inst_id: str = Field(..., min_length=1, description="Installation identifier")
    os_version: Optional[str] = None
    lm_version: Optional[str] = None
    local_id: Optional[str] = None
    status: DeviceStatus = Field(DeviceStatus.NOT_CONFIGURED, description="Device status")


class DeviceUpdate(RequestModel):
    """Request model for updating a device."""
    client_id: Optional[int] = Field(None, ge=1)
    license_id: Optional[int] = Field(None, ge=1)
    inst_id: Optional[str] = Field(None, min_length=1)
    os_version: Optional[str] = None
    lm_version: Optional[str] = None
    local_id: Optional[str] = None
    status: Optional[DeviceStatus] = None


class DeviceResponse(ResponseModel):
    """Response model for devices."""
    id: int
    client_id: int
    license_id: Optional[int] = None
    inst_id: str
    os_version: Optional[str] = None
    lm_version: Optional[str] = None
    local_id: Optional[str] = None
    status: DeviceStatus
    registered_date: datetime = Field(..., alias="registeredDate")


# Updates

class UpdateCreate(RequestModel):
    """Request model for publishing a software update."""
    version: str = Field(..., min_length=1)
    title: str = Field(..., min_length=1)
    description: Optional[str] = None
    release_notes: Optional[str] = None
    size: Optional[int] = Field(None, ge=0, description="Package size in bytes")
    download_url: Optional[str] = None
    is_required: bool = False


class UpdateUpdate(RequestModel):
    """Request model for editing a software update."""
    version: Optional[str] = Field(None, min_length=1)
    title: Optional[str] = Field(None, min_length=1)
    description: Optional[str] = None
    release_notes: Optional[str] = None
    size: Optional[int] = Field(None, ge=0)
    download_url: Optional[str] = None
    is_required: Optional[bool] = None


class UpdateResponse(ResponseModel):
    """Response model for software updates."""
    id: int
    version: str
    title: str
    description: Optional[str] = None
    release_notes: Optional[str] = None
    size: Optional[int] = None
    download_url: Optional[str] = None
    is_required: bool
    release_date: datetime = Field(..., alias="releaseDate")


# Users

class UserStatus(str, Enum):
    """User account statuses."""
    ACTIVE = "ACTIVE"
    CREATED = "CREATED"
    CONFIRMED = "CONFIRMED"


class UserRole(str, Enum):
    """User roles."""
    ADMIN = "admin"
    USER = "user"


class UserCreate(RequestModel):
    """Request model for creating a user."""
    email: str = Field(..., pattern=EMAIL_PATTERN)
    password: str = Field(..., min_length=6)
    status: UserStatus = UserStatus.CREATED
    role: UserRole = UserRole.USER
    partner_id: Optional[int] = Field(None, ge=1)
    client_id: Optional[int] = Field(None, ge=1)
    last_logon_time: Optional[datetime] = None


class UserUpdate(RequestModel):
    """Request model for updating a user."""
    email: Optional[str] = Field(None, pattern=EMAIL_PATTERN)
    password: Optional[str] = Field(None, min_length=6)
    status: Optional[UserStatus] = None
    role: Optional[UserRole] = None
    partner_id: Optional[int] = Field(None, ge=1)
    client_id: Optional[int] = Field(None, ge=1)
    last_logon_time: Optional[datetime] = None


class UserResponse(ResponseModel):
    """Response model for users. Never carries the password."""
    id: int
    email: str
    status: UserStatus
    role: UserRole
    partner_id: Optional[int] = None
    client_id: Optional[int] = None
    last_logon_time: Optional[datetime] = None
