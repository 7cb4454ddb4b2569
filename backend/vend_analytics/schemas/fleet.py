from pydantic import BaseModel, ConfigDict
from typing import List, Optional
from uuid import UUID

from vend_analytics.schemas.analytics import PaymentBreakdown, ProductTypeBreakdown


class RegionSchema(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    name: str
    normalized_name: str


class LocationSchema(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    region_id: Optional[UUID]
    name: str
    normalized_name: str
    location_type: Optional[str]
    city: Optional[str]
    state: Optional[str]


class MachineSchema(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    location_id: Optional[UUID]
    serial_number: str
    asset_number: Optional[str]
    make: Optional[str]
    model: Optional[str]
    product_type: Optional[str]


class LocationSummary(BaseModel):
    id: UUID
    name: str
    location_type: Optional[str]
    city: Optional[str]
    state: Optional[str]
    revenue: float
    vends: int
    machine_count: int


class RegionGroup(BaseModel):
    """Locations under one region; region_id is None for the unassigned group."""
    region_id: Optional[UUID]
    region: str
    revenue: float
    locations: List[LocationSummary]


class MachineSummary(BaseModel):
    id: UUID
    serial_number: str
    make: Optional[str]
    model: Optional[str]
    product_type: Optional[str]
    location: str
    revenue: float
    vends: int


class LocationDetail(BaseModel):
    location: LocationSchema
    region: Optional[str]
    revenue: float
    vends: int
    machines: List[MachineSchema]
    payment_breakdown: List[PaymentBreakdown]
    product_types: List[ProductTypeBreakdown]


class MachineDetail(BaseModel):
    machine: MachineSchema
    location: Optional[str]
    revenue: float
    vends: int
    payment_breakdown: List[PaymentBreakdown]
    product_types: List[ProductTypeBreakdown]
