from pydantic import BaseModel
from typing import List
from uuid import UUID


class KPIData(BaseModel):
    total_revenue: float
    total_vends: int
    avg_revenue_per_vend: float
    active_machines: int
    active_locations: int
    digital_payment_percent: float


class RegionRevenue(BaseModel):
    region: str
    revenue: float
    vends: int


class ProductTypeBreakdown(BaseModel):
    product_type: str
    revenue: float
    vends: int


class PaymentBreakdown(BaseModel):
    payment_category: str
    revenue: float
    tran_count: int


class TopLocation(BaseModel):
    id: UUID
    name: str
    region: str
    location_type: str
    revenue: float
    vends: int
    avg_per_vend: float
    machine_count: int


class TopMachine(BaseModel):
    id: UUID
    serial_number: str
    make: str
    model: str
    location: str
    revenue: float
    vends: int


class DiscountSummary(BaseModel):
    two_tier_pricing: float
    loyalty_discount: float
    purchase_discount: float
    free_product_discount: float
    total_discounts: float


class LocationTypeAvg(BaseModel):
    location_type: str
    avg_revenue: float
    location_count: int


class AnalyticsData(BaseModel):
    """
    Everything the dashboard renders, computed in one pass over the sales rows.
    """
    kpi: KPIData
    revenue_by_region: List[RegionRevenue]
    product_types: List[ProductTypeBreakdown]
    payment_breakdown: List[PaymentBreakdown]
    top_locations: List[TopLocation]
    top_machines: List[TopMachine]
    discounts: DiscountSummary
    location_type_comparison: List[LocationTypeAvg]
    insights: List[str]
