from pydantic import BaseModel, ConfigDict
from typing import Optional, Any
from uuid import UUID
from datetime import datetime, date

class SalesRecordSchema(BaseModel):
    """
    Schema for a persisted, normalized sales row.
    """
    model_config = ConfigDict(from_attributes=True)

    id: Optional[UUID]
    account_id: UUID
    upload_id: Optional[UUID]
    region_id: Optional[UUID]
    location_id: Optional[UUID]
    machine_id: Optional[UUID]
    period_start: date
    period_end: date
    product_type: Optional[str]
    payment_method: Optional[str]
    payment_category: str
    tran_count: int
    vend_count: int
    amount: float
    two_tier_pricing: float
    loyalty_discount: float
    campaign_name: Optional[str]
    purchase_discount: float
    free_product_discount: float
    fingerprint: str
    raw_data: Optional[Any]
    created_at: Optional[datetime]
