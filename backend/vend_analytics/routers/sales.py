from fastapi import APIRouter, Depends, Query
from datetime import date
from typing import List, Optional
from uuid import UUID

from vend_analytics.schemas.sales import SalesRecordSchema
from vend_analytics.services.store import SalesStore, get_store

router = APIRouter()

@router.get("/sales", response_model=List[SalesRecordSchema])
async def list_sales(
    account_id: UUID = Query(..., description="Account UUID"),
    period_start: Optional[date] = Query(None),
    period_end: Optional[date] = Query(None),
    location_id: Optional[UUID] = Query(None),
    machine_id: Optional[UUID] = Query(None),
    limit: int = Query(500, ge=1, le=5000),
    store: SalesStore = Depends(get_store),
):
    """Stored sales rows for an account, newest period first."""
    return await store.list_sales(
        account_id,
        period_start,
        period_end,
        location_id=location_id,
        machine_id=machine_id,
        limit=limit,
    )
