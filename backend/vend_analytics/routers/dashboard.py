import asyncio
import logging
from datetime import date
from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, Response

from vend_analytics.schemas.analytics import AnalyticsData
from vend_analytics.services.analytics import compute_analytics, index_by_id
from vend_analytics.services.export import export_filename, export_sales_csv
from vend_analytics.services.store import SalesStore, get_store

logger = logging.getLogger(__name__)

router = APIRouter()


def _check_period(period_start: Optional[date], period_end: Optional[date]) -> None:
    if period_start and period_end and period_start > period_end:
        raise HTTPException(status_code=400, detail="period_start must not be after period_end")


@router.get("/dashboard/analytics", response_model=AnalyticsData)
async def get_analytics(
    account_id: UUID = Query(..., description="Account UUID"),
    period_start: Optional[date] = Query(None),
    period_end: Optional[date] = Query(None),
    store: SalesStore = Depends(get_store),
):
    """KPIs, breakdowns, top lists and insights for an account's sales in a period."""
    _check_period(period_start, period_end)
    try:
        sales, regions, locations, machines = await asyncio.gather(
            store.list_sales(account_id, period_start, period_end),
            store.list_regions(account_id),
            store.list_locations(account_id),
            store.list_machines(account_id),
        )
        return compute_analytics(sales, index_by_id(regions), index_by_id(locations), index_by_id(machines))
    except Exception as e:
        logger.error(f"Error computing analytics for account {account_id}: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail=f"Error computing analytics: {str(e)}")


@router.get("/dashboard/export")
async def export_sales(
    account_id: UUID = Query(..., description="Account UUID"),
    period_start: Optional[date] = Query(None),
    period_end: Optional[date] = Query(None),
    store: SalesStore = Depends(get_store),
):
    """Download the account's sales rows for the period as CSV."""
    _check_period(period_start, period_end)
    sales = await store.list_sales(account_id, period_start, period_end)
    return Response(
        content=export_sales_csv(sales),
        media_type="text/csv",
        headers={"Content-Disposition": f'attachment; filename="{export_filename()}"'},
    )
