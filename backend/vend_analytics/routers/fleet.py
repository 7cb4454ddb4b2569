"""
Fleet Router - Locations and machines with their revenue for a period.
"""

import asyncio
from datetime import date
from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query

from vend_analytics.schemas.fleet import LocationDetail, MachineDetail, MachineSummary, RegionGroup
from vend_analytics.services import fleet
from vend_analytics.services.analytics import index_by_id
from vend_analytics.services.store import SalesStore, get_store

router = APIRouter()


@router.get("/locations", response_model=List[RegionGroup])
async def list_locations(
    account_id: UUID = Query(..., description="Account UUID"),
    period_start: Optional[date] = Query(None),
    period_end: Optional[date] = Query(None),
    store: SalesStore = Depends(get_store),
):
    regions, locations, machines, sales = await asyncio.gather(
        store.list_regions(account_id),
        store.list_locations(account_id),
        store.list_machines(account_id),
        store.list_sales(account_id, period_start, period_end),
    )
    return fleet.location_groups(regions, locations, machines, sales)


@router.get("/locations/{location_id}", response_model=LocationDetail)
async def get_location(
    location_id: UUID,
    account_id: UUID = Query(..., description="Account UUID"),
    period_start: Optional[date] = Query(None),
    period_end: Optional[date] = Query(None),
    store: SalesStore = Depends(get_store),
):
    location = await store.get_location(account_id, location_id)
    if location is None:
        raise HTTPException(status_code=404, detail=f"Location {location_id} not found")

    regions, machines, sales = await asyncio.gather(
        store.list_regions(account_id),
        store.list_machines(account_id),
        store.list_sales(account_id, period_start, period_end, location_id=location_id),
    )
    region = index_by_id(regions).get(location.region_id)
    here = [m for m in machines if m.location_id == location_id]
    return fleet.location_detail(location, region, here, sales)


@router.get("/machines", response_model=List[MachineSummary])
async def list_machines(
    account_id: UUID = Query(..., description="Account UUID"),
    period_start: Optional[date] = Query(None),
    period_end: Optional[date] = Query(None),
    store: SalesStore = Depends(get_store),
):
    machines, locations, sales = await asyncio.gather(
        store.list_machines(account_id),
        store.list_locations(account_id),
        store.list_sales(account_id, period_start, period_end),
    )
    return fleet.machine_summaries(machines, index_by_id(locations), sales)


@router.get("/machines/{machine_id}", response_model=MachineDetail)
async def get_machine(
    machine_id: UUID,
    account_id: UUID = Query(..., description="Account UUID"),
    period_start: Optional[date] = Query(None),
    period_end: Optional[date] = Query(None),
    store: SalesStore = Depends(get_store),
):
    machine = await store.get_machine(account_id, machine_id)
    if machine is None:
        raise HTTPException(status_code=404, detail=f"Machine {machine_id} not found")

    location = None
    if machine.location_id is not None:
        location = await store.get_location(account_id, machine.location_id)
    sales = await store.list_sales(account_id, period_start, period_end, machine_id=machine_id)
    return fleet.machine_detail(machine, location, sales)
