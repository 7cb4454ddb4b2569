"""
Per-location and per-machine views for the fleet pages.
"""

from collections import defaultdict
from typing import Dict, Iterable, List, Mapping
from uuid import UUID

from vend_analytics.core.constants import normalize_product_type
from vend_analytics.services.analytics import payment_breakdown, product_type_breakdown, sales_frame
from vend_analytics.schemas.analytics import ProductTypeBreakdown
from vend_analytics.schemas.fleet import (
    LocationDetail,
    LocationSchema,
    LocationSummary,
    MachineDetail,
    MachineSchema,
    MachineSummary,
    RegionGroup,
)


def _totals(sales: Iterable, key: str) -> Dict[UUID, Dict[str, float]]:
    """Revenue and vends per non-null `key` id."""
    df = sales_frame(sales)
    assigned = df[df[key].notna()]
    if assigned.empty:
        return {}
    grouped = assigned.groupby(key, sort=False).agg(revenue=("amount", "sum"), vends=("vend_count", "sum"))
    return {
        entity_id: {"revenue": float(r.revenue), "vends": int(r.vends)}
        for entity_id, r in zip(grouped.index, grouped.itertuples(index=False))
    }


def product_breakdown(sales: Iterable) -> List[ProductTypeBreakdown]:
    """Like the dashboard product breakdown, with display names normalized."""
    df = sales_frame(sales)
    if df.empty:
        return []
    df = df.assign(product_type=[normalize_product_type(pt) for pt in df["product_type"]])
    return product_type_breakdown(df)


def location_groups(
    regions: Iterable,
    locations: Iterable,
    machines: Iterable,
    sales: Iterable,
) -> List[RegionGroup]:
    """
    Locations grouped by region, each group and each location ordered by
    revenue. Locations without a region land in an "Unassigned" group.
    """
    sales = list(sales)
    totals = _totals(sales, "location_id")
    machine_counts: Dict[UUID, int] = defaultdict(int)
    for m in machines:
        if m.location_id is not None:
            machine_counts[m.location_id] += 1
    region_names = {r.id: r.name for r in regions}

    grouped: Dict[UUID, List[LocationSummary]] = defaultdict(list)
    for loc in locations:
        stats = totals.get(loc.id, {"revenue": 0.0, "vends": 0})
        grouped[loc.region_id].append(LocationSummary(
            id=loc.id,
            name=loc.name,
            location_type=loc.location_type,
            city=loc.city,
            state=loc.state,
            revenue=stats["revenue"],
            vends=int(stats["vends"]),
            machine_count=machine_counts[loc.id],
        ))

    groups = []
    for region_id, summaries in grouped.items():
        summaries.sort(key=lambda s: s.revenue, reverse=True)
        groups.append(RegionGroup(
            region_id=region_id,
            region=region_names.get(region_id, "Unassigned") if region_id else "Unassigned",
            revenue=sum(s.revenue for s in summaries),
            locations=summaries,
        ))
    groups.sort(key=lambda g: g.revenue, reverse=True)
    return groups


def machine_summaries(machines: Iterable, locations: Mapping[UUID, object], sales: Iterable) -> List[MachineSummary]:
    totals = _totals(sales, "machine_id")
    out = []
    for m in machines:
        stats = totals.get(m.id, {"revenue": 0.0, "vends": 0})
        location = locations.get(m.location_id) if m.location_id else None
        out.append(MachineSummary(
            id=m.id,
            serial_number=m.serial_number,
            make=m.make,
            model=m.model,
            product_type=m.product_type,
            location=getattr(location, "name", None) or "Unassigned",
            revenue=stats["revenue"],
            vends=int(stats["vends"]),
        ))
    out.sort(key=lambda s: s.revenue, reverse=True)
    return out


def location_detail(location, region, machines: Iterable, sales: Iterable) -> LocationDetail:
    sales = list(sales)
    df = sales_frame(sales)
    return LocationDetail(
        location=LocationSchema.model_validate(location),
        region=getattr(region, "name", None),
        revenue=float(df["amount"].sum()) if not df.empty else 0.0,
        vends=int(df["vend_count"].sum()) if not df.empty else 0,
        machines=[MachineSchema.model_validate(m) for m in machines],
        payment_breakdown=payment_breakdown(df),
        product_types=product_breakdown(sales),
    )


def machine_detail(machine, location, sales: Iterable) -> MachineDetail:
    sales = list(sales)
    df = sales_frame(sales)
    return MachineDetail(
        machine=MachineSchema.model_validate(machine),
        location=getattr(location, "name", None),
        revenue=float(df["amount"].sum()) if not df.empty else 0.0,
        vends=int(df["vend_count"].sum()) if not df.empty else 0,
        payment_breakdown=payment_breakdown(df),
        product_types=product_breakdown(sales),
    )
