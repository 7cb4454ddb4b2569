"""
Analytics Service - Dashboard aggregates over an account's sales rows.

Pure computation: callers load the sales rows (already period-filtered) and
the id -> entity lookups, this module only groups and sums. Inputs are never
mutated and nothing here does I/O.
"""

import pandas as pd
from typing import Dict, Iterable, List, Mapping, Optional
from uuid import UUID
import logging

from vend_analytics.core.config import settings
from vend_analytics.core.constants import DIGITAL_CATEGORIES
from vend_analytics.schemas.analytics import (
    AnalyticsData,
    DiscountSummary,
    KPIData,
    LocationTypeAvg,
    PaymentBreakdown,
    ProductTypeBreakdown,
    RegionRevenue,
    TopLocation,
    TopMachine,
)

logger = logging.getLogger(__name__)

ID_COLUMNS = ["region_id", "location_id", "machine_id"]
TEXT_COLUMNS = ["product_type", "payment_category"]
COUNT_COLUMNS = ["tran_count", "vend_count"]
MONEY_COLUMNS = [
    "amount",
    "two_tier_pricing",
    "loyalty_discount",
    "purchase_discount",
    "free_product_discount",
]
SALES_COLUMNS = ID_COLUMNS + TEXT_COLUMNS + COUNT_COLUMNS + MONEY_COLUMNS


def sales_frame(sales: Iterable) -> pd.DataFrame:
    """
    Build a DataFrame from sales rows (ORM objects or anything with the same
    attributes). Ids stay as objects with None for "unassigned"; counts and
    money become plain numbers with missing values as 0.
    """
    records = []
    for s in sales:
        record = {c: getattr(s, c, None) for c in ID_COLUMNS + TEXT_COLUMNS}
        for c in COUNT_COLUMNS:
            record[c] = int(getattr(s, c, 0) or 0)
        for c in MONEY_COLUMNS:
            record[c] = float(getattr(s, c, 0) or 0)
        records.append(record)

    df = pd.DataFrame(records, columns=SALES_COLUMNS)
    for c in ID_COLUMNS + TEXT_COLUMNS:
        df[c] = df[c].astype(object)
    return df


def _ratio(numerator: float, denominator: float) -> float:
    return float(numerator / denominator) if denominator else 0.0


def compute_kpis(df: pd.DataFrame) -> KPIData:
    total_revenue = float(df["amount"].sum()) if not df.empty else 0.0
    total_vends = int(df["vend_count"].sum()) if not df.empty else 0

    digital_mask = df["payment_category"].isin(DIGITAL_CATEGORIES)
    digital_revenue = float(df.loc[digital_mask, "amount"].sum()) if not df.empty else 0.0

    return KPIData(
        total_revenue=total_revenue,
        total_vends=total_vends,
        avg_revenue_per_vend=_ratio(total_revenue, total_vends),
        active_machines=int(df["machine_id"].dropna().nunique()),
        active_locations=int(df["location_id"].dropna().nunique()),
        digital_payment_percent=_ratio(digital_revenue, total_revenue) * 100 if total_revenue else 0.0,
    )


def _grouped_sum(df: pd.DataFrame, key: pd.Series, count_column: str) -> pd.DataFrame:
    grouped = (
        df.assign(key=key.values)
        .groupby("key", sort=False)
        .agg(revenue=("amount", "sum"), total=(count_column, "sum"))
        .reset_index()
    )
    return grouped.sort_values("revenue", ascending=False, kind="stable")


def revenue_by_region(df: pd.DataFrame, regions: Mapping[UUID, object]) -> List[RegionRevenue]:
    if df.empty:
        return []
    names = [_name(regions.get(rid), "Unknown") if rid is not None else "Unknown" for rid in df["region_id"]]
    grouped = _grouped_sum(df, pd.Series(names, dtype=object), "vend_count")
    return [
        RegionRevenue(region=str(r.key), revenue=float(r.revenue), vends=int(r.total))
        for r in grouped.itertuples(index=False)
    ]


def product_type_breakdown(df: pd.DataFrame) -> List[ProductTypeBreakdown]:
    if df.empty:
        return []
    types = [pt or "Other" for pt in df["product_type"]]
    grouped = _grouped_sum(df, pd.Series(types, dtype=object), "vend_count")
    return [
        ProductTypeBreakdown(product_type=str(r.key), revenue=float(r.revenue), vends=int(r.total))
        for r in grouped.itertuples(index=False)
    ]


def payment_breakdown(df: pd.DataFrame) -> List[PaymentBreakdown]:
    if df.empty:
        return []
    categories = [cat or "other" for cat in df["payment_category"]]
    grouped = _grouped_sum(df, pd.Series(categories, dtype=object), "tran_count")
    return [
        PaymentBreakdown(payment_category=str(r.key), revenue=float(r.revenue), tran_count=int(r.total))
        for r in grouped.itertuples(index=False)
    ]


def _name(entity: Optional[object], default: str = "") -> str:
    value = getattr(entity, "name", None) if entity is not None else None
    return value or default


def _per_entity(df: pd.DataFrame, id_column: str) -> pd.DataFrame:
    """Revenue, vends and distinct machines per non-null id, highest revenue first."""
    assigned = df[df[id_column].notna()]
    if assigned.empty:
        return pd.DataFrame(columns=["entity_id", "revenue", "vends", "machine_count"])
    grouped = (
        assigned.assign(machine_ref=assigned["machine_id"].values)
        .groupby(id_column, sort=False)
        .agg(
            revenue=("amount", "sum"),
            vends=("vend_count", "sum"),
            machine_count=("machine_ref", "nunique"),
        )
        .reset_index()
        .rename(columns={id_column: "entity_id"})
    )
    return grouped.sort_values("revenue", ascending=False, kind="stable")


def top_locations(
    df: pd.DataFrame,
    locations: Mapping[UUID, object],
    regions: Mapping[UUID, object],
    limit: Optional[int] = None,
) -> List[TopLocation]:
    limit = limit or settings.top_n
    out = []
    for r in _per_entity(df, "location_id").head(limit).itertuples(index=False):
        loc = locations.get(r.entity_id)
        region_id = getattr(loc, "region_id", None)
        out.append(TopLocation(
            id=r.entity_id,
            name=_name(loc, "Unknown"),
            region=_name(regions.get(region_id)) if region_id is not None else "",
            location_type=getattr(loc, "location_type", None) or "",
            revenue=float(r.revenue),
            vends=int(r.vends),
            avg_per_vend=_ratio(float(r.revenue), int(r.vends)),
            machine_count=int(r.machine_count),
        ))
    return out


def top_machines(
    df: pd.DataFrame,
    machines: Mapping[UUID, object],
    locations: Mapping[UUID, object],
    limit: Optional[int] = None,
) -> List[TopMachine]:
    limit = limit or settings.top_n
    out = []
    for r in _per_entity(df, "machine_id").head(limit).itertuples(index=False):
        machine = machines.get(r.entity_id)
        location_id = getattr(machine, "location_id", None)
        location = locations.get(location_id) if location_id is not None else None
        out.append(TopMachine(
            id=r.entity_id,
            serial_number=getattr(machine, "serial_number", None) or "Unknown",
            make=getattr(machine, "make", None) or "",
            model=getattr(machine, "model", None) or "",
            location=_name(location, "Unknown"),
            revenue=float(r.revenue),
            vends=int(r.vends),
        ))
    return out


def discount_summary(df: pd.DataFrame) -> DiscountSummary:
    totals = {c: float(df[c].sum()) if not df.empty else 0.0 for c in MONEY_COLUMNS[1:]}
    return DiscountSummary(**totals, total_discounts=sum(totals.values()))


def location_type_comparison(df: pd.DataFrame, locations: Mapping[UUID, object]) -> List[LocationTypeAvg]:
    assigned = df[df["location_id"].notna()]
    if assigned.empty:
        return []
    types = [
        getattr(locations.get(lid), "location_type", None) or "Not Assigned"
        for lid in assigned["location_id"]
    ]
    grouped = (
        assigned.assign(location_type=types)
        .groupby("location_type", sort=False)
        .agg(total_revenue=("amount", "sum"), location_count=("location_id", "nunique"))
        .reset_index()
    )
    grouped["avg_revenue"] = grouped["total_revenue"] / grouped["location_count"]
    grouped = grouped.sort_values("avg_revenue", ascending=False, kind="stable")
    return [
        LocationTypeAvg(
            location_type=str(r.location_type),
            avg_revenue=float(r.avg_revenue),
            location_count=int(r.location_count),
        )
        for r in grouped.itertuples(index=False)
    ]


def build_insights(
    kpi: KPIData,
    regions: List[RegionRevenue],
    payments: List[PaymentBreakdown],
    location_types: List[LocationTypeAvg],
    discounts: DiscountSummary,
    idle_machines: int,
) -> List[str]:
    """Human-readable callouts, each only when its metric says something."""
    insights = []

    if regions:
        insights.append(f"Top region: {regions[0].region} with ${regions[0].revenue:.0f} in revenue")

    if kpi.digital_payment_percent > 0:
        insights.append(f"{kpi.digital_payment_percent:.1f}% of revenue comes from digital payments")

    if idle_machines > 0:
        insights.append(f"{idle_machines} machine(s) with zero revenue in this period")

    if location_types:
        best = location_types[0]
        insights.append(f"Best location type: {best.location_type} (avg ${best.avg_revenue:.0f}/location)")

    if discounts.total_discounts > 0:
        insights.append(f"Total discounts/adjustments: ${discounts.total_discounts:.2f}")

    cash_revenue = next((p.revenue for p in payments if p.payment_category == "cash"), 0.0)
    if kpi.total_revenue > 0 and cash_revenue > 0:
        insights.append(f"Cash is {cash_revenue / kpi.total_revenue * 100:.1f}% of revenue")

    return insights


def compute_analytics(
    sales: Iterable,
    regions: Mapping[UUID, object],
    locations: Mapping[UUID, object],
    machines: Mapping[UUID, object],
    top_n: Optional[int] = None,
) -> AnalyticsData:
    """
    Compute every dashboard aggregate.

    Args:
        sales: sales rows for the account, already filtered to the period
        regions / locations / machines: id -> entity lookups for the account
        top_n: cap for the top-locations and top-machines lists

    Returns:
        AnalyticsData
    """
    df = sales_frame(sales)

    kpi = compute_kpis(df)
    by_region = revenue_by_region(df, regions)
    products = product_type_breakdown(df)
    payments = payment_breakdown(df)
    locs = top_locations(df, locations, regions, top_n)
    machs = top_machines(df, machines, locations, top_n)
    discounts = discount_summary(df)
    loc_types = location_type_comparison(df, locations)

    selling = set(df["machine_id"].dropna())
    idle_machines = sum(1 for machine_id in machines if machine_id not in selling)

    insights = build_insights(kpi, by_region, payments, loc_types, discounts, idle_machines)
    logger.debug(f"Computed analytics over {len(df)} sales rows")

    return AnalyticsData(
        kpi=kpi,
        revenue_by_region=by_region,
        product_types=products,
        payment_breakdown=payments,
        top_locations=locs,
        top_machines=machs,
        discounts=discounts,
        location_type_comparison=loc_types,
        insights=insights,
    )


def index_by_id(entities: Iterable) -> Dict[UUID, object]:
    return {e.id: e for e in entities}
