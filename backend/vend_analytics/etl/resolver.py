# backend/vend_analytics/etl/resolver.py
"""
Entity resolution for an import batch.

Regions, then locations, then machines: each pass collects the identities the
batch references that are not cached yet, bulk-creates exactly those, and adds
the new ids to the cache. A failed bulk create is recorded on the result and
the import carries on; rows that needed the missing entities later resolve to
no id.
"""

import logging
from dataclasses import dataclass, field
from typing import Awaitable, Callable, Dict, List, Optional, Set
from uuid import UUID

from vend_analytics.etl.csv_parser import ParsedSalesRow, normalize_name
from vend_analytics.schemas.upload import ImportResult, ImportStage

logger = logging.getLogger(__name__)

Reporter = Callable[[ImportStage, int, int, str], None]


@dataclass
class EntityCaches:
    """
    Identity -> id lookups for one import run. Each run owns its own instance.
    """
    regions: Dict[str, UUID] = field(default_factory=dict)  # normalized_name -> id
    locations: Dict[str, UUID] = field(default_factory=dict)  # normalized_name -> id
    machines: Dict[str, UUID] = field(default_factory=dict)  # serial_number -> id
    fingerprints: Set[str] = field(default_factory=set)

    def region_id(self, name: str) -> Optional[UUID]:
        return self.regions.get(normalize_name(name)) if name else None

    def location_id(self, name: str) -> Optional[UUID]:
        return self.locations.get(normalize_name(name)) if name else None

    def machine_id(self, serial_number: str) -> Optional[UUID]:
        return self.machines.get(serial_number) if serial_number else None


async def _bulk_create(
    label: str,
    create: Callable[..., Awaitable[Dict[str, UUID]]],
    account_id: UUID,
    items: List[dict],
    cache: Dict[str, UUID],
    result: ImportResult,
) -> int:
    try:
        created = await create(account_id, items)
    except Exception as e:
        logger.error(f"Failed to create {len(items)} {label} for account {account_id}: {e}")
        result.errors.append(f"Error creating {label}: {e}")
        return 0
    cache.update(created)
    logger.info(f"Created {len(created)} {label} for account {account_id}")
    return len(created)


async def resolve_regions(store, account_id, rows: List[ParsedSalesRow], caches: EntityCaches,
                          result: ImportResult, report: Reporter) -> None:
    pending: Dict[str, str] = {}  # normalized -> first display name seen
    for row in rows:
        key = normalize_name(row.region)
        if key and key not in caches.regions and key not in pending:
            pending[key] = row.region

    report(ImportStage.CREATING_REGIONS, 0, len(pending), f"Creating {len(pending)} regions...")
    if not pending:
        return

    items = [{"name": name, "normalized_name": key} for key, name in pending.items()]
    result.regions_created = await _bulk_create(
        "regions", store.create_regions, account_id, items, caches.regions, result
    )


async def resolve_locations(store, account_id, rows: List[ParsedSalesRow], caches: EntityCaches,
                            result: ImportResult, report: Reporter) -> None:
    pending: Dict[str, dict] = {}
    for row in rows:
        key = normalize_name(row.location)
        if key and key not in caches.locations and key not in pending:
            pending[key] = {
                "name": row.location,
                "normalized_name": key,
                "region_id": caches.region_id(row.region),
                "location_type": row.location_type or None,
                "city": row.city or None,
                "state": row.state or None,
            }

    report(ImportStage.CREATING_LOCATIONS, 0, len(pending), f"Creating {len(pending)} locations...")
    if not pending:
        return

    result.locations_created = await _bulk_create(
        "locations", store.create_locations, account_id, list(pending.values()), caches.locations, result
    )


async def resolve_machines(store, account_id, rows: List[ParsedSalesRow], caches: EntityCaches,
                           result: ImportResult, report: Reporter) -> None:
    pending: Dict[str, dict] = {}
    for row in rows:
        serial = row.serial_number
        if serial and serial not in caches.machines and serial not in pending:
            pending[serial] = {
                "serial_number": serial,
                "asset_number": row.asset_number or None,
                "make": row.make or None,
                "model": row.model or None,
                "location_id": caches.location_id(row.location),
                "product_type": row.product_type or None,
            }

    report(ImportStage.CREATING_MACHINES, 0, len(pending), f"Creating {len(pending)} machines...")
    if not pending:
        return

    result.machines_created = await _bulk_create(
        "machines", store.create_machines, account_id, list(pending.values()), caches.machines, result
    )


async def resolve_entities(store, account_id, rows: List[ParsedSalesRow], caches: EntityCaches,
                           result: ImportResult, report: Reporter) -> None:
    """Run the three passes in dependency order."""
    await resolve_regions(store, account_id, rows, caches, result, report)
    await resolve_locations(store, account_id, rows, caches, result, report)
    await resolve_machines(store, account_id, rows, caches, result, report)
