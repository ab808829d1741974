"""
Analytics service.
Summarizes an agent's inventory, pricing, status, recent activity, locations and views.
"""

from collections import Counter, defaultdict
from datetime import datetime, timedelta
from typing import Any, Dict, List, Optional, Sequence
from sqlalchemy.ext.asyncio import AsyncSession
import math
import logging

from flowestate.models.agent import Agent
from flowestate.models.property import Property, PropertyStatus
from flowestate.repositories.property import PropertyRepository
from flowestate.utils.dates import as_utc, utc_now

logger = logging.getLogger(__name__)

RECENT_DAYS = 7
STALE_DAYS = 30
MIN_PHOTOS = 5
TOP_LOCATIONS = 5
VIEWS_THRESHOLD = 50
NO_LOCATION = "No location"

# Upper bounds (exclusive) and labels per currency; the last label has no upper bound
PRICE_RANGES = {
    "USD": (
        (100_000, "$0-$100K"),
        (200_000, "$100K-$200K"),
        (300_000, "$200K-$300K"),
        (500_000, "$300K-$500K"),
        (None, "$500K+"),
    ),
    "CRC": (
        (50_000_000, "₡0-₡50M"),
        (100_000_000, "₡50M-₡100M"),
        (200_000_000, "₡100M-₡200M"),
        (300_000_000, "₡200M-₡300M"),
        (None, "₡300M+"),
    ),
}
OTHER_RANGE = "Other"


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def price_range(code: str, price: float) -> str:
    """
    Bucket label for a price in a currency.

    Args:
        code: Currency code
        price: Listing price

    Returns:
        Range label, or "Other" for currencies without buckets
    """
    ranges = PRICE_RANGES.get(code)
    if not ranges:
        return OTHER_RANGE
    for upper, label in ranges:
        if upper is None or price < upper:
            return label
    return OTHER_RANGE


def location_label(prop: Property) -> str:
    parts = [part for part in (prop.city, prop.state) if part]
    return ", ".join(parts) or NO_LOCATION


def summarize(properties: Sequence[Property], now: Optional[datetime] = None) -> Dict[str, Any]:
    """
    Compute the dashboard summary for a set of properties.

    Args:
        properties: The agent's properties, with currencies loaded
        now: Reference time, defaults to the current UTC time

    Returns:
        Summary grouped into inventory, distribution, pricing, status,
        activity, locations and views sections
    """
    now = now or utc_now()
    recent_cutoff = now - timedelta(days=RECENT_DAYS)
    stale_cutoff = now - timedelta(days=STALE_DAYS)

    total = len(properties)
    by_currency: Counter = Counter()
    by_property_type: Counter = Counter()
    by_listing_type: Counter = Counter()
    by_status: Counter = Counter()
    locations: Counter = Counter()
    prices: Dict[str, List[float]] = defaultdict(list)
    symbols: Dict[str, str] = {}
    ranges: Dict[str, Counter] = defaultdict(Counter)

    active = recently_added = 0
    not_updated = few_photos = no_map_location = 0
    updated_recently = sold_recently = rented_recently = 0
    total_views = 0

    for prop in properties:
        created_at = as_utc(prop.created_at)
        updated_at = as_utc(prop.updated_at) or created_at
        status = prop.status.value if prop.status else PropertyStatus.ACTIVE.value

        if status == PropertyStatus.ACTIVE.value:
            active += 1
        by_status[status] += 1
        by_property_type[prop.property_type.value if prop.property_type else "unknown"] += 1
        by_listing_type[prop.listing_type.value if prop.listing_type else "sale"] += 1

        code = prop.currency.code if prop.currency else None
        if prop.currency_id:
            by_currency[code or "N/A"] += 1
            if prop.price:
                price = float(prop.price)
                prices[code or "N/A"].append(price)
                symbols.setdefault(code or "N/A", prop.currency.symbol if prop.currency else "$")
                ranges[code or "N/A"][price_range(code or "N/A", price)] += 1

        if created_at and created_at >= recent_cutoff:
            recently_added += 1
        elif updated_at and updated_at >= recent_cutoff:
            updated_recently += 1

        if updated_at and updated_at >= recent_cutoff:
            if status == PropertyStatus.SOLD.value:
                sold_recently += 1
            elif status == PropertyStatus.RENTED.value:
                rented_recently += 1

        if updated_at and updated_at < stale_cutoff:
            not_updated += 1
        if prop.photo_count < MIN_PHOTOS:
            few_photos += 1
        if prop.show_map and not prop.has_coordinates:
            no_map_location += 1

        locations[location_label(prop)] += 1
        total_views += prop.views or 0

    average_by_currency = {
        code: {
            "avg": _round_half_up(sum(values) / len(values)),
            "min": min(values),
            "max": max(values),
            "symbol": symbols.get(code, "$"),
        }
        for code, values in prices.items()
    }

    return {
        "inventory": {
            "total": total,
            "active": active,
            "byCurrency": dict(by_currency),
            "recentlyAdded": recently_added,
        },
        "distribution": {
            "byPropertyType": dict(by_property_type),
            "byListingType": dict(by_listing_type),
        },
        "pricing": {
            "averageByCurrency": average_by_currency,
            "rangesByCurrency": {code: dict(counts) for code, counts in ranges.items()},
        },
        "status": {
            "byStatus": dict(by_status),
            "needsAttention": {
                "notUpdated30Days": not_updated,
                "lessThan5Photos": few_photos,
                "noMapLocation": no_map_location,
            },
        },
        "activity": {
            "last7Days": {
                "created": recently_added,
                "updated": updated_recently,
                "sold": sold_recently,
                "rented": rented_recently,
            },
        },
        "locations": {
            "topLocations": [
                {"location": location, "count": count}
                for location, count in locations.most_common(TOP_LOCATIONS)
            ],
        },
        "views": {
            "total": total_views,
            "average": _round_half_up(total_views / total) if total else 0,
            "threshold": VIEWS_THRESHOLD,
        },
    }


class AnalyticsService:
    def __init__(self, db_session: AsyncSession):
        self.db = db_session
        self.property_repo = PropertyRepository(db_session)

    async def get_summary(self, agent: Agent) -> Dict[str, Any]:
        properties = await self.property_repo.list_for_agent(agent.id)
        summary = summarize(properties)
        logger.info(f"Computed analytics for agent {agent.email} over {len(properties)} properties")
        return summary
