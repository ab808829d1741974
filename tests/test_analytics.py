"""
Tests for the analytics summary.
"""

import uuid
from datetime import datetime, timedelta, timezone
from decimal import Decimal

import pytest

from flowestate.models.currency import Currency
from flowestate.models.property import Property, PropertyType, ListingType, PropertyStatus
from flowestate.services.analytics import summarize, price_range, _round_half_up, AnalyticsService
from tests.conftest import PropertyFactory


NOW = datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc)
USD = Currency(id=uuid.uuid4(), code="USD", symbol="$", name="US Dollar")
CRC = Currency(id=uuid.uuid4(), code="CRC", symbol="₡", name="Colón")


def make_property(
    currency=None,
    price=None,
    status=PropertyStatus.ACTIVE,
    property_type=PropertyType.HOUSE,
    listing_type=ListingType.SALE,
    created_days=0,
    updated_days=None,
    photos=0,
    city=None,
    state=None,
    views=0,
    show_map=True,
    coordinates=False,
) -> Property:
    created_at = NOW - timedelta(days=created_days)
    updated_at = NOW - timedelta(days=updated_days) if updated_days is not None else created_at
    return Property(
        title="Listing",
        description="Listing",
        currency=currency,
        currency_id=currency.id if currency else None,
        price=Decimal(price) if price is not None else None,
        status=status,
        property_type=property_type,
        listing_type=listing_type,
        created_at=created_at,
        updated_at=updated_at,
        photos=[f"http://api.test/media/property-photos/p{i}.jpg" for i in range(photos)],
        city=city,
        state=state,
        views=views,
        show_map=show_map,
        latitude=Decimal("10.3") if coordinates else None,
        longitude=Decimal("-85.8") if coordinates else None,
    )


@pytest.fixture
def portfolio():
    return [
        make_property(USD, 150000, created_days=1, photos=6, city="Tamarindo", state="Guanacaste",
                      views=10, coordinates=True),
        make_property(USD, 450000, status=PropertyStatus.SOLD, property_type=PropertyType.CONDO,
                      created_days=40, updated_days=2, city="Tamarindo", state="Guanacaste", views=30),
        make_property(CRC, 75000000, status=PropertyStatus.RENTED, property_type=PropertyType.APARTMENT,
                      listing_type=ListingType.RENT, created_days=60, updated_days=45, photos=2,
                      views=5, show_map=False),
        make_property(None, None, status=PropertyStatus.INACTIVE, property_type=PropertyType.LAND,
                      created_days=10, photos=5, city="Nosara", coordinates=True),
    ]


class TestPriceRanges:
    """Test price bucketing."""

    def test_upper_bounds_are_exclusive(self):
        assert price_range("USD", 99999) == "$0-$100K"
        assert price_range("USD", 100000) == "$100K-$200K"
        assert price_range("USD", 750000) == "$500K+"

    def test_colon_ranges(self):
        assert price_range("CRC", 49_999_999) == "₡0-₡50M"
        assert price_range("CRC", 300_000_000) == "₡300M+"

    def test_unknown_currency(self):
        assert price_range("EUR", 1000) == "Other"

    def test_round_half_up(self):
        assert _round_half_up(2.5) == 3
        assert _round_half_up(2.49) == 2


class TestSummarize:
    """Test the dashboard summary."""

    def test_inventory(self, portfolio):
        inventory = summarize(portfolio, now=NOW)["inventory"]
        assert inventory == {
            "total": 4,
            "active": 1,
            "byCurrency": {"USD": 2, "CRC": 1},
            "recentlyAdded": 1,
        }

    def test_distribution(self, portfolio):
        distribution = summarize(portfolio, now=NOW)["distribution"]
        assert distribution["byPropertyType"] == {"house": 1, "condo": 1, "apartment": 1, "land": 1}
        assert distribution["byListingType"] == {"sale": 3, "rent": 1}

    def test_pricing(self, portfolio):
        pricing = summarize(portfolio, now=NOW)["pricing"]
        assert pricing["averageByCurrency"]["USD"] == {
            "avg": 300000, "min": 150000.0, "max": 450000.0, "symbol": "$"
        }
        assert pricing["averageByCurrency"]["CRC"]["symbol"] == "₡"
        assert pricing["rangesByCurrency"] == {
            "USD": {"$100K-$200K": 1, "$300K-$500K": 1},
            "CRC": {"₡50M-₡100M": 1},
        }

    def test_status_and_attention(self, portfolio):
        status = summarize(portfolio, now=NOW)["status"]
        assert status["byStatus"] == {"active": 1, "sold": 1, "rented": 1, "inactive": 1}
        assert status["needsAttention"] == {
            "notUpdated30Days": 1,
            "lessThan5Photos": 2,
            "noMapLocation": 1,
        }

    def test_activity_last_seven_days(self, portfolio):
        activity = summarize(portfolio, now=NOW)["activity"]["last7Days"]
        assert activity == {"created": 1, "updated": 1, "sold": 1, "rented": 0}

    def test_top_locations(self, portfolio):
        locations = summarize(portfolio, now=NOW)["locations"]["topLocations"]
        assert locations[0] == {"location": "Tamarindo, Guanacaste", "count": 2}
        assert {"location": "No location", "count": 1} in locations
        assert {"location": "Nosara", "count": 1} in locations

    def test_views(self, portfolio):
        assert summarize(portfolio, now=NOW)["views"] == {"total": 45, "average": 11, "threshold": 50}

    def test_empty_portfolio(self):
        summary = summarize([], now=NOW)
        assert summary["inventory"]["total"] == 0
        assert summary["views"]["average"] == 0
        assert summary["locations"]["topLocations"] == []


class TestAnalyticsService:
    """Test the service over stored properties."""

    async def test_summary_only_counts_own_properties(self, db_session, test_agent, other_agent):
        await PropertyFactory.create_property(db_session, test_agent.id, views=4)
        await PropertyFactory.create_property(db_session, test_agent.id, views=6)
        await PropertyFactory.create_property(db_session, other_agent.id, views=100)

        summary = await AnalyticsService(db_session).get_summary(test_agent)

        assert summary["inventory"]["total"] == 2
        assert summary["views"]["total"] == 10
        assert summary["views"]["average"] == 5
