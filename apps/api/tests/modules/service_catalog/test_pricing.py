"""
Unit tests for service pricing.
"""

from decimal import Decimal

from app.modules.service_catalog.pricing import (
    FULL_SERVICE_ID,
    STAGGERED_LINE_ITEMS,
    STAGGERED_SERVICE_ID,
    compute_service_totals,
    default_services,
)


class TestComputeServiceTotals:
    """Tests for compute_service_totals."""

    def test_default_staggered_items(self):
        totals = compute_service_totals(STAGGERED_LINE_ITEMS)

        assert totals.step1 == Decimal("267.99")
        assert totals.step2 == Decimal("508.00")
        assert totals.full == Decimal("775.99")

    def test_items_without_step_count_as_step1(self):
        totals = compute_service_totals(
            [{"description": "Fee", "amount": 100}, {"description": "Other", "amount": 50, "step": 1}]
        )

        assert totals.step1 == Decimal("150.00")
        assert totals.step2 == Decimal("0.00")

    def test_taxable_items_add_twelve_percent(self):
        totals = compute_service_totals(
            [
                {"description": "Service Fee", "amount": 100, "taxable": True},
                {"description": "Exam Fee", "amount": 200, "step": 2},
            ]
        )

        assert totals.step1 == Decimal("112.00")
        assert totals.step2 == Decimal("200.00")
        assert totals.full == Decimal("312.00")

    def test_empty_items(self):
        totals = compute_service_totals([])

        assert totals.full == Decimal("0.00")


class TestDefaultServices:
    """Tests for the seeded NCLEX New York services."""

    def test_two_defaults(self):
        services = {s["id"]: s for s in default_services()}

        assert set(services) == {STAGGERED_SERVICE_ID, FULL_SERVICE_ID}

    def test_staggered_has_step_totals(self):
        staggered = next(s for s in default_services() if s["id"] == STAGGERED_SERVICE_ID)

        assert staggered["payment_type"] == "staggered"
        assert staggered["total_step1"] == Decimal("267.99")
        assert staggered["total_step2"] == Decimal("508.00")
        assert staggered["total_full"] == Decimal("775.99")

    def test_full_has_only_full_total(self):
        full = next(s for s in default_services() if s["id"] == FULL_SERVICE_ID)

        assert full["payment_type"] == "full"
        assert len(full["line_items"]) == 7
        assert all("step" not in item for item in full["line_items"])
        assert full["total_full"] == Decimal("775.99")
        assert full["total_step1"] is None
        assert full["total_step2"] is None
