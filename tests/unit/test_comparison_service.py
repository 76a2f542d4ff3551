"""
Unit tests for cost comparison and proposal figures.

Run: pytest tests/unit/test_comparison_service.py -v
"""

import pytest
from unittest.mock import MagicMock

from models.comparison import ComparisonRequest
from models.upload import UploadResponse
from services.comparison_service import ComparisonService, compare_item
from tests.factories import LineItemFactory, ProductFactory


class TestCompareItem:
    """Tests for compare_item()"""

    def test_same_uom(self, needle_product):
        """Should price the reported quantity directly."""
        # Arrange
        item = LineItemFactory.create_model(
            id="item-1", uom="BX", ship_qty=4, cost_per_unit=12.0, contents="100/BX"
        )

        # Act
        row = compare_item(item, needle_product, markup=25)

        # Assert
        assert row.comparable is True
        assert row.distributor_total == pytest.approx(48)
        assert row.our_unit_price == pytest.approx(10)
        assert row.our_total == pytest.approx(40)
        assert row.savings == pytest.approx(8)
        assert row.savings_percent == pytest.approx(16.667, rel=1e-3)
        assert row.uom_ratio == 1.0
        assert row.distributor_per_unit == "$0.12/ea (100 units)"
        assert row.our_per_unit == "$0.10/ea (100 units)"

    def test_converts_cases_to_boxes(self, needle_product):
        """Should convert the reported case quantity into boxes."""
        item = LineItemFactory.create_model(uom="CS", ship_qty=1, cost_per_unit=100.0)

        row = compare_item(item, needle_product, markup=50)

        assert row.converted_qty == pytest.approx(10)
        assert row.our_total == pytest.approx(120)
        assert row.savings == pytest.approx(-20)

    def test_unconvertible_uom_not_comparable(self):
        """Should flag items whose UOMs cannot be converted."""
        product = ProductFactory.create_model(package_type="BX", unit_price=5.0)
        item = LineItemFactory.create_model(uom="CS", ship_qty=2, cost_per_unit=50.0)

        row = compare_item(item, product, markup=50)

        assert row.comparable is False
        assert row.our_total == 0
        assert row.savings == 0

    def test_missing_uom_compares_as_reported(self, needle_product):
        """Should use the reported quantity when the report has no UOM."""
        item = LineItemFactory.create_model(uom="", ship_qty=3, cost_per_unit=10.0)

        row = compare_item(item, needle_product, markup=0)

        assert row.comparable is True
        assert row.uom_ratio is None
        assert row.our_total == pytest.approx(24)

    def test_zero_quantity_counts_as_one(self, needle_product):
        """Should price at least one unit."""
        item = LineItemFactory.create_model(uom="BX", ship_qty=0, cost_per_unit=10.0)

        assert compare_item(item, needle_product, markup=0).qty == 1


@pytest.fixture
def comparison_setup(needle_product, glove_product):
    upload_service = MagicMock()
    upload_service.get_by_id.return_value = UploadResponse(
        id="upload-1", filename="Acme Clinic REPORT.xlsx", original_filename="Acme Clinic REPORT.xlsx"
    )
    upload_service.get_items.return_value = [
        LineItemFactory.create_model(
            id="needle", uom="BX", ship_qty=10, cost_per_unit=12.0,
            match_status="exact", matched_product_id="prod-needle", match_confidence=100,
        ),
        LineItemFactory.create_model(
            id="glove", uom="BX", ship_qty=10, cost_per_unit=12.0,
            match_status="approved", matched_product_id="prod-glove", match_confidence=100,
        ),
        LineItemFactory.create_model(
            id="free", uom="BX", ship_qty=5, cost_per_unit=0,
            match_status="exact", matched_product_id="prod-needle", match_confidence=100,
        ),
        LineItemFactory.create_model(
            id="fuzzy", uom="BX", ship_qty=2, cost_per_unit=15.0,
            match_status="fuzzy", matched_product_id="prod-needle", match_confidence=62,
        ),
        LineItemFactory.create_model(id="none", uom="BX", ship_qty=1, cost_per_unit=5.0, match_status="no_match"),
    ]

    product_service = MagicMock()
    product_service.get_by_ids.return_value = {"prod-needle": needle_product, "prod-glove": glove_product}

    return ComparisonService(upload_service, product_service)


class TestGetComparison:
    """Tests for ComparisonService.get_comparison()"""

    def test_totals_and_ordering(self, comparison_setup):
        """Should total confirmed matches and sort by savings."""
        # Act
        result = comparison_setup.get_comparison("upload-1", ComparisonRequest(default_markup=50))

        # Assert
        assert result.customer_name == "Acme Clinic"
        assert [row.item_id for row in result.items] == ["glove", "needle"]
        assert result.current_spend == pytest.approx(240)
        # needle 8 * 1.5 * 10 = 120, glove 6 * 1.5 * 10 = 90
        assert result.our_total == pytest.approx(210)
        assert result.total_savings == pytest.approx(30)
        assert result.savings_percent == pytest.approx(12.5)

    def test_unmatched_spend(self, comparison_setup):
        """Should total fuzzy and unmatched items separately."""
        result = comparison_setup.get_comparison("upload-1")

        assert result.unmatched_count == 2
        assert result.unmatched_spend == pytest.approx(35)

    def test_item_markup_override(self, comparison_setup):
        """Should apply per-item markups over the default."""
        request = ComparisonRequest(default_markup=50, item_markups={"needle": 0})

        result = comparison_setup.get_comparison("upload-1", request)

        needle = next(row for row in result.items if row.item_id == "needle")
        assert needle.item_markup == 0
        assert needle.has_custom_markup is True
        assert needle.our_total == pytest.approx(80)

    def test_default_markup_from_settings(self, comparison_setup):
        """Should fall back to the configured markup."""
        assert comparison_setup.get_comparison("upload-1").default_markup == 50.0


class TestGetProposal:
    """Tests for ComparisonService.get_proposal()"""

    def test_annualizes_and_drafts_email(self, comparison_setup):
        """Should scale figures to a year and draft the email."""
        # Act
        proposal = comparison_setup.get_proposal("upload-1", ComparisonRequest(default_markup=50))

        # Assert
        assert proposal.matched_count == 2
        assert proposal.annual_current_spend == pytest.approx(2880)
        assert proposal.annual_our_total == pytest.approx(2520)
        assert proposal.annual_savings == pytest.approx(360)
        assert proposal.email_subject == "Partnership Proposal - Acme Clinic"
        assert "12.5%" in proposal.email_body
        assert proposal.top_items[0].item_id == "glove"
