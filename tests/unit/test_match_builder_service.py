"""
Unit tests for MatchBuilderService.

Run: pytest tests/unit/test_match_builder_service.py -v
"""

import pytest
from unittest.mock import MagicMock

from exceptions import MissingManufacturerSKUError
from models.match_builder import AlignmentStatus, CreateMatchRequest
from services.match_builder_service import MatchBuilderService, catalog_entry_specs
from tests.factories import ApprovedMatchFactory, CatalogEntryFactory, ProductFactory


NEEDLE_ENTRY = CatalogEntryFactory.create_model(
    catalog_id=1042,
    manufacturer_sku="305196",
    name="Hypodermic Needle 18G x 1 inch",
    all_specifications={"Gauge": "18 Gauge", "Length": "1 Inch Length"},
)


@pytest.fixture
def builder(needle_product, glove_product):
    catalog_service = MagicMock()
    catalog_service.get_by_id.return_value = NEEDLE_ENTRY

    product_service = MagicMock()
    product_service.get_all_active.return_value = [glove_product, needle_product]
    product_service.get_by_id.return_value = needle_product

    approved_match_service = MagicMock()
    approved_match_service.get_matched_skus.return_value = set()
    approved_match_service.get_by_skus.return_value = {}

    service = MatchBuilderService(catalog_service, product_service, approved_match_service)
    return service, catalog_service, product_service, approved_match_service


class TestCatalogEntrySpecs:
    """Tests for catalog_entry_specs()"""

    def test_attributes_and_name(self):
        """Should combine catalog attributes with the type from the name."""
        assert catalog_entry_specs(NEEDLE_ENTRY) == {
            "application": "needle",
            "gauge": "18",
            "length": "1 inch",
        }


class TestSearchCatalog:
    """Tests for MatchBuilderService.search_catalog()"""

    def test_flags_already_matched(self, builder):
        """Should flag entries whose SKU already has an override."""
        # Arrange
        service, catalog_service, _, approved_match_service = builder
        other = CatalogEntryFactory.create_model(manufacturer_sku="GLV-1")
        catalog_service.search.return_value = ([NEEDLE_ENTRY, other], 2)
        approved_match_service.get_matched_skus.return_value = {"305196"}

        # Act
        result = service.search_catalog("needle")

        # Assert
        assert result.total == 2
        assert [r.already_matched for r in result.data] == [True, False]

    def test_unmatched_only_filters_and_recounts(self, builder):
        """Should drop matched entries and report the remaining count."""
        service, catalog_service, _, approved_match_service = builder
        other = CatalogEntryFactory.create_model(manufacturer_sku="GLV-1")
        catalog_service.search.return_value = ([NEEDLE_ENTRY, other], 40)
        approved_match_service.get_matched_skus.return_value = {"305196"}

        result = service.search_catalog("needle", unmatched_only=True)

        assert result.total == 1
        assert result.data[0].manufacturer_sku == "GLV-1"

    def test_empty_search(self, builder):
        """Should not load overrides when nothing was found."""
        service, catalog_service, _, approved_match_service = builder
        catalog_service.search.return_value = ([], 0)

        assert service.search_catalog("x").data == []
        approved_match_service.get_matched_skus.assert_not_called()


class TestGetSuggestions:
    """Tests for MatchBuilderService.get_suggestions()"""

    def test_ranks_same_type_products(self, builder):
        """Should suggest the needle and never the glove."""
        # Arrange
        service, _, _, _ = builder

        # Act
        result = service.get_suggestions(1042)

        # Assert
        assert [s.product.id for s in result.suggestions] == ["prod-needle"]
        assert result.suggestions[0].score == 95
        assert any(chip.label == "Gauge" and chip.match for chip in result.suggestions[0].chips)

    def test_ordered_by_score(self, builder, needle_product):
        """Should order by score, best first."""
        service, _, product_service, _ = builder
        weaker = ProductFactory.create_model(id="prod-25g", product_name="Hypodermic Needle 25G x 5/8\"")
        product_service.get_all_active.return_value = [weaker, needle_product]

        result = service.get_suggestions(1042)

        assert [s.product.id for s in result.suggestions] == ["prod-needle", "prod-25g"]
        assert result.suggestions[1].score == 40

    def test_no_application_no_suggestions(self, builder):
        """Should return nothing when the entry's type is unknown."""
        service, catalog_service, product_service, _ = builder
        catalog_service.get_by_id.return_value = CatalogEntryFactory.create_model(name="Misc item")

        result = service.get_suggestions(1)

        assert result.suggestions == []
        product_service.get_all_active.assert_not_called()


class TestPreview:
    """Tests for MatchBuilderService.preview()"""

    def test_alignment_and_score(self, builder):
        """Should compare both spec sets attribute by attribute."""
        service, _, _, approved_match_service = builder
        approved_match_service.get_by_skus.return_value = {
            "305196": ApprovedMatchFactory.create_model(external_mfr_number="305196")
        }

        preview = service.preview(1042, "prod-needle")

        assert preview.score == 95
        assert preview.already_matched is True
        statuses = {row.key: row.status for row in preview.alignment}
        assert statuses["gauge"] == AlignmentStatus.MATCH
        assert statuses["count"] == AlignmentStatus.PARTIAL


class TestCreateMatch:
    """Tests for MatchBuilderService.create_match()"""

    def test_creates_override(self, builder):
        """Should upsert an override keyed on the catalog SKU."""
        # Arrange
        service, _, _, approved_match_service = builder
        approved_match_service.upsert.return_value = ApprovedMatchFactory.create_model(
            external_mfr_number="305196", product_id="prod-needle"
        )

        # Act
        match = service.create_match(CreateMatchRequest(catalog_id=1042, product_id="prod-needle"))

        # Assert
        created = approved_match_service.upsert.call_args[0][0]
        assert created.external_mfr_number == "305196"
        assert created.product_item_code == "NDL-18G"
        assert created.approval_notes == "Created via match builder"
        assert match.product_id == "prod-needle"

    def test_missing_sku_rejected(self, builder):
        """Should refuse entries without a manufacturer SKU."""
        service, catalog_service, _, approved_match_service = builder
        catalog_service.get_by_id.return_value = CatalogEntryFactory.create_model(manufacturer_sku=None)

        with pytest.raises(MissingManufacturerSKUError) as exc_info:
            service.create_match(CreateMatchRequest(catalog_id=7, product_id="prod-needle"))

        assert exc_info.value.status_code == 422
        approved_match_service.upsert.assert_not_called()
