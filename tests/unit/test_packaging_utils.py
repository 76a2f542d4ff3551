"""
Unit tests for packaging hierarchy utilities.

Run: pytest tests/unit/test_packaging_utils.py -v
"""

import pytest

from utils.packaging_utils import (
    PackagingLevel,
    canonical_uom,
    parse_packaging_hierarchy,
    get_units_per_uom,
    format_unit_price,
    convert_qty,
)


class TestCanonicalUom:
    """Tests for canonical_uom()"""

    @pytest.mark.parametrize("raw,expected", [
        ("BX", "bx"),
        ("Box", "bx"),
        (" cs ", "cs"),
        ("CASE", "cs"),
        ("pkg", "pk"),
        ("Each", "ea"),
        ("dozen", "dz"),
    ])
    def test_aliases_map_to_short_form(self, raw, expected):
        """Should canonicalize known aliases."""
        assert canonical_uom(raw) == expected

    def test_unknown_uom_passes_through_lowercased(self):
        """Should keep unknown UOMs, lower-cased."""
        assert canonical_uom("Sleeve") == "sleeve"

    @pytest.mark.parametrize("raw", [None, "", "   "])
    def test_empty_returns_none(self, raw):
        """Should return None for empty input."""
        assert canonical_uom(raw) is None


class TestParsePackagingHierarchy:
    """Tests for parse_packaging_hierarchy()"""

    def test_two_level_hierarchy(self):
        """Should read box and case levels innermost first."""
        # Act
        levels = parse_packaging_hierarchy("200/BX 10BX/CS")

        # Assert
        assert levels == [PackagingLevel(200, "bx"), PackagingLevel(10, "cs")]

    def test_single_level(self):
        """Should read a single pack level."""
        assert parse_packaging_hierarchy("50/PK") == [PackagingLevel(50, "pk")]

    def test_dozens_converted(self):
        """Should multiply dozen counts by 12."""
        assert parse_packaging_hierarchy("2DZ/BX") == [PackagingLevel(24, "bx")]

    def test_embedded_in_description(self):
        """Should find levels inside free text."""
        levels = parse_packaging_hierarchy("Gauze sponge 4x4, 200/bx 10 bx/cs sterile")
        assert [level.count for level in levels] == [200, 10]

    @pytest.mark.parametrize("text", [None, "", "Sterile gauze sponge"])
    def test_no_hierarchy(self, text):
        """Should return an empty list when there is nothing to parse."""
        assert parse_packaging_hierarchy(text) == []


class TestGetUnitsPerUom:
    """Tests for get_units_per_uom()"""

    def test_box_units(self):
        """Should return units per box."""
        assert get_units_per_uom("200/BX 10BX/CS", "BX") == 200

    def test_case_units(self):
        """Should multiply through to the case level."""
        assert get_units_per_uom("200/BX 10BX/CS", "CS") == 2000

    def test_alias_uom(self):
        """Should accept UOM aliases."""
        assert get_units_per_uom("200/BX 10BX/CS", "Case") == 2000

    def test_uom_not_in_hierarchy_uses_all_levels(self):
        """Should fall back to the product of all levels."""
        assert get_units_per_uom("100/BX 10BX/CS", "PK") == 1000

    def test_no_hierarchy_returns_none(self):
        """Should return None when the text has no packaging."""
        assert get_units_per_uom("Exam glove", "BX") is None


class TestFormatUnitPrice:
    """Tests for format_unit_price()"""

    def test_case_price_per_unit(self):
        """Should divide a case price down to the individual unit."""
        assert format_unit_price(100, "200/BX 10BX/CS", "CS") == "$0.05/ea (2000 units)"

    def test_sub_cent_uses_four_places(self):
        """Should show up to 4 decimals under one cent."""
        assert format_unit_price(5, "1000/BX", "BX") == "$0.005/ea (1000 units)"

    def test_dollar_amounts_use_two_places(self):
        """Should show 2 decimals at a dollar or more."""
        assert format_unit_price(60, "24/CS", "CS") == "$2.50/ea (24 units)"

    def test_outermost_level_without_uom(self):
        """Should use all levels when no UOM is given."""
        assert format_unit_price(100, "200/BX 10BX/CS") == "$0.05/ea (2000 units)"

    @pytest.mark.parametrize("price,text", [
        (0, "200/BX"),
        (None, "200/BX"),
        (10, "Exam glove"),
        (10, "1/EA"),
    ])
    def test_returns_none_without_units_or_price(self, price, text):
        """Should return None when no per-unit figure makes sense."""
        assert format_unit_price(price, text, "BX") is None


class TestConvertQty:
    """Tests for convert_qty()"""

    def test_boxes_to_cases(self):
        """Should convert boxes into fractional cases."""
        # Act
        result = convert_qty(4, "BX", "CS", "200/BX 10BX/CS")

        # Assert
        assert result.converted_qty == pytest.approx(0.4)
        assert result.ratio == pytest.approx(0.1)

    def test_cases_to_boxes(self):
        """Should convert cases into boxes."""
        result = convert_qty(1, "CS", "BX", "200/BX 10BX/CS")
        assert result.converted_qty == pytest.approx(10)

    def test_same_uom_is_identity(self):
        """Should pass quantity through for matching UOMs."""
        result = convert_qty(7, "Box", "BX", None)
        assert result.converted_qty == 7
        assert result.ratio == 1.0

    def test_dozen_box_to_each(self):
        """Should treat each as the base unit."""
        result = convert_qty(3, "BX", "EA", "2DZ/BX")
        assert result.converted_qty == pytest.approx(72)

    def test_unresolvable_returns_none(self):
        """Should return None rather than assume 1:1."""
        assert convert_qty(5, "BX", "CS", "Exam glove") is None

    def test_missing_uom_returns_none(self):
        """Should return None when a UOM is missing."""
        assert convert_qty(5, "", "CS", "200/BX 10BX/CS") is None
