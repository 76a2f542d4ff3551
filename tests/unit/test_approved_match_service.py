"""
Unit tests for ApprovedMatchService.

Run: pytest tests/unit/test_approved_match_service.py -v
"""

import pytest
from unittest.mock import MagicMock, patch

from exceptions import ApprovedMatchNotFoundError, DatabaseError
from models.approved_match import ApprovedMatchCreate, ApprovedMatchUpdate
from services.approved_match_service import ApprovedMatchService
from tests.factories import ApprovedMatchFactory


@pytest.fixture
def product_service(needle_product):
    service = MagicMock()
    service.get_by_id.return_value = needle_product
    return service


class TestGetBySkus:
    """Tests for ApprovedMatchService.get_by_skus()"""

    def test_keys_by_sku(self, mock_db, mock_supabase, product_service):
        """Should return overrides keyed by external SKU."""
        # Arrange
        mock_supabase.set_table_data("approved_matches", [
            ApprovedMatchFactory.create(external_mfr_number="305196", product_id="prod-needle"),
        ])
        service = ApprovedMatchService(product_service)

        # Act
        matches = service.get_by_skus(["305196", "305196", ""])

        # Assert
        assert list(matches) == ["305196"]
        assert matches["305196"].product_id == "prod-needle"

    def test_empty_skus(self, mock_db, mock_supabase, product_service):
        """Should return an empty dict without querying."""
        assert ApprovedMatchService(product_service).get_by_skus([]) == {}

    def test_query_failure(self, product_service):
        """Should wrap store failures in DatabaseError."""
        client = MagicMock()
        client.table.side_effect = Exception("timeout")
        with patch("services.approved_match_service.get_supabase_client", return_value=client), \
                patch("services.approved_match_service.get_admin_client", return_value=None):
            service = ApprovedMatchService(product_service)

        with pytest.raises(DatabaseError):
            service.get_by_skus(["305196"])


class TestGetAll:
    """Tests for ApprovedMatchService.get_all()"""

    def test_paginates(self, mock_db, mock_supabase, product_service):
        """Should return a page with total page count."""
        mock_supabase.set_table_data("approved_matches", [ApprovedMatchFactory.create()], count=45)

        result = ApprovedMatchService(product_service).get_all(page=2, page_size=20, search="ndl")

        assert result.total == 45
        assert result.total_pages == 3
        assert result.page == 2
        assert len(result.data) == 1


class TestUpsert:
    """Tests for ApprovedMatchService.upsert()"""

    def test_upserts_on_sku(self, product_service):
        """Should upsert with the SKU as conflict key."""
        # Arrange
        client = MagicMock()
        client.table.return_value.upsert.return_value.execute.return_value = MagicMock(
            data=[ApprovedMatchFactory.create(external_mfr_number="305196", product_id="prod-needle")]
        )
        with patch("services.approved_match_service.get_supabase_client", return_value=MagicMock()), \
                patch("services.approved_match_service.get_admin_client", return_value=client):
            service = ApprovedMatchService(product_service)

        # Act
        match = service.upsert(ApprovedMatchCreate(external_mfr_number="305196", product_id="prod-needle"))

        # Assert
        client.table.assert_called_with("approved_matches")
        row = client.table.return_value.upsert.call_args[0][0]
        assert row["external_mfr_number"] == "305196"
        assert "updated_at" in row
        assert client.table.return_value.upsert.call_args[1] == {"on_conflict": "external_mfr_number"}
        assert match.external_mfr_number == "305196"

    def test_falls_back_to_anon_client(self, mock_db, mock_supabase, product_service):
        """Should write with the regular client when no service key is set."""
        service = ApprovedMatchService(product_service)

        service.upsert(ApprovedMatchCreate(external_mfr_number="305196", product_id="prod-needle"))

        assert mock_supabase.writes_to("approved_matches", "upsert")[0]["product_id"] == "prod-needle"


class TestUpdateProduct:
    """Tests for ApprovedMatchService.update_product()"""

    def test_repoints_and_rewrites_notes(self, mock_db, mock_supabase, product_service):
        """Should point the override at the new product."""
        # Arrange
        mock_supabase.set_table_data("approved_matches", [ApprovedMatchFactory.create(id="m1")])
        service = ApprovedMatchService(product_service)

        # Act
        match = service.update_product("m1", ApprovedMatchUpdate(product_id="prod-needle"))

        # Assert
        update = mock_supabase.writes_to("approved_matches", "update")[0]
        assert update["product_id"] == "prod-needle"
        assert update["product_item_code"] == "NDL-18G"
        assert update["approval_notes"] == 'Updated mapping to Hypodermic Needle 18G x 1"'
        assert match.product_id == "prod-needle"

    def test_missing_match(self, mock_db, mock_supabase, product_service):
        """Should raise when the override doesn't exist."""
        with pytest.raises(ApprovedMatchNotFoundError):
            ApprovedMatchService(product_service).update_product("nope", ApprovedMatchUpdate(product_id="prod-needle"))


class TestDelete:
    """Tests for ApprovedMatchService.delete()"""

    def test_deletes_existing(self, mock_db, mock_supabase, product_service):
        """Should delete an existing override."""
        mock_supabase.set_table_data("approved_matches", [ApprovedMatchFactory.create(id="m1")])

        assert ApprovedMatchService(product_service).delete("m1") is True
        assert mock_supabase.writes_to("approved_matches", "delete") == [None]

    def test_delete_missing(self, mock_db, mock_supabase, product_service):
        """Should raise when the override doesn't exist."""
        with pytest.raises(ApprovedMatchNotFoundError):
            ApprovedMatchService(product_service).delete("nope")
