"""Unit tests for menu document normalization."""

import pytest

from restaurant_menu_service.services.document_normalizer import (
    DocumentShape,
    classify_document,
    extract_wrapped_items,
    looks_like_item,
    normalize_documents,
)


@pytest.mark.unit
class TestLooksLikeItem:
    """Tests for the flat-item heuristic."""

    @pytest.mark.parametrize(
        "document",
        [
            {"title": "Tea", "price": 0},
            {"name": "Tea", "image": "tea.jpg"},
            {"title": "Tea", "description": "Hot"},
            {"title": "Tea", "desc": "Hot"},
        ],
    )
    def test_recognizes_items(self, document: dict) -> None:
        """Test that a name/title plus price, image or description is an item."""
        assert looks_like_item(document) is True

    @pytest.mark.parametrize(
        "document",
        [
            {"title": "Tea"},
            {"price": 5},
            {"items": [{"title": "Tea", "price": 2}]},
            {"title": "", "price": 5},
            "not a document",
            None,
        ],
    )
    def test_rejects_non_items(self, document: object) -> None:
        """Test that wrappers and incomplete documents are not items."""
        assert looks_like_item(document) is False

    def test_classify_uses_custom_predicate(self) -> None:
        """Test that classification can be driven by another heuristic."""
        document = {"sku": "A1"}

        assert classify_document(document) is DocumentShape.WRAPPER
        assert classify_document(document, is_item=lambda d: "sku" in d) is DocumentShape.FLAT_ITEM


@pytest.mark.unit
class TestNormalizeDocuments:
    """Tests for normalize_documents."""

    def test_unwraps_items_array(self) -> None:
        """Test that a wrapper's items array is returned flat."""
        result = normalize_documents({"items": [{"title": "A"}, {"title": "B"}]})

        assert result == [{"title": "A"}, {"title": "B"}]

    def test_flat_items_returned_unchanged(self) -> None:
        """Test that an already flat item list is returned as-is."""
        documents = [{"title": "A", "price": 5}]

        assert normalize_documents(documents) == documents

    def test_empty_wrapper_yields_no_items(self) -> None:
        """Test that a document without recognizable arrays yields nothing."""
        assert normalize_documents({}) == []
        assert normalize_documents([{}]) == []

    def test_empty_and_missing_input(self) -> None:
        """Test that empty or missing input yields an empty list."""
        assert normalize_documents([]) == []
        assert normalize_documents(None) == []

    def test_concatenates_all_wrapper_fields_in_order(self) -> None:
        """Test extraction order: items, data, menu, then categories[].items."""
        documents = [
            {
                "categories": [{"name": "Drinks", "items": [{"title": "E"}]}, {"name": "Empty"}],
                "menu": [{"title": "C"}],
                "data": [{"title": "B"}],
                "items": [{"title": "A"}],
            },
            {"items": [{"title": "F"}], "menu": [{"title": "G"}]},
        ]

        result = normalize_documents(documents)

        assert [item["title"] for item in result] == ["A", "B", "C", "E", "F", "G"]

    def test_only_first_document_decides_shape(self) -> None:
        """Test that a wrapper first means every document is unwrapped."""
        documents = [{"items": [{"title": "A"}]}, {"title": "Loose", "price": 1}]

        assert normalize_documents(documents) == [{"title": "A"}]

    def test_ignores_non_list_fields(self) -> None:
        """Test that wrapper fields that are not arrays are skipped."""
        assert extract_wrapped_items({"items": "nope", "categories": {"items": []}}) == []
