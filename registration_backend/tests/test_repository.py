"""Tests for the generic entity operations."""

import pytest

from conftest import ORDER_DATE
from src.core.errors import InvalidRequest, ShapeMismatch, StoreError
from src.db import repository
from src.db.models import OptionItem, ShoppingOrder
from src.db.repository import EntityKind


class TestEntityKind:
    @pytest.mark.parametrize(
        "name, expected",
        [
            ("shopping_cart", EntityKind.SHOPPING_CART),
            ("Shopping_Cart", EntityKind.SHOPPING_CART),
            (" pricing ", EntityKind.PRICING),
            ("order", EntityKind.SALES_ORDER),
            ("SalesOrder", EntityKind.SALES_ORDER),
            ("category_options", EntityKind.CATEGORY_OPTION),
            ("option_items", EntityKind.OPTION_ITEM),
            ("participant_options", EntityKind.PARTICIPANT_OPTION),
        ],
    )
    def test_parse_accepts_names_and_aliases(self, name, expected):
        assert EntityKind.parse(name) is expected

    def test_unknown_table_is_rejected(self):
        with pytest.raises(InvalidRequest) as exc_info:
            EntityKind.parse("users; drop table customer")
        assert exc_info.value.kind == "invalid_request"

    def test_every_kind_has_a_model(self):
        for kind in EntityKind:
            assert kind.model.__tablename__ == kind.value

    def test_id_returning_kinds(self):
        assert {kind for kind in EntityKind if kind.returns_id} == {
            EntityKind.SHOPPING_ORDER,
            EntityKind.SHOPPING_CART,
            EntityKind.CART_PARTICIPANT,
        }


class TestCreateAndRead:
    def test_create_returns_generated_id(self, session):
        order_id = repository.create(
            session, EntityKind.SHOPPING_ORDER, {"sessionid": "sess-a", "orderdate": ORDER_DATE}
        )
        cart_id = repository.create(
            session,
            EntityKind.SHOPPING_CART,
            {"shoppingorderid": str(order_id), "pricingid": "price_solo", "qty": "1"},
        )

        assert isinstance(order_id, int)
        rows = repository.read(session, EntityKind.SHOPPING_CART, "shoppingcartid", cart_id)
        assert rows == [{"shoppingcartid": cart_id, "shoppingorderid": order_id, "pricingid": "price_solo", "qty": 1}]

    def test_read_matches_field_value(self, session):
        rows = repository.read(session, EntityKind.OPTION_ITEM, "categoryoptionsid", "2")

        assert [row["name"] for row in rows] == ["LEFT-HANDED", "RIGHT-HANDED"]

    def test_read_all_orders_by_primary_key(self, session):
        rows = repository.read_all(session, EntityKind.PRICING)

        assert [row["pricingid"] for row in rows] == ["price_foursome", "price_solo", "price_twosome"]

    def test_read_unknown_field_is_rejected(self, session):
        with pytest.raises(InvalidRequest):
            repository.read(session, EntityKind.PRICING, "nope", "1")

    def test_create_unknown_field_is_rejected(self, session, count_rows):
        with pytest.raises(InvalidRequest):
            repository.create(session, EntityKind.OPTION_ITEM, {"optionitemsid": 20, "colour": "red"})
        assert count_rows(OptionItem) == 8

    def test_create_constraint_failure_rolls_back(self, session, count_rows):
        with pytest.raises(StoreError) as exc_info:
            repository.create(
                session,
                EntityKind.SHOPPING_CART,
                {"shoppingorderid": 41, "pricingid": "price_solo", "qty": 1},
            )

        assert exc_info.value.stage == "shopping_cart"
        assert count_rows(ShoppingOrder) == 0

    def test_empty_payload_is_rejected(self, session):
        with pytest.raises(InvalidRequest):
            repository.create(session, EntityKind.CUSTOMER, {})


class TestUpdateAndDelete:
    def test_update_uses_set_identifiers_only(self, session):
        count = repository.update(
            session,
            EntityKind.OPTION_ITEM,
            {"optionitemsid": "8", "categoryoptionsid": "", "name": None},
            ["name"],
            ["CART RENTAL"],
        )

        assert count == 1
        rows = repository.read(session, EntityKind.OPTION_ITEM, "optionitemsid", 8)
        assert rows[0]["name"] == "CART RENTAL"
        assert repository.read(session, EntityKind.OPTION_ITEM, "optionitemsid", 7)[0]["name"] == "RIGHT-HANDED"

    def test_update_shape_mismatch(self, session):
        with pytest.raises(ShapeMismatch):
            repository.update(session, EntityKind.OPTION_ITEM, {"optionitemsid": 8}, ["name", "categoryoptionsid"], ["X"])

        assert repository.read(session, EntityKind.OPTION_ITEM, "optionitemsid", 8)[0]["name"] == "GOLF CART"

    def test_delete_removes_matching_rows(self, session, count_rows):
        count = repository.delete(session, EntityKind.OPTION_ITEM, "optionitemsid", "8")

        assert count == 1
        assert count_rows(OptionItem) == 7

    def test_delete_requires_a_value(self, session, count_rows):
        with pytest.raises(InvalidRequest):
            repository.delete(session, EntityKind.OPTION_ITEM, "optionitemsid", "")
        assert count_rows(OptionItem) == 8

    def test_delete_referenced_row_fails_with_stage(self, session):
        with pytest.raises(StoreError) as exc_info:
            repository.delete(session, EntityKind.PRODUCT, "productid", "prod_solo")

        assert exc_info.value.stage == "delete product"
