"""Tests for cart teardown."""

import pytest
from sqlalchemy import select

from conftest import ORDER_DATE, make_golfers
from src.core.errors import StoreError
from src.db.models import CartParticipant, CartParticipantOption, ShoppingCart, ShoppingOrder
from src.services import cart_teardown
from src.services.cart_assembly import assemble
from src.services.cart_teardown import teardown, teardown_many


@pytest.fixture
def carts(session):
    """Three carts: two on one session's order, one on another's."""
    first = assemble(session, "sess-a", ORDER_DATE, "price_foursome", make_golfers(4, dexterity="6"))
    second = assemble(session, "sess-a", ORDER_DATE, "price_twosome", make_golfers(2))
    third = assemble(session, "sess-b", ORDER_DATE, "price_solo", make_golfers(1))
    return first, second, third


def _cart_ids(session):
    return session.scalars(select(ShoppingCart.id).order_by(ShoppingCart.id)).all()


class TestTeardown:
    def test_removes_cart_with_participants_and_options(self, session, carts, count_rows):
        first, second, third = carts

        teardown(session, first.cart_id)

        assert _cart_ids(session) == [second.cart_id, third.cart_id]
        assert count_rows(CartParticipant) == 3
        assert count_rows(CartParticipantOption) == 3
        remaining = session.scalars(select(CartParticipant.id)).all()
        assert not set(remaining) & set(first.participant_ids)

    def test_order_is_kept(self, session, carts, count_rows):
        first, second, _ = carts

        teardown(session, first.cart_id)
        teardown(session, second.cart_id)

        assert count_rows(ShoppingOrder) == 2

    def test_unknown_cart_is_a_no_op(self, session, carts, count_rows):
        teardown(session, 999)

        assert count_rows(ShoppingCart) == 3
        assert count_rows(CartParticipant) == 7

    def test_cart_ids_are_not_reused(self, session, carts):
        _, _, third = carts
        teardown(session, third.cart_id)

        again = assemble(session, "sess-b", ORDER_DATE, "price_solo", make_golfers(1))
        assert again.cart_id > third.cart_id


class TestTeardownMany:
    def test_removes_every_listed_cart(self, session, carts, count_rows):
        first, second, third = carts

        teardown_many(session, [first.cart_id, third.cart_id])

        assert _cart_ids(session) == [second.cart_id]
        assert count_rows(CartParticipant) == 2
        assert count_rows(CartParticipantOption) == 2

    def test_failure_stops_batch_and_keeps_earlier_carts_removed(self, session, carts, monkeypatch):
        first, second, third = carts
        original = cart_teardown.delete_cart_rows

        def failing_delete(session, cart_id):
            original(session, cart_id)
            if cart_id == second.cart_id:
                raise StoreError("cart_participant", RuntimeError("disk full"))

        monkeypatch.setattr(cart_teardown, "delete_cart_rows", failing_delete)

        with pytest.raises(StoreError) as exc_info:
            teardown_many(session, [first.cart_id, second.cart_id, third.cart_id])

        assert exc_info.value.stage == "cart_participant"
        # first committed, second rolled back, third never attempted
        assert _cart_ids(session) == [second.cart_id, third.cart_id]
        participants = session.scalars(
            select(CartParticipant.id).where(CartParticipant.cart_id == second.cart_id)
        ).all()
        assert sorted(participants) == sorted(second.participant_ids)
