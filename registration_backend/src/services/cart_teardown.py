"""
Cart teardown: removes a cart line and everything hanging off it.

Rows go in foreign-key order: participant options, participants, then the cart.
"""

from __future__ import annotations

import logging
from typing import Iterable

from sqlalchemy import delete, select
from sqlalchemy.orm import Session

from src.db.models import CartParticipant, CartParticipantOption, ShoppingCart
from src.db.session import BULK_OPTIONS, atomic, store_stage

logger = logging.getLogger(__name__)


def delete_cart_rows(session: Session, cart_id: int) -> None:
    """Issue the three deletes for ``cart_id`` on the caller's transaction."""
    participant_ids = select(CartParticipant.id).where(CartParticipant.cart_id == cart_id)

    with store_stage("cart_participant_option"):
        session.execute(
            delete(CartParticipantOption).where(CartParticipantOption.participant_id.in_(participant_ids)),
            execution_options=BULK_OPTIONS,
        )

    with store_stage("cart_participant"):
        session.execute(
            delete(CartParticipant).where(CartParticipant.cart_id == cart_id),
            execution_options=BULK_OPTIONS,
        )

    with store_stage("shopping_cart"):
        session.execute(
            delete(ShoppingCart).where(ShoppingCart.id == cart_id),
            execution_options=BULK_OPTIONS,
        )


def teardown(session: Session, cart_id: int) -> None:
    """Delete one cart line with its participants and their options."""
    with atomic(session, f"teardown cart {cart_id}"):
        delete_cart_rows(session, cart_id)
    logger.info("Removed cart %s", cart_id)


def teardown_many(session: Session, cart_ids: Iterable[int]) -> None:
    """
    Tear down each cart in turn. Every cart is its own unit of work: a failure
    stops the batch but carts removed before it stay removed.
    """
    for cart_id in cart_ids:
        teardown(session, cart_id)
