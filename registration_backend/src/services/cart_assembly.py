"""
Cart assembly: turns one registration submission into ephemeral cart rows.

A submission names the browser session, the pricing tier and one, two or four
golfers. The session's shopping order is reused when it exists, a cart line is
added under it, and each golfer becomes a cart participant with a shirt-size
option and, optionally, a dexterity option. The whole assembly is one unit of
work: any failure rolls back every row it wrote.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from datetime import datetime
from typing import Sequence

from sqlalchemy import select
from sqlalchemy.orm import Session

from src.core.errors import InvalidOptionCode, InvalidParticipantCount
from src.db.models import CartParticipant, CartParticipantOption, ShoppingCart, ShoppingOrder
from src.db.session import atomic, store_stage

logger = logging.getLogger(__name__)

VALID_GOLFER_COUNTS = frozenset({1, 2, 4})
CART_LINE_QTY = 1

# Dexterity option items are accepted only strictly inside this range (6 or 7);
# codes outside it are dropped without error.
DEXTERITY_LOWER_EXCLUSIVE = 5
DEXTERITY_UPPER_EXCLUSIVE = 8

# Option codes are plain ASCII signed integers, matched in full.
_OPTION_CODE = re.compile(r"[+-]?[0-9]+")


@dataclass(frozen=True)
class Golfer:
    name: str
    shirt_size_code: str
    dexterity_code: str = ""


@dataclass
class AssemblyResult:
    order_id: int
    cart_id: int
    participant_ids: list[int] = field(default_factory=list)


def parse_option_code(option: str, code: str) -> int:
    """Option item id named by ``code``; raises InvalidOptionCode unless it is a plain integer."""
    if not isinstance(code, str) or _OPTION_CODE.fullmatch(code) is None:
        raise InvalidOptionCode(option, str(code))
    return int(code)


def dexterity_option(code: str) -> int | None:
    """Option item id to attach for a dexterity code, or None when nothing is attached."""
    if code is None or code == "":
        return None
    dexterity = parse_option_code("dexterity", code)
    if DEXTERITY_LOWER_EXCLUSIVE < dexterity < DEXTERITY_UPPER_EXCLUSIVE:
        return dexterity
    logger.debug("Ignoring dexterity code %s outside the accepted range", dexterity)
    return None


def get_or_create_order(session: Session, session_id: str, order_date: datetime) -> ShoppingOrder:
    """Shopping order for ``session_id``; created with ``order_date`` when absent."""
    with store_stage("shopping_order"):
        order = session.scalars(select(ShoppingOrder).where(ShoppingOrder.session_id == session_id)).one_or_none()
        if order is not None:
            logger.debug("Reusing shopping order %s for session", order.id)
            return order

        order = ShoppingOrder(session_id=session_id, order_date=order_date)
        session.add(order)
        session.flush()
    logger.debug("Created shopping order %s", order.id)
    return order


def _add_option(session: Session, participant_id: int, option_item_id: int, stage: str) -> None:
    with store_stage(stage):
        session.add(CartParticipantOption(participant_id=participant_id, option_item_id=option_item_id))
        session.flush()


def assemble(
    session: Session,
    session_id: str,
    order_date: datetime,
    pricing_id: str,
    golfers: Sequence[Golfer],
) -> AssemblyResult:
    """
    Build a cart line with its participants and options for one session.

    Raises:
        InvalidParticipantCount: ``len(golfers)`` is not 1, 2 or 4; nothing is written
        InvalidOptionCode: A shirt-size or dexterity code is not numeric
        StoreError: A statement failed; the stage names which one
    """
    if len(golfers) not in VALID_GOLFER_COUNTS:
        raise InvalidParticipantCount(len(golfers))

    logger.info("Assembling cart for pricing %s with %d golfer(s)", pricing_id, len(golfers))
    with atomic(session, "assemble"):
        order = get_or_create_order(session, session_id, order_date)

        with store_stage("shopping_cart"):
            cart = ShoppingCart(order_id=order.id, pricing_id=pricing_id, qty=CART_LINE_QTY)
            session.add(cart)
            session.flush()

        result = AssemblyResult(order_id=order.id, cart_id=cart.id)
        for golfer in golfers:
            with store_stage("cart_participant"):
                participant = CartParticipant(cart_id=cart.id, name=golfer.name)
                session.add(participant)
                session.flush()
            result.participant_ids.append(participant.id)

            shirt_size = parse_option_code("shirtsize", golfer.shirt_size_code)
            _add_option(session, participant.id, shirt_size, "cart_participant_option: shirtsize")

            dexterity = dexterity_option(golfer.dexterity_code)
            if dexterity is not None:
                _add_option(session, participant.id, dexterity, "cart_participant_option: dexterity")

    logger.info("Assembled cart %s on order %s", result.cart_id, result.order_id)
    return result
