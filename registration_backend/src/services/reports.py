"""
Dashboard and report queries over the cart and sales tables.

Money values are returned as decimal strings with two places.
"""

from __future__ import annotations

import logging
from decimal import Decimal
from typing import Any, Optional

from sqlalchemy import case, func, select
from sqlalchemy.orm import Session

from src.db.models import (
    CartParticipant,
    CartParticipantOption,
    CategoryOption,
    Customer,
    OptionItem,
    Participant,
    ParticipantOption,
    Purchase,
    SalesOrder,
    ShoppingCart,
    ShoppingOrder,
)
from src.db.session import store_stage

logger = logging.getLogger(__name__)

SOLO = "Solo Registration"
TWOSOME = "Twosome Registration"
FOURSOME = "Foursome Registration"

SHIRT_CATEGORY = "T-Shirt"
DEXTERITY_CATEGORY = "Dexterity"

SHIRT_SIZES = {
    "small": "SMALL",
    "medium": "MEDIUM",
    "large": "LARGE",
    "xlarge": "X-LARGE",
    "xxlarge": "2X-LARGE",
}
CLUBS = {
    "lefthanded": "LEFT-HANDED",
    "righthanded": "RIGHT-HANDED",
}


def _money(value: Optional[Any]) -> str:
    return f"{Decimal(value or 0):.2f}"


def _qty_for(product_name: str):
    return func.coalesce(func.sum(case((Purchase.product_name == product_name, Purchase.qty), else_=0)), 0)


def _collected_for(product_name: str):
    return func.sum(case((Purchase.product_name == product_name, Purchase.price), else_=0))


def _participant_purchases():
    return Participant.__table__.join(Purchase.__table__, Participant.purchase_id == Purchase.id)


def order_data(session: Session, session_id: str) -> list[dict[str, Any]]:
    """Flattened order, cart, participant and option rows for one browser session."""
    stmt = (
        select(
            ShoppingOrder.session_id,
            ShoppingOrder.order_date,
            ShoppingOrder.id,
            ShoppingCart.pricing_id,
            ShoppingCart.id,
            ShoppingCart.qty,
            CartParticipant.id,
            CartParticipant.name,
            OptionItem.name,
            CategoryOption.name,
        )
        .join(ShoppingCart, ShoppingCart.order_id == ShoppingOrder.id)
        .join(CartParticipant, CartParticipant.cart_id == ShoppingCart.id)
        .join(CartParticipantOption, CartParticipantOption.participant_id == CartParticipant.id)
        .join(OptionItem, OptionItem.id == CartParticipantOption.option_item_id)
        .join(CategoryOption, CategoryOption.id == OptionItem.category_option_id)
        .where(ShoppingOrder.session_id == session_id)
        .order_by(ShoppingCart.id, CartParticipant.id, CartParticipantOption.id)
    )
    with store_stage("order_data"):
        rows = session.execute(stmt).all()

    return [
        {
            "sessionid": row[0],
            "orderdate": row[1],
            "shoppingorderid": row[2],
            "pricingid": row[3],
            "shoppingcartid": row[4],
            "qty": row[5],
            "participantid": row[6],
            "participantname": row[7],
            "optionname": row[8],
            "category": row[9],
        }
        for row in rows
    ]


def dashboard_summary(session: Session) -> dict[str, Any]:
    """Registered participants and the money collected for them."""
    stmt = select(func.count(Purchase.qty), func.sum(Purchase.price)).select_from(_participant_purchases())
    with store_stage("dashboard_summary"):
        participants, collected = session.execute(stmt).one()
    return {"participants": participants, "collected": _money(collected)}


def registration_summary(session: Session) -> dict[str, int]:
    """Registered participants per product: solo, twosome and foursome."""
    stmt = select(_qty_for(SOLO), _qty_for(TWOSOME), _qty_for(FOURSOME)).select_from(_participant_purchases())
    with store_stage("registration_summary"):
        solo, twosome, foursome = session.execute(stmt).one()
    return {
        "soloregistration": solo,
        "twosomeregistration": twosome,
        "foursomeregistration": foursome,
    }


def registration_breakdown(session: Session) -> dict[str, Any]:
    """
    Registration quantities and collected money per product.

    NOTE: ``foursomecollected`` sums Solo Registration prices, matching the
    deployed dashboard query.
    """
    stmt = select(
        _qty_for(SOLO),
        _collected_for(SOLO),
        _qty_for(TWOSOME),
        _collected_for(TWOSOME),
        _qty_for(FOURSOME),
        _collected_for(SOLO),
    ).select_from(_participant_purchases())
    with store_stage("registration_breakdown"):
        row = session.execute(stmt).one()
    return {
        "soloregistration": row[0],
        "solocollected": _money(row[1]),
        "twosomeregistration": row[2],
        "twosomecollected": _money(row[3]),
        "foursomeregistration": row[4],
        "foursomecollected": _money(row[5]),
    }


def _option_counts(session: Session, stage: str, names: dict[str, str]) -> dict[str, int]:
    stmt = select(
        *(func.count(case((OptionItem.name == option_name, 1))) for option_name in names.values())
    ).select_from(
        ParticipantOption.__table__.join(OptionItem.__table__, OptionItem.id == ParticipantOption.option_item_id)
    )
    with store_stage(stage):
        row = session.execute(stmt).one()
    return dict(zip(names.keys(), row))


def shirt_summary(session: Session) -> dict[str, int]:
    """Migrated participants per shirt size."""
    return _option_counts(session, "shirt_summary", SHIRT_SIZES)


def club_summary(session: Session) -> dict[str, int]:
    """Migrated participants per dexterity option."""
    return _option_counts(session, "club_summary", CLUBS)


def registration_detail(session: Session) -> list[dict[str, Any]]:
    """
    One record per sales order: customer, member names and the shirt and club of
    each member, aligned by member name. Orders missing either a shirt or a club
    selection are left out.
    """
    stmt = (
        select(
            SalesOrder.id,
            Customer.name,
            Customer.phone,
            Participant.name,
            OptionItem.name,
            CategoryOption.name,
        )
        .join(Customer, Customer.id == SalesOrder.customer_id)
        .join(Purchase, Purchase.sales_order_id == SalesOrder.id)
        .join(Participant, Participant.purchase_id == Purchase.id)
        .join(ParticipantOption, ParticipantOption.participant_id == Participant.id)
        .join(OptionItem, OptionItem.id == ParticipantOption.option_item_id)
        .join(CategoryOption, CategoryOption.id == OptionItem.category_option_id)
        .where(CategoryOption.name.in_([SHIRT_CATEGORY, DEXTERITY_CATEGORY]))
        .order_by(SalesOrder.id, Participant.name, Participant.id)
    )
    with store_stage("registration_detail"):
        rows = session.execute(stmt).all()

    details: dict[int, dict[str, Any]] = {}
    for order_id, customer_name, phone, member, option_name, category in rows:
        detail = details.setdefault(
            order_id,
            {"name": customer_name, "phone": phone, "members": [], "shirt": [], "club": []},
        )
        if category == SHIRT_CATEGORY:
            detail["members"].append(member)
            detail["shirt"].append(option_name)
        else:
            detail["club"].append(option_name)

    return [detail for detail in details.values() if detail["shirt"] and detail["club"]]
