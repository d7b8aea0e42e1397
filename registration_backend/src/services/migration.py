"""
Migration of a completed shopping order into the permanent sales records.

The pipeline copies the order's ephemeral hierarchy into the sales tables with
set-based ``INSERT ... SELECT`` statements, keeping the ephemeral ids:

    shopping_order          -> salesorder
    shopping_cart           -> purchase
    cart_participant        -> participant
    cart_participant_option -> participant_option

then deletes the ephemeral rows (options, participants, carts, order). All
stages run in one transaction; any failure rolls back the inserts and deletes
already issued, so an order is either fully migrated or untouched.

Migration is one-way: once it commits the ephemeral rows are gone and the same
order id cannot be migrated again. Callers must not migrate one order id from
two places at once.
"""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass
from typing import Optional

from sqlalchemy import Integer, Text, delete, insert, literal, select
from sqlalchemy.orm import Session

from src.core import config
from src.core.errors import NotFound
from src.db.models import (
    CartParticipant,
    CartParticipantOption,
    Customer,
    Participant,
    ParticipantOption,
    Pricing,
    Product,
    Purchase,
    SalesOrder,
    ShoppingCart,
    ShoppingOrder,
)
from src.db.session import BULK_OPTIONS, atomic, store_stage

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CustomerProfile:
    name: str
    email: Optional[str] = None
    phone: Optional[str] = None


@dataclass
class MigrationResult:
    customer_id: int
    sales_order_id: int
    purchases: int
    participants: int
    participant_options: int


def _order_carts(order_id: int):
    return select(ShoppingCart.id).where(ShoppingCart.order_id == order_id)


def _order_participants(order_id: int):
    return select(CartParticipant.id).where(CartParticipant.cart_id.in_(_order_carts(order_id)))


def _insert_customer(session: Session, profile: CustomerProfile, organization_id: uuid.UUID) -> int:
    with store_stage("customer"):
        customer = Customer(
            organization_id=organization_id,
            name=profile.name,
            email=profile.email,
            phone=profile.phone,
        )
        session.add(customer)
        session.flush()
    return customer.id


def _insert_sales_order(session: Session, order_id: int, customer_id: int, payment_id: str) -> None:
    rows = select(
        ShoppingOrder.id,
        literal(customer_id, Integer),
        ShoppingOrder.order_date,
        literal(payment_id, Text),
        literal(config.INVOICE_PLACEHOLDER, Text),
    ).where(ShoppingOrder.id == order_id)
    with store_stage("salesorder"):
        session.execute(
            insert(SalesOrder.__table__).from_select(
                ["salesorderid", "customerid", "orderdate", "paymentid", "invoiceno"], rows
            )
        )


def _insert_purchases(session: Session, order_id: int) -> int:
    # productname carries the product description, as the reports expect
    rows = (
        select(
            ShoppingCart.id,
            ShoppingCart.order_id,
            ShoppingCart.qty,
            Product.description.label("productname"),
            Product.description.label("description"),
            Pricing.price,
        )
        .join(Pricing, ShoppingCart.pricing_id == Pricing.id)
        .join(Product, Pricing.product_id == Product.id)
        .where(ShoppingCart.order_id == order_id)
    )
    with store_stage("purchase"):
        result = session.execute(
            insert(Purchase.__table__).from_select(
                ["purchaseid", "salesorderid", "qty", "productname", "description", "price"], rows
            )
        )
    return result.rowcount


def _insert_participants(session: Session, order_id: int) -> int:
    rows = (
        select(CartParticipant.id, CartParticipant.cart_id, CartParticipant.name)
        .join(ShoppingCart, CartParticipant.cart_id == ShoppingCart.id)
        .where(ShoppingCart.order_id == order_id)
    )
    with store_stage("participant"):
        result = session.execute(
            insert(Participant.__table__).from_select(["participantid", "purchaseid", "name"], rows)
        )
    return result.rowcount


def _insert_participant_options(session: Session, order_id: int) -> int:
    rows = (
        select(
            CartParticipantOption.id,
            CartParticipantOption.participant_id,
            CartParticipantOption.option_item_id,
        )
        .join(CartParticipant, CartParticipantOption.participant_id == CartParticipant.id)
        .join(ShoppingCart, CartParticipant.cart_id == ShoppingCart.id)
        .where(ShoppingCart.order_id == order_id)
    )
    with store_stage("participant_option"):
        result = session.execute(
            insert(ParticipantOption.__table__).from_select(
                ["participantoptionsid", "participantid", "optionitemsid"], rows
            )
        )
    return result.rowcount


def _delete_ephemeral(session: Session, order_id: int) -> None:
    with store_stage("deleting cart_participant_option"):
        session.execute(
            delete(CartParticipantOption).where(
                CartParticipantOption.participant_id.in_(_order_participants(order_id))
            ),
            execution_options=BULK_OPTIONS,
        )

    with store_stage("deleting cart_participant"):
        session.execute(
            delete(CartParticipant).where(CartParticipant.cart_id.in_(_order_carts(order_id))),
            execution_options=BULK_OPTIONS,
        )

    with store_stage("deleting shopping_cart"):
        session.execute(
            delete(ShoppingCart).where(ShoppingCart.order_id == order_id),
            execution_options=BULK_OPTIONS,
        )

    with store_stage("deleting shopping_order"):
        session.execute(
            delete(ShoppingOrder).where(ShoppingOrder.id == order_id),
            execution_options=BULK_OPTIONS,
        )


def migrate(
    session: Session,
    order_id: int,
    profile: CustomerProfile,
    payment_id: str,
    organization_id: Optional[uuid.UUID] = None,
) -> MigrationResult:
    """
    Move shopping order ``order_id`` into the sales tables under a new customer.

    Raises:
        NotFound: No shopping order has ``order_id`` (never present, or already migrated)
        StoreError: A stage failed; nothing was written
    """
    organization_id = organization_id or config.DEFAULT_ORGANIZATION_ID

    logger.info("Migrating shopping order %s", order_id)
    with atomic(session, f"migrate order {order_id}"):
        with store_stage("shopping_order"):
            found = session.execute(
                select(ShoppingOrder.id).where(ShoppingOrder.id == order_id)
            ).scalar_one_or_none()
        if found is None:
            raise NotFound(ShoppingOrder.__tablename__, "shoppingorderid", order_id)

        customer_id = _insert_customer(session, profile, organization_id)
        _insert_sales_order(session, order_id, customer_id, payment_id)
        purchases = _insert_purchases(session, order_id)
        participants = _insert_participants(session, order_id)
        participant_options = _insert_participant_options(session, order_id)
        _delete_ephemeral(session, order_id)

    logger.info(
        "Migrated order %s: customer %s, %d purchase(s), %d participant(s), %d option(s)",
        order_id,
        customer_id,
        purchases,
        participants,
        participant_options,
    )
    return MigrationResult(
        customer_id=customer_id,
        sales_order_id=order_id,
        purchases=purchases,
        participants=participants,
        participant_options=participant_options,
    )
