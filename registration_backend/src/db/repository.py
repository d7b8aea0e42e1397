"""
Generic per-entity operations over the mapped tables.

Entity kinds are an explicit enum; every table the command endpoint can touch
is listed here together with the legacy names clients still send.
"""

from __future__ import annotations

import enum
import logging
from typing import Any, Mapping, Optional, Sequence

from sqlalchemy import Column, delete as sql_delete, inspect, select
from sqlalchemy.orm import Session

from src.core.errors import InvalidRequest
from src.db.models import (
    CartParticipant,
    CartParticipantOption,
    CategoryOption,
    Customer,
    Event,
    OptionItem,
    Organization,
    Package,
    PackageCategory,
    Participant,
    ParticipantOption,
    PaymentProvider,
    Pricing,
    Product,
    Purchase,
    SalesOrder,
    ShoppingCart,
    ShoppingOrder,
    to_record,
)
from src.db.mutation import build_update, coerce, column_for, is_unset
from src.db.session import atomic, store_stage

logger = logging.getLogger(__name__)

_ALIASES = {
    "order": "salesorder",
    "category_options": "category_option",
    "option_items": "option_item",
    "participant_options": "participant_option",
}


class EntityKind(str, enum.Enum):
    ORGANIZATION = "organization"
    EVENT = "event"
    PAYMENT_PROVIDER = "payment_provider"
    PRODUCT = "product"
    PACKAGE_CATEGORY = "package_category"
    PACKAGE = "package"
    CATEGORY_OPTION = "category_option"
    OPTION_ITEM = "option_item"
    PRICING = "pricing"
    CUSTOMER = "customer"
    SALES_ORDER = "salesorder"
    PURCHASE = "purchase"
    PARTICIPANT = "participant"
    PARTICIPANT_OPTION = "participant_option"
    SHOPPING_ORDER = "shopping_order"
    SHOPPING_CART = "shopping_cart"
    CART_PARTICIPANT = "cart_participant"
    CART_PARTICIPANT_OPTION = "cart_participant_option"

    @classmethod
    def _missing_(cls, value: object) -> Optional["EntityKind"]:
        if isinstance(value, str):
            key = value.strip().lower()
            key = _ALIASES.get(key, key)
            for member in cls:
                if member.value == key:
                    return member
        return None

    @classmethod
    def parse(cls, value: str) -> "EntityKind":
        try:
            return cls(value)
        except ValueError:
            raise InvalidRequest(f"unknown table {value!r}", details={"table": value}) from None

    @property
    def model(self) -> type:
        return _MODELS[self]

    @property
    def returns_id(self) -> bool:
        """Creating one of these answers with the generated id instead of a success token."""
        return self in (EntityKind.SHOPPING_ORDER, EntityKind.SHOPPING_CART, EntityKind.CART_PARTICIPANT)


_MODELS = {
    EntityKind.ORGANIZATION: Organization,
    EntityKind.EVENT: Event,
    EntityKind.PAYMENT_PROVIDER: PaymentProvider,
    EntityKind.PRODUCT: Product,
    EntityKind.PACKAGE_CATEGORY: PackageCategory,
    EntityKind.PACKAGE: Package,
    EntityKind.CATEGORY_OPTION: CategoryOption,
    EntityKind.OPTION_ITEM: OptionItem,
    EntityKind.PRICING: Pricing,
    EntityKind.CUSTOMER: Customer,
    EntityKind.SALES_ORDER: SalesOrder,
    EntityKind.PURCHASE: Purchase,
    EntityKind.PARTICIPANT: Participant,
    EntityKind.PARTICIPANT_OPTION: ParticipantOption,
    EntityKind.SHOPPING_ORDER: ShoppingOrder,
    EntityKind.SHOPPING_CART: ShoppingCart,
    EntityKind.CART_PARTICIPANT: CartParticipant,
    EntityKind.CART_PARTICIPANT_OPTION: CartParticipantOption,
}


def _column(kind: EntityKind, field: str) -> Column:
    return column_for(kind.model.__table__, field)


def _predicate(kind: EntityKind, field: str, value: Any):
    column = _column(kind, field)
    return column == coerce(column, value)


def create(session: Session, kind: EntityKind, payload: Mapping[str, Any]) -> Any:
    """Insert one row from a payload keyed by column name; returns the row's primary key."""
    if not payload:
        raise InvalidRequest(f"{kind.value}: empty create payload")

    mapper = inspect(kind.model)
    attributes = {}
    for field, value in payload.items():
        column = _column(kind, field)
        attributes[mapper.get_property_by_column(column).key] = coerce(column, value)

    row = kind.model(**attributes)
    with atomic(session, f"create {kind.value}"), store_stage(kind.value):
        session.add(row)
        session.flush()
        identity = mapper.primary_key_from_instance(row)

    logger.info("Created %s %s", kind.value, identity)
    return identity[0] if len(identity) == 1 else tuple(identity)


def read(session: Session, kind: EntityKind, field: str, value: Any) -> list[dict[str, Any]]:
    """Rows of ``kind`` where ``field`` equals ``value``."""
    stmt = select(kind.model).where(_predicate(kind, field, value))
    with store_stage(kind.value):
        return [to_record(row) for row in session.scalars(stmt)]


def read_all(session: Session, kind: EntityKind) -> list[dict[str, Any]]:
    """Every row of ``kind``, ordered by primary key."""
    stmt = select(kind.model).order_by(*kind.model.__table__.primary_key.columns)
    with store_stage(kind.value):
        return [to_record(row) for row in session.scalars(stmt)]


def update(
    session: Session,
    kind: EntityKind,
    identifiers: Mapping[str, Any],
    set_fields: Sequence[str],
    set_values: Sequence[Any],
) -> int:
    """Apply ``set_fields = set_values`` to the rows matching the set identifier fields."""
    stmt = build_update(kind.model.__table__, set_fields, set_values, identifiers)
    with atomic(session, f"update {kind.value}"), store_stage(f"update {kind.value}"):
        result = session.execute(stmt)
    logger.info("Updated %d %s row(s)", result.rowcount, kind.value)
    return result.rowcount


def delete(session: Session, kind: EntityKind, field: str, value: Any) -> int:
    """Delete the rows of ``kind`` where ``field`` equals ``value``; returns the row count."""
    if is_unset(value):
        raise InvalidRequest(f"{kind.value}: delete requires a value for {field!r}")
    stmt = sql_delete(kind.model.__table__).where(_predicate(kind, field, value))
    with atomic(session, f"delete {kind.value}"), store_stage(f"delete {kind.value}"):
        result = session.execute(stmt)
    logger.info("Deleted %d %s row(s)", result.rowcount, kind.value)
    return result.rowcount
