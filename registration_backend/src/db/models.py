"""
SQLAlchemy ORM models reflecting the existing registration schema.

Important:
- Column names follow the deployed schema (``shoppingorderid``, ``optionitemsid``, ...);
  Python attributes use readable names and map onto them.
- Records are serialized with the schema's column names as keys, see ``to_record``.
- The ephemeral cart tables use AUTOINCREMENT on SQLite so ids are never reused;
  migrated permanent rows keep the ephemeral ids.
"""

from __future__ import annotations

import uuid
from datetime import datetime
from decimal import Decimal
from typing import Any, List, Optional

from sqlalchemy import (
    Boolean,
    DateTime,
    ForeignKey,
    Integer,
    Numeric,
    String,
    Text,
    Uuid,
    inspect,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from src.db.base import Base


class Organization(Base):
    """organization table."""

    __tablename__ = "organization"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    name: Mapped[str] = mapped_column(Text, nullable=False)
    address: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    city: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    state: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    post_code: Mapped[Optional[str]] = mapped_column("postcode", Text, nullable=True)
    is_active: Mapped[bool] = mapped_column("isactive", Boolean, nullable=False, default=True)

    events: Mapped[List["Event"]] = relationship("Event", back_populates="organization")


class Event(Base):
    """event table."""

    __tablename__ = "event"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    organization_id: Mapped[uuid.UUID] = mapped_column("organizationid", Uuid, ForeignKey("organization.id"), nullable=False)
    name: Mapped[str] = mapped_column(Text, nullable=False)
    location: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    capacity: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    starts_on: Mapped[Optional[datetime]] = mapped_column("startson", DateTime(timezone=True), nullable=True)
    ends_on: Mapped[Optional[datetime]] = mapped_column("endson", DateTime(timezone=True), nullable=True)

    organization: Mapped[Organization] = relationship("Organization", back_populates="events")


class PaymentProvider(Base):
    """payment_provider table."""

    __tablename__ = "payment_provider"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    name: Mapped[str] = mapped_column(Text, nullable=False)


class Product(Base):
    """product table."""

    __tablename__ = "product"

    id: Mapped[str] = mapped_column("productid", String, primary_key=True)
    payment_provider_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        "paymentproviderid", Uuid, ForeignKey("payment_provider.id"), nullable=True
    )
    description: Mapped[str] = mapped_column(Text, nullable=False)


class PackageCategory(Base):
    """package_category table."""

    __tablename__ = "package_category"

    id: Mapped[int] = mapped_column("packagecategoryid", Integer, primary_key=True)
    name: Mapped[str] = mapped_column(Text, nullable=False)


class Package(Base):
    """package table."""

    __tablename__ = "package"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    event_id: Mapped[int] = mapped_column("eventid", Integer, ForeignKey("event.id"), nullable=False)
    product_id: Mapped[str] = mapped_column("productid", String, ForeignKey("product.productid"), nullable=False)
    package_category_id: Mapped[int] = mapped_column(
        "packagecategoryid", Integer, ForeignKey("package_category.packagecategoryid"), nullable=False
    )
    name: Mapped[str] = mapped_column(Text, nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)


class CategoryOption(Base):
    """category_option table: option families such as T-Shirt or Dexterity."""

    __tablename__ = "category_option"

    id: Mapped[int] = mapped_column("categoryoptionsid", Integer, primary_key=True)
    package_category_id: Mapped[Optional[int]] = mapped_column(
        "packagecategoryid", Integer, ForeignKey("package_category.packagecategoryid"), nullable=True
    )
    name: Mapped[str] = mapped_column(Text, nullable=False)

    items: Mapped[List["OptionItem"]] = relationship("OptionItem", back_populates="category")


class OptionItem(Base):
    """option_item table: a selectable value such as LARGE or LEFT-HANDED."""

    __tablename__ = "option_item"

    id: Mapped[int] = mapped_column("optionitemsid", Integer, primary_key=True)
    category_option_id: Mapped[int] = mapped_column(
        "categoryoptionsid", Integer, ForeignKey("category_option.categoryoptionsid"), nullable=False
    )
    name: Mapped[str] = mapped_column(Text, nullable=False)

    category: Mapped[CategoryOption] = relationship("CategoryOption", back_populates="items")


class Pricing(Base):
    """pricing table."""

    __tablename__ = "pricing"

    id: Mapped[str] = mapped_column("pricingid", String, primary_key=True)
    product_id: Mapped[str] = mapped_column("productid", String, ForeignKey("product.productid"), nullable=False)
    price: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)

    product: Mapped[Product] = relationship("Product")


# ---------------------------------------------------------------------------
# Permanent sales hierarchy
# ---------------------------------------------------------------------------


class Customer(Base):
    """customer table."""

    __tablename__ = "customer"
    __table_args__ = {"sqlite_autoincrement": True}

    id: Mapped[int] = mapped_column("customerid", Integer, primary_key=True)
    organization_id: Mapped[uuid.UUID] = mapped_column("organizationid", Uuid, ForeignKey("organization.id"), nullable=False)
    name: Mapped[str] = mapped_column(Text, nullable=False)
    email: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    phone: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    sales_orders: Mapped[List["SalesOrder"]] = relationship("SalesOrder", back_populates="customer")


class SalesOrder(Base):
    """salesorder table; the id is the migrated shopping order id."""

    __tablename__ = "salesorder"

    id: Mapped[int] = mapped_column("salesorderid", Integer, primary_key=True, autoincrement=False)
    order_date: Mapped[datetime] = mapped_column("orderdate", DateTime(timezone=True), nullable=False)
    customer_id: Mapped[int] = mapped_column("customerid", Integer, ForeignKey("customer.customerid"), nullable=False)
    payment_id: Mapped[Optional[str]] = mapped_column("paymentid", Text, nullable=True)
    invoice_no: Mapped[Optional[str]] = mapped_column("invoiceno", Text, nullable=True)

    customer: Mapped[Customer] = relationship("Customer", back_populates="sales_orders")
    purchases: Mapped[List["Purchase"]] = relationship("Purchase", back_populates="sales_order")


class Purchase(Base):
    """purchase table; the id is the migrated shopping cart id."""

    __tablename__ = "purchase"

    id: Mapped[int] = mapped_column("purchaseid", Integer, primary_key=True, autoincrement=False)
    sales_order_id: Mapped[int] = mapped_column("salesorderid", Integer, ForeignKey("salesorder.salesorderid"), nullable=False)
    qty: Mapped[int] = mapped_column(Integer, nullable=False)
    product_name: Mapped[str] = mapped_column("productname", Text, nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    price: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)

    sales_order: Mapped[SalesOrder] = relationship("SalesOrder", back_populates="purchases")
    participants: Mapped[List["Participant"]] = relationship("Participant", back_populates="purchase")


class Participant(Base):
    """participant table; the id is the migrated cart participant id."""

    __tablename__ = "participant"

    id: Mapped[int] = mapped_column("participantid", Integer, primary_key=True, autoincrement=False)
    purchase_id: Mapped[int] = mapped_column("purchaseid", Integer, ForeignKey("purchase.purchaseid"), nullable=False)
    name: Mapped[str] = mapped_column(Text, nullable=False)

    purchase: Mapped[Purchase] = relationship("Purchase", back_populates="participants")
    options: Mapped[List["ParticipantOption"]] = relationship("ParticipantOption", back_populates="participant")


class ParticipantOption(Base):
    """participant_option table."""

    __tablename__ = "participant_option"

    id: Mapped[int] = mapped_column("participantoptionsid", Integer, primary_key=True, autoincrement=False)
    participant_id: Mapped[int] = mapped_column(
        "participantid", Integer, ForeignKey("participant.participantid"), nullable=False
    )
    option_item_id: Mapped[int] = mapped_column(
        "optionitemsid", Integer, ForeignKey("option_item.optionitemsid"), nullable=False
    )

    participant: Mapped[Participant] = relationship("Participant", back_populates="options")
    option_item: Mapped[OptionItem] = relationship("OptionItem")


# ---------------------------------------------------------------------------
# Ephemeral cart hierarchy
# ---------------------------------------------------------------------------


class ShoppingOrder(Base):
    """shopping_order table; at most one row per session."""

    __tablename__ = "shopping_order"
    __table_args__ = {"sqlite_autoincrement": True}

    id: Mapped[int] = mapped_column("shoppingorderid", Integer, primary_key=True)
    order_date: Mapped[datetime] = mapped_column("orderdate", DateTime(timezone=True), nullable=False)
    session_id: Mapped[str] = mapped_column("sessionid", Text, nullable=False, unique=True)

    carts: Mapped[List["ShoppingCart"]] = relationship("ShoppingCart", back_populates="order")


class ShoppingCart(Base):
    """shopping_cart table: one registration line of an order."""

    __tablename__ = "shopping_cart"
    __table_args__ = {"sqlite_autoincrement": True}

    id: Mapped[int] = mapped_column("shoppingcartid", Integer, primary_key=True)
    order_id: Mapped[int] = mapped_column(
        "shoppingorderid", Integer, ForeignKey("shopping_order.shoppingorderid"), nullable=False
    )
    pricing_id: Mapped[str] = mapped_column("pricingid", String, ForeignKey("pricing.pricingid"), nullable=False)
    qty: Mapped[int] = mapped_column(Integer, nullable=False)

    order: Mapped[ShoppingOrder] = relationship("ShoppingOrder", back_populates="carts")
    participants: Mapped[List["CartParticipant"]] = relationship("CartParticipant", back_populates="cart")


class CartParticipant(Base):
    """cart_participant table."""

    __tablename__ = "cart_participant"
    __table_args__ = {"sqlite_autoincrement": True}

    id: Mapped[int] = mapped_column("cartparticipantid", Integer, primary_key=True)
    cart_id: Mapped[int] = mapped_column(
        "shoppingcartid", Integer, ForeignKey("shopping_cart.shoppingcartid"), nullable=False
    )
    name: Mapped[str] = mapped_column(Text, nullable=False)

    cart: Mapped[ShoppingCart] = relationship("ShoppingCart", back_populates="participants")
    options: Mapped[List["CartParticipantOption"]] = relationship("CartParticipantOption", back_populates="participant")


class CartParticipantOption(Base):
    """cart_participant_option table."""

    __tablename__ = "cart_participant_option"
    __table_args__ = {"sqlite_autoincrement": True}

    id: Mapped[int] = mapped_column("cartparticipantoptionsid", Integer, primary_key=True)
    participant_id: Mapped[int] = mapped_column(
        "cartparticipantid", Integer, ForeignKey("cart_participant.cartparticipantid"), nullable=False
    )
    option_item_id: Mapped[int] = mapped_column(
        "optionitemsid", Integer, ForeignKey("option_item.optionitemsid"), nullable=False
    )

    participant: Mapped[CartParticipant] = relationship("CartParticipant", back_populates="options")
    option_item: Mapped[OptionItem] = relationship("OptionItem")


def to_record(obj: Base) -> dict[str, Any]:
    """Serialize a mapped row keyed by schema column names."""
    mapper = inspect(obj).mapper
    return {prop.columns[0].name: getattr(obj, prop.key) for prop in mapper.column_attrs}
