"""
Command dispatch: maps an (action, table) pair onto a repository operation,
a pipeline stage or a report.

Composite targets (registration, migration, reports, cart teardown) are looked
up first; any other table name must be an ``EntityKind`` and gets the generic
operation for its action.
"""

from __future__ import annotations

import enum
import logging
from typing import Any, Callable, Optional, TypeVar

from pydantic import BaseModel, ValidationError
from sqlalchemy.orm import Session

from src.api.schemas import (
    Action,
    CartIds,
    Command,
    MigrationPayload,
    RegistrationPayload,
)
from src.core.errors import InvalidRequest
from src.db import repository
from src.db.repository import EntityKind
from src.services import reports
from src.services.cart_assembly import assemble
from src.services.cart_teardown import teardown, teardown_many
from src.services.migration import migrate

logger = logging.getLogger(__name__)

SUCCESS = "success!"

ModelT = TypeVar("ModelT", bound=BaseModel)


class Composite(str, enum.Enum):
    REGISTRATION = "registration"
    MIGRATE_DATA = "migrate_data"
    ORDER_DATA = "order_data"
    DASHBOARD_SUMMARY = "dashboard_summary"
    REGISTRATION_SUMMARY = "registration_summary"
    REGISTRATION_BREAKDOWN = "registration_breakdown"
    SHIRT_SUMMARY = "shirt_summary"
    CLUB_SUMMARY = "club_summary"
    REGISTRATION_DETAIL = "registration_detail"
    SHOPPING_CART = "shopping_cart"
    SHOPPING_CARTS = "shopping_carts"

    @classmethod
    def lookup(cls, table: str) -> Optional["Composite"]:
        key = table.strip().lower()
        for member in cls:
            if member.value == key:
                return member
        return None


def _parse(model: type[ModelT], data: Any) -> ModelT:
    try:
        return model.model_validate(data)
    except ValidationError as e:
        raise InvalidRequest(
            f"invalid {model.__name__} payload: {e.error_count()} error(s)",
            details={"errors": [f"{'.'.join(map(str, err['loc']))}: {err['msg']}" for err in e.errors()]},
        ) from e


# ---------------------------------------------------------------------------
# Composite handlers
# ---------------------------------------------------------------------------


def _create_registration(session: Session, command: Command) -> str:
    payload = _parse(RegistrationPayload, command.create)
    assemble(
        session,
        session_id=payload.sessionid,
        order_date=payload.orderdate,
        pricing_id=payload.pricingid,
        golfers=[golfer.to_golfer() for golfer in payload.golferinfo],
    )
    return SUCCESS


def _migrate_data(session: Session, command: Command) -> str:
    payload = _parse(MigrationPayload, command.create)
    migrate(session, payload.shoppingorderid, payload.to_profile(), payload.paymentid)
    return SUCCESS


def _order_data(session: Session, command: Command) -> list[dict[str, Any]]:
    return reports.order_data(session, str(command.read.value or ""))


def _delete_cart(session: Session, command: Command) -> str:
    cart = _parse(CartIds, {"cart_ids": [command.delete.value]})
    teardown(session, cart.cart_ids[0])
    return SUCCESS


def _delete_carts(session: Session, command: Command) -> str:
    carts = _parse(CartIds, {"cart_ids": command.delete.values})
    teardown_many(session, carts.cart_ids)
    return SUCCESS


def _report(report: Callable[[Session], Any]) -> Callable[[Session, Command], Any]:
    def handler(session: Session, command: Command) -> Any:
        return report(session)

    return handler


COMPOSITE_HANDLERS: dict[tuple[Action, Composite], Callable[[Session, Command], Any]] = {
    (Action.CREATE, Composite.REGISTRATION): _create_registration,
    (Action.CREATE, Composite.MIGRATE_DATA): _migrate_data,
    (Action.READ, Composite.ORDER_DATA): _order_data,
    (Action.READ, Composite.DASHBOARD_SUMMARY): _report(reports.dashboard_summary),
    (Action.READ, Composite.REGISTRATION_SUMMARY): _report(reports.registration_summary),
    (Action.READ, Composite.REGISTRATION_BREAKDOWN): _report(reports.registration_breakdown),
    (Action.READ, Composite.SHIRT_SUMMARY): _report(reports.shirt_summary),
    (Action.READ, Composite.CLUB_SUMMARY): _report(reports.club_summary),
    (Action.READ, Composite.REGISTRATION_DETAIL): _report(reports.registration_detail),
    (Action.DELETE, Composite.SHOPPING_CART): _delete_cart,
    (Action.DELETE, Composite.SHOPPING_CARTS): _delete_carts,
}


# ---------------------------------------------------------------------------
# Generic entity handlers
# ---------------------------------------------------------------------------


def _create_entity(session: Session, kind: EntityKind, command: Command) -> Any:
    identity = repository.create(session, kind, command.create)
    return identity if kind.returns_id else SUCCESS


def _read_entity(session: Session, kind: EntityKind, command: Command) -> list[dict[str, Any]]:
    if not command.read.field:
        raise InvalidRequest(f"{kind.value}: read requires a field")
    return repository.read(session, kind, command.read.field, command.read.value)


def _read_all(session: Session, kind: EntityKind, command: Command) -> list[dict[str, Any]]:
    return repository.read_all(session, kind)


def _update_entity(session: Session, kind: EntityKind, command: Command) -> str:
    repository.update(
        session,
        kind,
        command.update.identifiers,
        command.update.setfields,
        command.update.setvalues,
    )
    return SUCCESS


def _delete_entity(session: Session, kind: EntityKind, command: Command) -> str:
    if not command.delete.field:
        raise InvalidRequest(f"{kind.value}: delete requires a field")
    repository.delete(session, kind, command.delete.field, command.delete.value)
    return SUCCESS


ENTITY_HANDLERS: dict[Action, Callable[[Session, EntityKind, Command], Any]] = {
    Action.CREATE: _create_entity,
    Action.READ: _read_entity,
    Action.READALL: _read_all,
    Action.UPDATE: _update_entity,
    Action.DELETE: _delete_entity,
}


def execute(session: Session, command: Command) -> Any:
    """
    Run one command.

    Returns the success token, a generated id, a record or a list of records.
    Raises RegistrationError subclasses on failure.
    """
    logger.info("Command %s %s", command.action.value, command.table)

    composite = Composite.lookup(command.table)
    if composite is not None:
        handler = COMPOSITE_HANDLERS.get((command.action, composite))
        if handler is not None:
            return handler(session, command)

    kind = EntityKind.parse(command.table)
    return ENTITY_HANDLERS[command.action](session, kind, command)
