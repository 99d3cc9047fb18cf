"""Order data-access service: one function per order-domain operation.

Functions:
- create_order(db, order, line_items) -> OrderResult (order + items in one commit)
- get_order(db, order_id) -> Optional[Order]
- list_orders / list_orders_by_client / list_orders_by_status / list_sent_orders -> List[Order]
- count_orders_by_status(db, status) -> int
- update_order(db, order_id, fields) -> OrderResult
- update_order_status(db, order_id, status, observation=None) -> OrderResult
- record_status_change(db, order_id, status, note=None, at=None) -> OrderResult
- add_observation(db, order_id, text, author_id=None, author_name=None) -> OrderResult
- delete_order(db, order_id) -> OrderResult (line items and observations cascade)

Nothing here raises to the caller: writes return an OrderResult, reads degrade
to an empty list / None / 0 and log the failure.
"""
from __future__ import annotations
from datetime import datetime
from typing import Iterable, List, Optional, Union
from sqlalchemy import func
from sqlalchemy.orm import Session, selectinload
from config import settings
from activity_log import log_error
from models.order import Order, OrderLineItem, OrderObservation
from schemas.order import LineItemCreate, OrderCreate, OrderUpdate
from services.types import OrderResult, SENT_STATUS_LABELS, is_recognized_status

NOT_FOUND = "Order not found"


def _unrecognized(status: Optional[str]) -> OrderResult:
    return OrderResult.failure(f"Unrecognized order status: {status!r}")


def status_change_observation(order_id: str, status: str, text: str, at: datetime) -> OrderObservation:
    return OrderObservation(order_id=order_id, text=f'Cambio de estado a "{status}": {text}', created_at=at)


def create_order(db: Session, order: Union[OrderCreate, dict], line_items: Iterable[Union[LineItemCreate, dict]]) -> OrderResult:
    if isinstance(order, dict):
        order = OrderCreate(**order)
    items = [LineItemCreate(**i) if isinstance(i, dict) else i for i in line_items]
    status = order.status or settings.PENDING_STATUS_LABEL
    if not is_recognized_status(status):
        return _unrecognized(status)
    status = status.strip()
    try:
        now = datetime.utcnow()
        row = Order(**order.model_dump(exclude={"status"}), status=status, created_at=now, updated_at=now)
        db.add(row)
        # flush assigns the generated id before the items reference it
        db.flush()
        for item in items:
            db.add(OrderLineItem(order_id=row.id, **item.model_dump(), created_at=now, updated_at=now))
        db.commit()
        return OrderResult(success=True, id=row.id)
    except Exception as e:
        db.rollback()
        log_error("create_order_failed", e, context={"client_id": order.client_id, "line_items": len(items)})
        return OrderResult.failure("Failed to create order")


def get_order(db: Session, order_id: str) -> Optional[Order]:
    try:
        return (
            db.query(Order)
            .options(selectinload(Order.line_items), selectinload(Order.observations))
            .filter(Order.id == order_id)
            .first()
        )
    except Exception as e:
        log_error("get_order_failed", e, order_id=order_id)
        return None


def _listing(db: Session):
    return db.query(Order).options(selectinload(Order.line_items))


def list_orders(db: Session) -> List[Order]:
    try:
        return _listing(db).order_by(Order.created_at.desc()).all()
    except Exception as e:
        log_error("list_orders_failed", e)
        return []


def list_orders_by_client(db: Session, client_id: str) -> List[Order]:
    try:
        return _listing(db).filter(Order.client_id == client_id).order_by(Order.created_at.desc()).all()
    except Exception as e:
        log_error("list_orders_by_client_failed", e, context={"client_id": client_id})
        return []


def list_orders_by_status(db: Session, status: str) -> List[Order]:
    try:
        return (
            _listing(db)
            .filter(func.lower(Order.status) == status.strip().lower())
            .order_by(Order.created_at.desc())
            .all()
        )
    except Exception as e:
        log_error("list_orders_by_status_failed", e, context={"status": status})
        return []


def list_sent_orders(db: Session) -> List[Order]:
    try:
        return (
            _listing(db)
            .filter(func.lower(Order.status).in_(SENT_STATUS_LABELS))
            .order_by(Order.updated_at.desc())
            .all()
        )
    except Exception as e:
        log_error("list_sent_orders_failed", e)
        return []


def count_orders_by_status(db: Session, status: str) -> int:
    try:
        return db.query(func.count(Order.id)).filter(func.lower(Order.status) == status.strip().lower()).scalar() or 0
    except Exception as e:
        log_error("count_orders_by_status_failed", e, context={"status": status})
        return 0


def update_order(db: Session, order_id: str, fields: Union[OrderUpdate, dict]) -> OrderResult:
    if isinstance(fields, dict):
        fields = OrderUpdate(**fields)
    changes = fields.model_dump(exclude_unset=True)
    if "status" in changes and not is_recognized_status(changes["status"]):
        return _unrecognized(changes["status"])
    if "status" in changes:
        changes["status"] = changes["status"].strip()
    try:
        order = db.get(Order, order_id)
        if not order:
            return OrderResult.failure(NOT_FOUND)
        for key, value in changes.items():
            setattr(order, key, value)
        order.updated_at = datetime.utcnow()
        db.commit()
        return OrderResult(success=True)
    except Exception as e:
        db.rollback()
        log_error("update_order_failed", e, order_id=order_id, context={"fields": sorted(changes)})
        return OrderResult.failure("Failed to update order")


def record_status_change(
    db: Session,
    order_id: str,
    status: str,
    note: Optional[str] = None,
    at: Optional[datetime] = None,
    observation_builder=None,
) -> OrderResult:
    """Set the order's status and optionally append an observation.

    Both writes share one commit: if the observation cannot be stored the
    status change is rolled back too. Transition legality is not checked;
    any recognized label is accepted from any state.
    """
    if not is_recognized_status(status):
        return _unrecognized(status)
    at = at or datetime.utcnow()
    status = status.strip()
    try:
        order = db.get(Order, order_id)
        if not order:
            return OrderResult.failure(NOT_FOUND)
        order.status = status
        order.updated_at = at
        if note:
            if observation_builder is not None:
                observation = observation_builder(order.id, status, note, at)
            else:
                observation = OrderObservation(order_id=order.id, text=note, created_at=at)
            db.add(observation)
        db.commit()
        return OrderResult(success=True)
    except Exception as e:
        db.rollback()
        log_error("update_order_status_failed", e, order_id=order_id, context={"status": status})
        return OrderResult.failure("Failed to update order status")


def update_order_status(db: Session, order_id: str, status: str, observation: Optional[str] = None) -> OrderResult:
    return record_status_change(db, order_id, status, note=observation, observation_builder=status_change_observation)


def add_observation(
    db: Session,
    order_id: str,
    text: str,
    author_id: Optional[str] = None,
    author_name: Optional[str] = None,
) -> OrderResult:
    if not text or not text.strip():
        return OrderResult.failure("Observation text is required")
    try:
        if db.get(Order, order_id) is None:
            return OrderResult.failure(NOT_FOUND)
        row = OrderObservation(
            order_id=order_id,
            text=text,
            author_id=author_id,
            author_name=author_name,
            created_at=datetime.utcnow(),
        )
        db.add(row)
        db.commit()
        return OrderResult(success=True, id=row.id)
    except Exception as e:
        db.rollback()
        log_error("add_observation_failed", e, order_id=order_id)
        return OrderResult.failure("Failed to add observation")


def delete_order(db: Session, order_id: str) -> OrderResult:
    try:
        order = db.get(Order, order_id)
        if not order:
            return OrderResult.failure(NOT_FOUND)
        db.delete(order)
        db.commit()
        return OrderResult(success=True)
    except Exception as e:
        db.rollback()
        log_error("delete_order_failed", e, order_id=order_id)
        return OrderResult.failure("Failed to delete order")
