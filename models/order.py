from sqlalchemy import Boolean, CheckConstraint, Column, Float, Integer, String, Text, ForeignKey, DateTime
from sqlalchemy.orm import relationship
from database import Base
from datetime import datetime
import uuid


def _new_id() -> str:
    return str(uuid.uuid4())


class Order(Base):
    __tablename__ = "orders"

    id = Column(String(36), primary_key=True, default=_new_id)
    client_id = Column(String(64), nullable=False, index=True)
    # Snapshot of the client's display data at creation time; never re-synced
    client_name = Column(String(255), nullable=False)
    client_account = Column(String(64), nullable=False, default="")
    operation_type = Column(String(30), nullable=False)  # Compra, Venta
    status = Column(String(30), nullable=False, index=True)  # pendiente, tomada, En Proceso, Ejecutada, cancelada, ...
    market = Column(String(50), nullable=True)
    term = Column(String(50), nullable=True)
    notes = Column(Text, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    # Relationships
    line_items = relationship(
        "OrderLineItem",
        back_populates="order",
        cascade="all, delete-orphan",
        order_by="OrderLineItem.created_at",
    )
    observations = relationship(
        "OrderObservation",
        back_populates="order",
        cascade="all, delete-orphan",
        order_by="desc(OrderObservation.created_at)",
    )


class OrderLineItem(Base):
    __tablename__ = "order_line_items"
    __table_args__ = (
        CheckConstraint("quantity > 0", name="ck_order_line_items_quantity_positive"),
        CheckConstraint("price >= 0", name="ck_order_line_items_price_non_negative"),
    )

    id = Column(String(36), primary_key=True, default=_new_id)
    order_id = Column(String(36), ForeignKey('orders.id', ondelete='CASCADE'), nullable=False, index=True)
    ticker = Column(String(20), nullable=False)
    quantity = Column(Integer, nullable=False)
    price = Column(Float, nullable=False, default=0.0)  # ignored for totals when is_market_order
    is_market_order = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    order = relationship("Order", back_populates="line_items")


class OrderObservation(Base):
    """Append-only note on an order; there is no edit or delete path."""
    __tablename__ = "order_observations"

    id = Column(String(36), primary_key=True, default=_new_id)
    order_id = Column(String(36), ForeignKey('orders.id', ondelete='CASCADE'), nullable=False, index=True)
    text = Column(Text, nullable=False)
    author_id = Column(String(64), nullable=True)
    author_name = Column(String(255), nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    order = relationship("Order", back_populates="observations")
