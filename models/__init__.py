from models.order import Order, OrderLineItem, OrderObservation

__all__ = ["Order", "OrderLineItem", "OrderObservation"]
