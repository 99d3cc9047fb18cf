from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional

class OrderState(str, Enum):
    PENDING = "pending"
    TAKEN = "taken"
    EXECUTED = "executed"
    CANCELLED = "cancelled"
    REJECTED = "rejected"

# Localized labels accepted for each lifecycle state (compared lower-cased)
STATUS_LABELS: dict[OrderState, tuple[str, ...]] = {
    OrderState.PENDING: ("pendiente",),
    OrderState.TAKEN: ("tomada", "en proceso"),
    OrderState.EXECUTED: ("ejecutada", "completada"),
    OrderState.CANCELLED: ("cancelada",),
    OrderState.REJECTED: ("rechazada",),
}

_LABEL_TO_STATE = {label: state for state, labels in STATUS_LABELS.items() for label in labels}

# Transitions the dashboard offers as buttons. Not enforced server-side.
SUGGESTED_TRANSITIONS: dict[OrderState, tuple[str, ...]] = {
    OrderState.PENDING: ("Ejecutada", "cancelada", "tomada", "rechazada"),
    OrderState.TAKEN: ("Ejecutada", "cancelada"),
    OrderState.EXECUTED: ("pendiente",),
    OrderState.CANCELLED: (),
    OrderState.REJECTED: (),
}

# Statuses listed on the "sent to market" view
SENT_STATUS_LABELS = ("en proceso", "ejecutada")

OPERATION_LABELS = {"buy": "Compra", "sell": "Venta"}


def status_state(label: Optional[str]) -> Optional[OrderState]:
    if not label:
        return None
    return _LABEL_TO_STATE.get(label.strip().lower())


def is_recognized_status(label: Optional[str]) -> bool:
    return status_state(label) is not None


def operation_label(flag: str) -> str:
    # Anything other than "buy" is booked as a sale
    return OPERATION_LABELS["buy"] if (flag or "").lower() == "buy" else OPERATION_LABELS["sell"]


@dataclass
class OrderResult:
    success: bool
    id: Optional[str] = None
    error: Optional[str] = None
    message: Optional[str] = None
    results: Optional[list[dict[str, Any]]] = None

    def as_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {"success": self.success}
        for key in ("id", "error", "message", "results"):
            value = getattr(self, key)
            if value is not None:
                out[key] = value
        return out

    @classmethod
    def failure(cls, error: str) -> "OrderResult":
        return cls(success=False, error=error)


@dataclass
class ClientRecord:
    id: str
    name: str
    account: str = ""
    raw: dict[str, Any] = field(default_factory=dict)


@dataclass
class AssetRecord:
    id: str
    ticker: str
    raw: dict[str, Any] = field(default_factory=dict)
