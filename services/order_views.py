"""In-memory view operations over an already fetched list of orders.

Works on ORM rows, pydantic models or plain dicts alike; nothing here touches
the database.
"""
from __future__ import annotations
from typing import Any, Iterable, List, Literal, Optional, Sequence
from services.types import SUGGESTED_TRANSITIONS, OrderState, status_state

Direction = Literal["asc", "desc"]


def _get(obj: Any, key: str, default: Any = None) -> Any:
    if isinstance(obj, dict):
        return obj.get(key, default)
    return getattr(obj, key, default)


def _tickers(order: Any) -> List[str]:
    return [_get(item, "ticker") or "" for item in (_get(order, "line_items") or [])]


def matches_search(order: Any, term: str) -> bool:
    term = term.lower()
    return (
        term in (_get(order, "client_name") or "").lower()
        or term in str(_get(order, "id") or "").lower()
        or any(term in t.lower() for t in _tickers(order))
    )


def filter_orders(orders: Iterable[Any], search: Optional[str] = None, status: Optional[str] = None) -> List[Any]:
    result = list(orders)
    if search:
        result = [o for o in result if matches_search(o, search)]
    if status:
        wanted = status.lower()
        result = [o for o in result if (_get(o, "status") or "").lower() == wanted]
    return result


def sort_orders(orders: Iterable[Any], key: Optional[str], direction: Direction = "asc") -> List[Any]:
    result = list(orders)
    if not key:
        return result
    present = [o for o in result if _get(o, key) is not None]
    missing = [o for o in result if _get(o, key) is None]
    # sorted() is stable, so equal keys keep their fetched order
    present.sort(key=lambda o: _get(o, key), reverse=direction == "desc")
    return present + missing


def next_sort(current: Optional[tuple[str, Direction]], key: str) -> tuple[str, Direction]:
    """Clicking the active ascending column flips it; anything else starts ascending."""
    if current and current[0] == key and current[1] == "asc":
        return key, "desc"
    return key, "asc"


def toggle_selection(selected: Sequence[str], order_id: str) -> List[str]:
    if order_id in selected:
        return [i for i in selected if i != order_id]
    return [*selected, order_id]


def select_all_visible(visible: Iterable[Any], selected: Sequence[str]) -> List[str]:
    """Select every visible order, or clear the selection if they all already are."""
    visible_ids = [str(_get(o, "id")) for o in visible]
    if selected and set(selected) == set(visible_ids):
        return []
    return visible_ids


def line_item_total(item: Any) -> Optional[float]:
    if _get(item, "is_market_order"):
        return None
    return float(_get(item, "price") or 0) * int(_get(item, "quantity") or 0)


def suggested_transitions(status: Optional[str]) -> List[str]:
    state = status_state(status)
    if state is None:
        return []
    return list(SUGGESTED_TRANSITIONS[state])


def state_name(status: Optional[str]) -> Optional[str]:
    state = status_state(status)
    return state.value if isinstance(state, OrderState) else None
