"""Simple in-process event bus.

Successful order writes publish ``orders.invalidated`` with the list of view
paths whose cached rendering is now stale. Dashboards (or tests) subscribe to
it; a multi-process deployment would swap this for Redis pub/sub.
"""
from collections import defaultdict
from typing import Callable, Dict, List
import threading
import logging

logger = logging.getLogger(__name__)

_lock = threading.Lock()
_subscribers: Dict[str, List[Callable[[dict], None]]] = defaultdict(list)

def subscribe(event_type: str, callback: Callable[[dict], None]):
    with _lock:
        _subscribers[event_type].append(callback)

def unsubscribe(event_type: str, callback: Callable[[dict], None]):
    with _lock:
        subs = _subscribers.get(event_type)
        if subs and callback in subs:
            subs.remove(callback)

def publish(event_type: str, payload: dict):
    # Copy to avoid mutation while iterating
    with _lock:
        subs = list(_subscribers.get(event_type, []))
        subs_all = list(_subscribers.get("*", []))
    for cb in subs + subs_all:
        try:
            cb({"type": event_type, **payload})
        except Exception as e:
            logger.warning("Subscriber for %s failed: %s", event_type, e)
