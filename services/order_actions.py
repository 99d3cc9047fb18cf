"""Order use cases composed from the data-access functions in services.orders.

Each successful write publishes ``orders.invalidated`` so dashboards refetch.
Multi-order flows (bulk, swap, send to market) run strictly one order at a
time and never undo orders that were already written.
"""
from __future__ import annotations
from datetime import datetime
from typing import List, Optional
import random
import time
from sqlalchemy.orm import Session
from config import settings
from activity_log import log_action, log_error
from event_bus import publish
from schemas.order import (
    BulkOrderIn, IndividualOrderIn, LineItemCreate, ObservationCreate,
    OrderCreate, OrderUpdate, SwapOrderIn,
)
from services import orders as order_store
from services.directory import Directory
from services.types import ClientRecord, OrderResult, operation_label

INVALIDATION_EVENT = "orders.invalidated"
BASE_VIEW_PATHS = ("/", "/ordenes")


def invalidate(*extra_paths: str):
    publish(INVALIDATION_EVENT, {"paths": [*BASE_VIEW_PATHS, *extra_paths]})


def new_swap_token() -> str:
    return f"SWAP-{int(time.time() * 1000)}-{random.randint(0, 999)}"


def _order_input(client: ClientRecord, operation_type: str, market: Optional[str], term: Optional[str] = None, notes: Optional[str] = None) -> OrderCreate:
    return OrderCreate(
        client_id=client.id,
        client_name=client.name,
        client_account=client.account,
        operation_type=operation_type,
        status=settings.PENDING_STATUS_LABEL,
        market=market,
        term=term,
        notes=notes,
    )


def create_order_with_items(db: Session, order: OrderCreate, line_items: List[LineItemCreate]) -> OrderResult:
    result = order_store.create_order(db, order, line_items)
    if result.success:
        invalidate()
    return result


async def create_individual_order(db: Session, directory: Directory, data: IndividualOrderIn) -> OrderResult:
    try:
        client = await directory.get_client(data.client_id)
        if not client:
            return OrderResult.failure("Client not found")
        asset = await directory.get_asset(data.asset_id)
        if not asset:
            return OrderResult.failure("Asset not found")

        order = _order_input(client, operation_label(data.operation_type), data.market, notes=data.notes)
        item = LineItemCreate(
            ticker=asset.ticker,
            quantity=data.quantity,
            price=0.0 if data.is_market_order else data.price,
            is_market_order=data.is_market_order,
        )
        return create_order_with_items(db, order, [item])
    except Exception as e:
        log_error("create_individual_order_failed", e, context={"client_id": data.client_id, "asset_id": data.asset_id})
        return OrderResult.failure("Failed to create order")


async def create_bulk_orders(db: Session, directory: Directory, data: BulkOrderIn) -> OrderResult:
    """Create one order per line.

    Lines whose asset cannot be resolved are skipped without counting as a
    failure, while any line that fails to persist turns the whole batch into
    a failure. Orders already written stay in place either way, so re-running
    a failed batch duplicates the lines that had succeeded.
    """
    try:
        client = await directory.get_client(data.client_id)
        if not client:
            return OrderResult.failure("Client not found")

        results: List[OrderResult] = []
        for line in data.orders:
            asset = await directory.get_asset(line.asset_id)
            if not asset:
                log_action("bulk_order_line_skipped", context={"client_id": client.id, "asset_id": line.asset_id})
                continue
            order = _order_input(client, operation_label(line.operation_type), line.market, line.term, data.notes)
            item = LineItemCreate(ticker=asset.ticker, quantity=line.quantity, price=line.price, is_market_order=False)
            results.append(order_store.create_order(db, order, [item]))

        created = sum(1 for r in results if r.success)
        all_ok = all(r.success for r in results)
        if created:
            invalidate()
        return OrderResult(
            success=all_ok,
            message=f"{created} orders created successfully",
            error=None if all_ok else "Some orders could not be created",
        )
    except Exception as e:
        log_error("create_bulk_orders_failed", e, context={"client_id": data.client_id, "lines": len(data.orders)})
        return OrderResult.failure("Failed to create orders")


async def create_swap(db: Session, directory: Directory, data: SwapOrderIn) -> OrderResult:
    """Create the sell leg, then the buy leg, tied together only by a token in their notes.

    The returned id is the sell leg's while ``success`` reflects the buy leg.
    """
    try:
        client = await directory.get_client(data.client_id)
        if not client:
            return OrderResult.failure("Client not found")
        sell_asset = await directory.get_asset(data.sell_order.asset_id)
        if not sell_asset:
            return OrderResult.failure("Sell asset not found")
        buy_asset = await directory.get_asset(data.buy_order.asset_id)
        if not buy_asset:
            return OrderResult.failure("Buy asset not found")

        swap_id = new_swap_token()
        extra = data.notes or ""

        sell = data.sell_order
        sell_result = order_store.create_order(
            db,
            _order_input(client, operation_label("sell"), sell.market, sell.term,
                         f"Parte de operación swap ({swap_id}). {extra}"),
            [LineItemCreate(ticker=sell_asset.ticker, quantity=sell.quantity, price=sell.price)],
        )
        if not sell_result.success:
            return sell_result

        buy = data.buy_order
        buy_result = order_store.create_order(
            db,
            _order_input(client, operation_label("buy"), buy.market, buy.term,
                         f"Parte de operación swap ({swap_id}). Fondos provenientes de venta de {sell_asset.ticker}. {extra}"),
            [LineItemCreate(ticker=buy_asset.ticker, quantity=buy.quantity, price=buy.price)],
        )
        invalidate()
        log_action("swap_created", sell_result.id, context={"swap_id": swap_id, "buy_order_id": buy_result.id})
        return OrderResult(
            success=buy_result.success,
            message="Swap created successfully",
            id=sell_result.id,
            error=None if buy_result.success else "Failed to create buy order",
        )
    except Exception as e:
        log_error("create_swap_failed", e, context={"client_id": data.client_id})
        return OrderResult.failure("Failed to create swap")


def send_orders_to_market(db: Session, order_ids: List[str]) -> OrderResult:
    # One timestamp for the whole batch
    sent_at = datetime.utcnow()
    results: list[dict] = []
    for order_id in order_ids:
        result = order_store.record_status_change(
            db, order_id, settings.IN_PROCESS_STATUS_LABEL,
            note=settings.SENT_TO_MARKET_NOTE, at=sent_at,
        )
        if not result.success:
            log_error("send_to_market_aborted", Exception(result.error or "unknown"), order_id=order_id,
                      context={"already_sent": [r["id"] for r in results]})
            if results:
                invalidate("/trading")
            return OrderResult(success=False, error=result.error or "Failed to send orders to market", results=results)
        results.append({"id": order_id, "status": "sent"})
    invalidate("/trading")
    return OrderResult(success=True, results=results)


def change_order_status(db: Session, order_id: str, status: str, observation: Optional[str] = None) -> OrderResult:
    result = order_store.update_order_status(db, order_id, status, observation)
    if result.success:
        invalidate(f"/ordenes/{order_id}")
    return result


def edit_order(db: Session, order_id: str, fields: OrderUpdate) -> OrderResult:
    result = order_store.update_order(db, order_id, fields)
    if result.success:
        invalidate(f"/ordenes/{order_id}")
    return result


def add_order_observation(db: Session, order_id: str, data: ObservationCreate) -> OrderResult:
    result = order_store.add_observation(db, order_id, data.text, data.author_id, data.author_name)
    if result.success:
        invalidate(f"/ordenes/{order_id}")
    return result


def remove_order(db: Session, order_id: str) -> OrderResult:
    result = order_store.delete_order(db, order_id)
    if result.success:
        invalidate()
    return result
