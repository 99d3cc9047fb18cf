from fastapi import APIRouter, Depends, Query, Request
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session
from typing import List, Literal, Optional
from database import get_db
from activity_log import log_error, log_request
from schemas.order import (
    BulkOrderIn, IndividualOrderIn, ObservationCreate, OrderCreateRequest,
    OrderDetailOut, OrderOut, OrderUpdate, SendToMarketIn, StatusUpdate, SwapOrderIn,
)
from services import order_actions
from services import orders as order_store
from services.directory import Directory, get_directory
from services.order_views import filter_orders, sort_orders, state_name, suggested_transitions
from services.types import OrderResult

router = APIRouter(prefix="/orders", tags=["orders"])

SORTABLE_FIELDS = {"id", "client_id", "client_name", "operation_type", "status", "market", "term", "created_at", "updated_at"}


def _respond(result: OrderResult, fallback: str):
    if not result.success:
        return JSONResponse(status_code=400, content={"error": result.error or fallback})
    return result.as_dict()


def _server_error(action: str, e: Exception, correlation_id: str, order_id: Optional[str] = None):
    log_error(action, e, order_id=order_id, correlation_id=correlation_id)
    return JSONResponse(status_code=500, content={"error": str(e) or "Internal server error"})


@router.get("", response_model=List[OrderOut])
async def list_orders(
    request: Request,
    client_id: Optional[str] = Query(None),
    status: Optional[str] = Query(None, description="Pre-filter at the database, case-insensitive"),
    q: Optional[str] = Query(None, description="Substring match on client name, order id or ticker"),
    status_filter: Optional[str] = Query(None),
    sort: Optional[str] = Query(None),
    direction: Literal["asc", "desc"] = Query("asc"),
    db: Session = Depends(get_db),
):
    await log_request(request, "list_orders", context={"client_id": client_id, "status": status})
    if sort and sort not in SORTABLE_FIELDS:
        return JSONResponse(status_code=400, content={"error": f"Cannot sort by {sort}"})
    if client_id:
        rows = order_store.list_orders_by_client(db, client_id)
        if status:
            rows = filter_orders(rows, status=status)
    elif status:
        rows = order_store.list_orders_by_status(db, status)
    else:
        rows = order_store.list_orders(db)
    rows = filter_orders(rows, search=q, status=status_filter)
    return sort_orders(rows, sort, direction)


@router.get("/sent", response_model=List[OrderOut])
async def list_sent_orders(request: Request, db: Session = Depends(get_db)):
    await log_request(request, "list_sent_orders")
    return order_store.list_sent_orders(db)


@router.get("/count")
async def count_orders(request: Request, status: str = Query(..., min_length=1), db: Session = Depends(get_db)):
    await log_request(request, "count_orders", context={"status": status})
    return {"status": status, "count": order_store.count_orders_by_status(db, status)}


@router.post("")
async def create_order(payload: OrderCreateRequest, request: Request, db: Session = Depends(get_db)):
    correlation_id = await log_request(request, "create_order", context={"client_id": payload.order.client_id, "line_items": len(payload.line_items)})
    try:
        result = order_actions.create_order_with_items(db, payload.order, payload.line_items)
        return _respond(result, "Failed to create order")
    except Exception as e:
        return _server_error("create_order_unhandled", e, correlation_id)


@router.post("/individual")
async def create_individual_order(
    payload: IndividualOrderIn,
    request: Request,
    db: Session = Depends(get_db),
    directory: Directory = Depends(get_directory),
):
    correlation_id = await log_request(request, "create_individual_order", context={"client_id": payload.client_id, "asset_id": payload.asset_id})
    try:
        return _respond(await order_actions.create_individual_order(db, directory, payload), "Failed to create order")
    except Exception as e:
        return _server_error("create_individual_order_unhandled", e, correlation_id)


@router.post("/bulk")
async def create_bulk_orders(
    payload: BulkOrderIn,
    request: Request,
    db: Session = Depends(get_db),
    directory: Directory = Depends(get_directory),
):
    correlation_id = await log_request(request, "create_bulk_orders", context={"client_id": payload.client_id, "lines": len(payload.orders)})
    try:
        result = await order_actions.create_bulk_orders(db, directory, payload)
        if not result.success:
            return JSONResponse(status_code=400, content=result.as_dict())
        return result.as_dict()
    except Exception as e:
        return _server_error("create_bulk_orders_unhandled", e, correlation_id)


@router.post("/swap")
async def create_swap(
    payload: SwapOrderIn,
    request: Request,
    db: Session = Depends(get_db),
    directory: Directory = Depends(get_directory),
):
    correlation_id = await log_request(request, "create_swap", context={"client_id": payload.client_id})
    try:
        result = await order_actions.create_swap(db, directory, payload)
        if not result.success:
            return JSONResponse(status_code=400, content=result.as_dict())
        return result.as_dict()
    except Exception as e:
        return _server_error("create_swap_unhandled", e, correlation_id)


@router.post("/send-to-market")
async def send_to_market(payload: SendToMarketIn, request: Request, db: Session = Depends(get_db)):
    correlation_id = await log_request(request, "send_orders_to_market", context={"order_ids": payload.order_ids})
    try:
        result = order_actions.send_orders_to_market(db, payload.order_ids)
        if not result.success:
            return JSONResponse(status_code=400, content=result.as_dict())
        return result.as_dict()
    except Exception as e:
        return _server_error("send_orders_to_market_unhandled", e, correlation_id)


@router.get("/{order_id}", response_model=OrderDetailOut)
async def get_order(order_id: str, request: Request, db: Session = Depends(get_db)):
    await log_request(request, "get_order", order_id=order_id)
    order = order_store.get_order(db, order_id)
    if order is None:
        return JSONResponse(status_code=404, content={"error": order_store.NOT_FOUND})
    detail = OrderDetailOut.model_validate(order)
    return detail.model_copy(update={
        "state": state_name(order.status),
        "suggested_transitions": suggested_transitions(order.status),
    })


@router.put("/{order_id}")
async def update_order(order_id: str, payload: OrderUpdate, request: Request, db: Session = Depends(get_db)):
    correlation_id = await log_request(request, "update_order", order_id=order_id)
    try:
        return _respond(order_actions.edit_order(db, order_id, payload), "Failed to update order")
    except Exception as e:
        return _server_error("update_order_unhandled", e, correlation_id, order_id)


@router.delete("/{order_id}")
async def delete_order(order_id: str, request: Request, db: Session = Depends(get_db)):
    correlation_id = await log_request(request, "delete_order", order_id=order_id)
    try:
        return _respond(order_actions.remove_order(db, order_id), "Failed to delete order")
    except Exception as e:
        return _server_error("delete_order_unhandled", e, correlation_id, order_id)


@router.put("/{order_id}/status")
async def update_order_status(order_id: str, payload: StatusUpdate, request: Request, db: Session = Depends(get_db)):
    correlation_id = await log_request(request, "update_order_status", order_id=order_id, context={"status": payload.status})
    try:
        result = order_actions.change_order_status(db, order_id, payload.status, payload.observation)
        return _respond(result, "Failed to update order status")
    except Exception as e:
        return _server_error("update_order_status_unhandled", e, correlation_id, order_id)


@router.post("/{order_id}/observations")
async def add_observation(order_id: str, payload: ObservationCreate, request: Request, db: Session = Depends(get_db)):
    correlation_id = await log_request(request, "add_observation", order_id=order_id)
    try:
        return _respond(order_actions.add_order_observation(db, order_id, payload), "Failed to add observation")
    except Exception as e:
        return _server_error("add_observation_unhandled", e, correlation_id, order_id)
