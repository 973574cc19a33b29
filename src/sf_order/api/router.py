# src/sf_order/api/router.py
"""Customer order endpoints.

Responses are the bare schemas; AppError responses still go through the
ApiResponse exception handler.
"""
import asyncio
import json
from collections.abc import AsyncIterator
from typing import Annotated, Any

from fastapi import APIRouter, Depends, Request
from fastapi.responses import StreamingResponse

from src.sf_catalog.application.service import ProductService
from src.sf_catalog.domain.pricing import check_purchasable
from src.sf_gateway.auth.dependencies import get_current_user
from src.sf_gateway.user.models import User
from src.sf_order.application.schemas import (
    CreateOrderRequest,
    CreateOrderResponse,
    OrderListResponse,
    OrderResponse,
    PaymentProofRequest,
    TransitionResponse,
)
from src.sf_order.application.service import OrderStore, get_order_store, user_view
from src.sf_order.domain.models import Order
from src.sf_store.application.service import get_store
from src.sf_store.domain.repository import KeyValueStoreProtocol

router = APIRouter(prefix="/orders", tags=["orders"])

_KEEPALIVE_SECONDS = 15.0


@router.post("", response_model=CreateOrderResponse, status_code=201)
async def create_order(
    req: CreateOrderRequest,
    current_user: Annotated[User, Depends(get_current_user)],
    store: Annotated[KeyValueStoreProtocol, Depends(get_store)],
    order_store: Annotated[OrderStore, Depends(get_order_store)],
) -> CreateOrderResponse:
    product = await ProductService(store).get_product(req.product_id)
    check_purchasable(product, req.quantity)
    order_id = await order_store.create_order(
        current_user.id,
        current_user.username,
        product,
        req.quantity,
        req.shipping_details.to_domain() if req.shipping_details else None,
    )
    order = await order_store.get_order(order_id)
    return CreateOrderResponse(order_id=order_id, total_price=order.total_price)


@router.get("", response_model=OrderListResponse)
async def list_orders(
    current_user: Annotated[User, Depends(get_current_user)],
    order_store: Annotated[OrderStore, Depends(get_order_store)],
) -> OrderListResponse:
    orders = await order_store.list_orders(current_user.id)
    return OrderListResponse(items=[OrderResponse.from_domain(o) for o in orders], total=len(orders))


def _encode_event(orders: list[Order]) -> str:
    payload = [OrderResponse.from_domain(o).model_dump() for o in orders]
    return f"event: orders\ndata: {json.dumps(payload)}\n\n"


async def order_events(
    order_store: OrderStore, user_id: str, request: Request
) -> AsyncIterator[str]:
    """Server-sent events: the customer's order list after every change."""
    queue: asyncio.Queue[str] = asyncio.Queue(maxsize=8)

    async def push(orders: list[Order]) -> None:
        if queue.full():
            # Only the latest snapshot matters
            queue.get_nowait()
        queue.put_nowait(_encode_event(user_view(orders, user_id)))

    unsubscribe = await order_store.subscribe_orders(push)
    try:
        while True:
            try:
                event = await asyncio.wait_for(queue.get(), timeout=_KEEPALIVE_SECONDS)
            except TimeoutError:
                if await request.is_disconnected():
                    break
                yield ": keep-alive\n\n"
                continue
            yield event
    finally:
        await unsubscribe()


@router.get("/stream")
async def stream_orders(
    request: Request,
    current_user: Annotated[User, Depends(get_current_user)],
    order_store: Annotated[OrderStore, Depends(get_order_store)],
) -> StreamingResponse:
    return StreamingResponse(
        order_events(order_store, current_user.id, request),
        media_type="text/event-stream",
        headers={"Cache-Control": "no-cache", "X-Accel-Buffering": "no"},
    )


@router.get("/{order_id}", response_model=OrderResponse)
async def get_order(
    order_id: str,
    current_user: Annotated[User, Depends(get_current_user)],
    order_store: Annotated[OrderStore, Depends(get_order_store)],
) -> OrderResponse:
    return OrderResponse.from_domain(await order_store.get_user_order(order_id, current_user.id))


@router.post("/{order_id}/payment-proof", response_model=OrderResponse)
async def attach_payment_proof(
    order_id: str,
    req: PaymentProofRequest,
    current_user: Annotated[User, Depends(get_current_user)],
    order_store: Annotated[OrderStore, Depends(get_order_store)],
) -> OrderResponse:
    order = await order_store.attach_payment_proof(order_id, current_user.id, req.payment_proof)
    return OrderResponse.from_domain(order)


@router.post("/{order_id}/cancel", response_model=OrderResponse)
async def cancel_order(
    order_id: str,
    current_user: Annotated[User, Depends(get_current_user)],
    order_store: Annotated[OrderStore, Depends(get_order_store)],
) -> OrderResponse:
    order = await order_store.cancel_order_by_user(order_id, current_user.id)
    return OrderResponse.from_domain(order)


@router.post("/{order_id}/received", response_model=TransitionResponse)
async def confirm_received(
    order_id: str,
    current_user: Annotated[User, Depends(get_current_user)],
    order_store: Annotated[OrderStore, Depends(get_order_store)],
) -> TransitionResponse:
    result = await order_store.confirm_order_received(order_id, current_user.id)
    return TransitionResponse.from_result(result)


@router.post("/{order_id}/hide")
async def hide_order(
    order_id: str,
    current_user: Annotated[User, Depends(get_current_user)],
    order_store: Annotated[OrderStore, Depends(get_order_store)],
) -> dict[str, Any]:
    await order_store.hide_order_for_user(order_id, current_user.id)
    return {"order_id": order_id, "hidden_for_user": True}
