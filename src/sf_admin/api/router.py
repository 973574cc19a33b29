"""Admin panel endpoints. Every route requires an admin token.

Orders:   GET /admin/orders, POST /admin/orders/{id}/status,
          DELETE /admin/orders/{id}, DELETE /admin/users/{id}/orders
Messages: POST /admin/messages, GET /admin/messages, DELETE /admin/messages/{id}
Users:    GET /admin/users, POST /admin/users/{id}/toggle-active, DELETE /admin/users/{id}
Settings: GET/PUT /admin/settings/banner, GET/PUT /admin/settings/invoice
Overview: GET /admin/stats
"""

from typing import Annotated

from fastapi import APIRouter, Depends, Query, Request, status

from src.sf_admin.application.schemas import (
    BannerRequest,
    BannerResponse,
    UpdateInvoiceSettingsRequest,
)
from src.sf_admin.application.service import AdminService, compute_stats
from src.sf_catalog.application.service import ProductService
from src.sf_common.response import ApiResponse, respond
from src.sf_gateway.auth.dependencies import require_admin
from src.sf_gateway.user.schemas import UserInfo
from src.sf_gateway.user.service import UserService
from src.sf_messaging.application.schemas import (
    MessageListResponse,
    MessageResponse,
    SendMessageRequest,
)
from src.sf_order.application.schemas import (
    OrderListResponse,
    OrderResponse,
    StatusChangeRequest,
    TransitionResponse,
)
from src.sf_order.application.service import OrderStore, get_order_store
from src.sf_store.application.service import get_store
from src.sf_store.domain.repository import KeyValueStoreProtocol

router = APIRouter(
    prefix="/admin",
    tags=["admin"],
    dependencies=[Depends(require_admin)],
)

Store = Annotated[KeyValueStoreProtocol, Depends(get_store)]
Orders = Annotated[OrderStore, Depends(get_order_store)]


# ---------------------------------------------------------------------------
# Orders
# ---------------------------------------------------------------------------


@router.get("/orders")
async def list_orders(
    request: Request,
    order_store: Orders,
    status_filter: str | None = Query(None, alias="status"),
    user_id: str | None = Query(None),
) -> ApiResponse:
    orders = await order_store.list_orders()
    if status_filter is not None:
        orders = [o for o in orders if o.status.value == status_filter.upper()]
    if user_id is not None:
        orders = [o for o in orders if o.user_id == user_id]
    result = OrderListResponse(items=[OrderResponse.from_domain(o) for o in orders], total=len(orders))
    return respond(request, result.model_dump())


@router.post("/orders/{order_id}/status")
async def change_order_status(
    order_id: str,
    body: StatusChangeRequest,
    request: Request,
    order_store: Orders,
) -> ApiResponse:
    result = await order_store.transition_order(order_id, body.status)
    return respond(request, TransitionResponse.from_result(result).model_dump())


@router.delete("/orders/{order_id}")
async def delete_order(order_id: str, request: Request, order_store: Orders) -> ApiResponse:
    await order_store.hard_delete_order(order_id)
    return respond(request, {"order_id": order_id}, "Order deleted")


@router.delete("/users/{user_id}/orders")
async def delete_user_orders(user_id: str, request: Request, order_store: Orders) -> ApiResponse:
    deleted = await order_store.hard_delete_orders_by_user(user_id)
    return respond(request, {"user_id": user_id, "deleted": deleted}, "Orders deleted")


# ---------------------------------------------------------------------------
# Messages
# ---------------------------------------------------------------------------


@router.post("/messages", status_code=status.HTTP_201_CREATED)
async def send_message(
    body: SendMessageRequest, request: Request, order_store: Orders
) -> ApiResponse:
    message = await order_store.send_message(body.user_id, body.title, body.content)
    return respond(request, MessageResponse.from_domain(message).model_dump(), "Message sent")


@router.get("/messages")
async def list_messages(request: Request, order_store: Orders) -> ApiResponse:
    messages = await order_store.list_messages()
    result = MessageListResponse(items=[MessageResponse.from_domain(m) for m in messages])
    return respond(request, result.model_dump())


@router.delete("/messages/{message_id}")
async def delete_message(message_id: str, request: Request, order_store: Orders) -> ApiResponse:
    await order_store.delete_message(message_id)
    return respond(request, {"message_id": message_id}, "Message deleted")


# ---------------------------------------------------------------------------
# Users
# ---------------------------------------------------------------------------


@router.get("/users")
async def list_users(request: Request, store: Store) -> ApiResponse:
    users = await UserService(store).list_users()
    return respond(request, {"items": [UserInfo.from_domain(u).model_dump() for u in users]})


@router.post("/users/{user_id}/toggle-active")
async def toggle_user_active(user_id: str, request: Request, store: Store) -> ApiResponse:
    user = await UserService(store).toggle_active(user_id)
    return respond(request, UserInfo.from_domain(user).model_dump())


@router.delete("/users/{user_id}")
async def delete_user(user_id: str, request: Request, store: Store) -> ApiResponse:
    await UserService(store).delete_user(user_id)
    return respond(request, {"user_id": user_id}, "User deleted")


# ---------------------------------------------------------------------------
# Settings
# ---------------------------------------------------------------------------


@router.get("/settings/banner")
async def get_banner(request: Request, store: Store) -> ApiResponse:
    banner = await AdminService(store).get_banner()
    return respond(request, BannerResponse(banner=banner).model_dump())


@router.put("/settings/banner")
async def put_banner(body: BannerRequest, request: Request, store: Store) -> ApiResponse:
    service = AdminService(store)
    await service.set_banner(body.banner)
    return respond(request, BannerResponse(banner=await service.get_banner()).model_dump())


@router.get("/settings/invoice")
async def get_invoice_settings(request: Request, store: Store) -> ApiResponse:
    invoice = await AdminService(store).get_invoice_settings()
    return respond(request, invoice.model_dump())


@router.put("/settings/invoice")
async def put_invoice_settings(
    body: UpdateInvoiceSettingsRequest, request: Request, store: Store
) -> ApiResponse:
    invoice = await AdminService(store).update_invoice_settings(body)
    return respond(request, invoice.model_dump(), "Invoice settings updated")


# ---------------------------------------------------------------------------
# Overview
# ---------------------------------------------------------------------------


@router.get("/stats")
async def get_stats(request: Request, store: Store, order_store: Orders) -> ApiResponse:
    orders = await order_store.list_orders()
    products = await ProductService(store).list_products()
    users = await UserService(store).list_users()
    return respond(request, compute_stats(orders, products, len(users)).model_dump())


# Read-only storefront settings for customers and guests
public_router = APIRouter(prefix="/settings", tags=["settings"])


@public_router.get("/banner")
async def get_public_banner(request: Request, store: Store) -> ApiResponse:
    banner = await AdminService(store).get_banner()
    return respond(request, BannerResponse(banner=banner).model_dump())


@public_router.get("/invoice")
async def get_public_invoice_settings(request: Request, store: Store) -> ApiResponse:
    invoice = await AdminService(store).get_invoice_settings()
    return respond(request, invoice.model_dump())
