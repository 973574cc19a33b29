"""Customer inbox.

GET  /messages                     — own and broadcast messages, newest first
POST /messages/{message_id}/read   — mark a direct message read
"""

from typing import Annotated

from fastapi import APIRouter, Depends, Request

from src.sf_common.response import ApiResponse, respond
from src.sf_gateway.auth.dependencies import get_current_user
from src.sf_gateway.user.models import User
from src.sf_messaging.application.schemas import InboxResponse, MessageResponse
from src.sf_messaging.domain.dispatcher import unread_count
from src.sf_order.application.service import OrderStore, get_order_store

router = APIRouter(prefix="/messages", tags=["messages"])


@router.get("")
async def list_inbox(
    request: Request,
    current_user: Annotated[User, Depends(get_current_user)],
    order_store: Annotated[OrderStore, Depends(get_order_store)],
) -> ApiResponse:
    messages = await order_store.list_messages(current_user.id)
    result = InboxResponse(
        items=[MessageResponse.from_domain(m) for m in messages],
        unread_count=unread_count(messages, current_user.id),
    )
    return respond(request, result.model_dump())


@router.post("/{message_id}/read")
async def mark_read(
    message_id: str,
    request: Request,
    current_user: Annotated[User, Depends(get_current_user)],
    order_store: Annotated[OrderStore, Depends(get_order_store)],
) -> ApiResponse:
    message = await order_store.mark_message_read(message_id, current_user.id)
    return respond(request, MessageResponse.from_domain(message).model_dump())
